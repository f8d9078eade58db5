from abc import ABC, abstractmethod
from typing import List

from ..domain.entities import User as DomainUser


class UserRepository(ABC):
    """User directory as seen by this service.

    Accounts are managed elsewhere; here they are only resolved, as token
    subjects, notification recipients and the actors named in messages.
    """

    @abstractmethod
    async def create(self, user: DomainUser) -> DomainUser:
        """Store a directory record and return it with its assigned id."""
        pass

    @abstractmethod
    async def get(self, user_id: int) -> DomainUser | None:
        """Resolve a user by id.

        Parameters
        ----------
        user_id: int
            ID carried by an access token or a domain event.

        Returns
        -------
        DomainUser | None
            Matching user, active or not, or None if the id is unknown.
        """
        pass

    @abstractmethod
    async def get_fresh(self, user_id: int) -> DomainUser | None:
        """Resolve a user by id straight from the store, skipping any cache."""
        pass

    @abstractmethod
    async def list_admins(self) -> List[DomainUser]:
        """Return every active admin, ordered by id."""
        pass
