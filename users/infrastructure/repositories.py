from typing import List

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from cache.infrastructure.decorators import cache
from core.utils.datetime import ensure_utc

from ..application.ports import UserRepository as DomainUserRepository
from ..domain.entities import User as DomainUser
from ..domain.entities import UserRole
from .models import User


class UserRepository(DomainUserRepository):
    """Concrete implementation of `UserRepository` for database-based user lookups."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(self, user: DomainUser) -> DomainUser:
        """Create a new user record in the database.

        Parameters
        ----------
        user: DomainUser
            `DomainUser` entity to be created.

        Returns
        -------
        DomainUser
            Created `DomainUser` entity, hydrated with database-assigned values.

        Raises
        ------
        IntegrityError
            If an email conflict or other integrity violations occur.
        """
        pydantic_user = self._to_pydantic_model(user)
        self._session.add(pydantic_user)

        try:
            await self._session.commit()
            await self._session.refresh(pydantic_user)
        except IntegrityError as e:
            await self._session.rollback()
            e.orig = (
                "User with this email already exists"
                if "user.email" in str(e.orig)
                else e.orig
            )
            raise e
        except Exception:
            await self._session.rollback()
            raise

        return self._to_domain_model(pydantic_user)

    @cache(timeout_seconds=300, key_prefix="user:id")
    async def get(self, user_id: int) -> DomainUser | None:
        """Retrieve a user by their unique ID, through the Redis cache.

        Results are cached for five minutes; missing users are not cached.
        A cached entry can therefore report a stale `is_active`, so access
        checks use `get_fresh` instead.

        Parameters
        ----------
        user_id: int
            ID of user to retrieve.

        Returns
        -------
        DomainUser | None
            `DomainUser` entity matching ID, or None.
        """
        return await self.get_fresh(user_id)

    async def get_fresh(self, user_id: int) -> DomainUser | None:
        pydantic_user = await self._session.get(User, user_id, populate_existing=True)
        if pydantic_user is None:
            return None

        return self._to_domain_model(pydantic_user)

    async def list_admins(self) -> List[DomainUser]:
        result = await self._session.execute(
            select(User)
            .where(User.role == UserRole.ADMIN.value, User.is_active == True)  # noqa: E712
            .order_by(User.id)
        )
        return [self._to_domain_model(user) for user in result.scalars().all()]

    def _to_pydantic_model(self, domain_user: DomainUser) -> User:
        return User(
            name=domain_user.name,
            email=domain_user.email,
            role=domain_user.role.value,
            is_active=domain_user.is_active,
        )

    def _to_domain_model(self, pydantic_user: User) -> DomainUser:
        return DomainUser(
            id=pydantic_user.id,
            name=pydantic_user.name,
            email=pydantic_user.email,
            role=UserRole(pydantic_user.role),
            is_active=pydantic_user.is_active,
            created_at=ensure_utc(pydantic_user.created_at),
        )
