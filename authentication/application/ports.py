from abc import ABC, abstractmethod

from users.domain.entities import User as DomainUser

from ..domain.entities import TokenData


class JWTTokenServiceInterface(ABC):
    """Access tokens accepted by the REST routes and the notification socket.

    Credentials are verified by an external identity service; this side only
    signs tokens for known users and checks the ones presented back.
    """

    @abstractmethod
    async def create_access_token(self, user: DomainUser) -> str:
        """Sign a short-lived access token carrying the user's id and role."""
        pass

    @abstractmethod
    async def decode_access_token(self, token: str) -> TokenData:
        """Verify `token` and return its claims.

        Raises
        ------
        HTTPException
            401 if the token is malformed, expired, forged or not an access
            token.
        """
        pass
