from fastapi import HTTPException, status

from users.application.ports import UserRepository
from users.domain.entities import User as DomainUser

from .ports import JWTTokenServiceInterface


class CurrentUserRule:
    """Business logic for retrieving current authenticated user."""

    def __init__(
        self,
        token: str,
        token_service: JWTTokenServiceInterface,
        user_repository: UserRepository,
    ) -> None:
        self.token = token
        self.token_service = token_service
        self.user_repository = user_repository

    async def execute(self) -> DomainUser:
        """Execute the current user retrieval process.

        Returns
        -------
        DomainUser
            `DomainUser` entity corresponding to access token.

        Raises
        ------
        HTTPException
            If token is invalid, or the user is unknown or deactivated.
        """
        token_data = await self.token_service.decode_access_token(self.token)
        # Uncached, so a deactivation takes effect on the next request.
        existing_user = await self.user_repository.get_fresh(token_data.user_id)

        if existing_user is None or not existing_user.is_active:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="User not found or inactive",
                headers={"WWW-Authenticate": "Bearer"},
            )

        return existing_user
