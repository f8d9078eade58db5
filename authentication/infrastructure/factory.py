from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer

from config.base import Settings, get_settings
from users.application.ports import UserRepository
from users.domain.entities import User as DomainUser
from users.infrastructure.factory import get_user_repository

from ..application.rules import CurrentUserRule
from ..infrastructure.services import JWTTokenService

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/token")


async def get_jwt_token_service(
    settings: Settings = Depends(get_settings),
) -> JWTTokenService:
    """Provide a `JWTTokenService` instance.

    Parameters
    ----------
    settings: Settings
        Application settings, injected as a dependency.

    Returns
    -------
    JWTTokenService
        Instance of `JWTTokenService`.
    """
    return JWTTokenService(settings)


async def get_current_user(
    token: str = Depends(oauth2_scheme),
    user_repository: UserRepository = Depends(get_user_repository),
    token_service: JWTTokenService = Depends(get_jwt_token_service),
) -> DomainUser:
    """Provide the current authenticated user based on the access token.

    Parameters
    ----------
    token: str
        Access token obtained from the request header.
    user_repository: UserRepository
        Repository for user data access.
    token_service: JWTTokenService
        Service for JWT token operations.

    Returns
    -------
    DomainUser
        `DomainUser` entity of the currently authenticated user.

    Raises
    ------
    HTTPException
        If the token is invalid or the user cannot be found.
    """
    current_user_rule = CurrentUserRule(
        token=token, token_service=token_service, user_repository=user_repository
    )
    return await current_user_rule.execute()


async def require_admin(
    current_user: DomainUser = Depends(get_current_user),
) -> DomainUser:
    """Provide the current user, refusing anyone who is not an admin.

    Raises
    ------
    HTTPException
        403 if the authenticated user is not an admin.
    """
    if not current_user.is_admin():
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin privileges required",
        )

    return current_user
