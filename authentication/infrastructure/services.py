from datetime import datetime, timedelta, timezone

import jwt
from fastapi import HTTPException, status
from jwt.exceptions import InvalidTokenError

from config.base import Settings
from users.domain.entities import User as DomainUser
from users.domain.entities import UserRole

from ..application.ports import JWTTokenServiceInterface
from ..domain.entities import TokenData


class JWTTokenService(JWTTokenServiceInterface):
    """Concrete implementation of `JWTTokenServiceInterface` using symmetric keys."""

    def __init__(self, settings: Settings) -> None:
        self._settings = settings

    async def create_access_token(self, user: DomainUser) -> str:
        """Create a signed JWT access token for the given user.

        Parameters
        ----------
        user: DomainUser
            DomainUser entity for whom to create the token.

        Returns
        -------
        str
            Encoded JWT access token string.
        """
        expiry = datetime.now(timezone.utc) + timedelta(
            minutes=self._settings.access_token_expiry
        )
        data_to_encode = {
            "id": user.id,
            "role": UserRole(user.role).value,
            "type": "access",
            "exp": expiry,
        }

        return jwt.encode(
            data_to_encode,
            self._settings.secret_key,
            algorithm=self._settings.algorithm,
        )

    async def decode_access_token(self, token: str) -> TokenData:
        """Decode and validate an access token.

        Parameters
        ----------
        token: str
            Access token string to decode and validate.

        Returns
        -------
        TokenData
            Claims of a valid, unexpired access token.

        Raises
        ------
        HTTPException
            If token is invalid, expired, or of wrong type.
        """
        try:
            payload = jwt.decode(
                token,
                self._settings.secret_key,
                algorithms=[self._settings.algorithm],
            )

            if payload.get("type") != "access" or payload.get("id") is None:
                raise InvalidTokenError

            return TokenData(
                user_id=int(payload["id"]),
                role=UserRole(payload.get("role", UserRole.ENGINEER.value)),
                expires_at=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
            )

        except (InvalidTokenError, KeyError, ValueError) as e:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Failed to decode access token",
                headers={"WWW-Authenticate": "Bearer"},
            ) from e
