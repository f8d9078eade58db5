from datetime import datetime

from pydantic import dataclasses

from users.domain.entities import UserRole


@dataclasses.dataclass
class TokenData:
    """Claims carried by a decoded access token.

    Attributes
    ----------
    user_id: int
        ID of user the token was issued to.
    role: UserRole
        Role of the user at issuance time.
    expires_at: datetime | None, optional
        Datetime at which the token expires.
    """

    user_id: int
    role: UserRole
    expires_at: datetime | None = None
