from datetime import datetime

from pydantic import BaseModel


class UserResponse(BaseModel):
    """Response model for user data.

    Attributes
    ----------
    id: int
        User's ID.
    name: str
        User's display name.
    email: str
        User's email address.
    role: str
        User's role, "Admin" or "Engineer".
    is_active: bool
        User's active status.
    created_at: datetime | None
        User's creation timestamp.
    """

    id: int
    name: str
    email: str
    role: str
    is_active: bool
    created_at: datetime | None = None
