from datetime import UTC, datetime

from sqlmodel import Field, SQLModel

from ..domain.entities import UserRole


class User(SQLModel, table=True):
    """SQLModel table representation for the User entity.

    Attributes
    ----------
    id: int | None, optional
        Primary key, auto-incrementing integer.
    name: str
        Display name of the user.
    email: str
        Unique email address of the user, indexed for quick lookups.
    role: str
        Role of the user (stored as string).
    is_active: bool, default=True
        Boolean indicating if the user account is active.
    created_at: datetime
        Datetime when the user record was created (aware UTC).
    """

    id: int | None = Field(default=None, primary_key=True)
    name: str = Field(nullable=False)
    email: str = Field(unique=True, nullable=False, index=True)
    role: str = Field(default=UserRole.ENGINEER.value, index=True)
    is_active: bool = Field(default=True)
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(tz=UTC)
    )
