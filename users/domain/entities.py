import re
from datetime import datetime
from enum import StrEnum

from pydantic import dataclasses, field_validator


class UserRole(StrEnum):
    """Roles recognised by the QA application."""

    ADMIN = "Admin"
    ENGINEER = "Engineer"


@dataclasses.dataclass
class User:
    """Core domain entity representing a user account in the system.

    Attributes
    ----------
    name: str
        Display name of user, used in notification messages.
    email: str
        Unique email address of user.
    role: UserRole, default=UserRole.ENGINEER
        Role of the user; admins own sites and review reports.
    is_active: bool, default=True
        Boolean indicating if user account is active.
    created_at: datetime | None, optional
        Datetime when user account was created.
    id: int | None, optional
        Unique identifier for user.
    """

    name: str
    email: str
    role: UserRole = UserRole.ENGINEER
    is_active: bool = True
    created_at: datetime | None = None
    id: int | None = None

    @field_validator("email")
    @classmethod
    def ensure_valid_email(cls, value):
        """Perform email format validation using regex pattern matching.

        Raises
        ------
        ValueError
            If the email address format is invalid.
        """
        if not re.fullmatch(r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$", value):
            raise ValueError("Email address is invalid.")

        return value

    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN
