from datetime import UTC, datetime
from typing import Any, Dict

from sqlalchemy import Index, func
from sqlmodel import JSON, Column, Field, SQLModel

from ..domain.entities import NotificationCategory, NotificationPriority


class Notification(SQLModel, table=True):
    """SQLModel table representation for the Notification entity.

    Timestamps are bound as aware UTC values; SQLite keeps no offset, so
    repositories attach UTC again on the way out.

    Attributes
    ----------
    id : int | None
        Primary key, auto-incrementing integer
    recipient_id : int
        User ID of the recipient
    title : str
        Short headline of the notification
    message : str
        Body text of the notification
    category : str
        Visual category (stored as string)
    priority : str
        Urgency level (stored as string)
    is_read : bool
        Whether the notification has been read
    notification_metadata : Dict[str, Any]
        Free-form JSON attachment, stored in the `metadata` column
    action_url : str | None
        Client navigation target
    created_at : datetime
        Timestamp of notification creation
    expires_at : datetime | None
        Timestamp after which the notification is hidden and purged
    """

    __table_args__ = (
        Index(
            "ix_notification_recipient_read_created",
            "recipient_id",
            "is_read",
            "created_at",
        ),
        Index("ix_notification_recipient_created", "recipient_id", "created_at"),
    )

    id: int | None = Field(default=None, primary_key=True)
    recipient_id: int = Field(foreign_key="user.id", nullable=False)
    title: str = Field(nullable=False)
    message: str = Field(nullable=False)
    category: str = Field(default=NotificationCategory.INFO.value)
    priority: str = Field(default=NotificationPriority.MEDIUM.value)
    is_read: bool = Field(default=False)
    notification_metadata: Dict[str, Any] = Field(
        default_factory=dict, sa_column=Column("metadata", JSON)
    )
    action_url: str | None = Field(default=None, nullable=True)
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(tz=UTC)
    )
    expires_at: datetime | None = Field(default=None, nullable=True, index=True)


# Cross-references from producer metadata, e.g. every notification about a report.
Index(
    "ix_notification_related_report",
    func.json_extract(Notification.notification_metadata, "$.related_report_id"),
)
Index(
    "ix_notification_related_site",
    func.json_extract(Notification.notification_metadata, "$.related_site_id"),
)
