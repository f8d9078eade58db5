from datetime import datetime
from enum import StrEnum
from typing import Any, Dict

from pydantic import Field, dataclasses


class NotificationCategory(StrEnum):
    """Visual category of a notification."""

    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


class NotificationPriority(StrEnum):
    """Urgency levels used for ordering hints and client styling."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class ConnectionState(StrEnum):
    """Lifecycle states of a realtime connection."""

    CONNECTING = "connecting"
    OPEN = "open"
    REGISTERED = "registered"
    ANONYMOUS = "anonymous"
    CLOSED = "closed"


@dataclasses.dataclass
class NotificationIntent:
    """Request to notify exactly one user, as handed to the dispatcher.

    Attributes
    ----------
    recipient_id : int | None
        User ID of the recipient. Required; None is rejected on dispatch.
    title : str
        Short headline shown to the user.
    message : str
        Body text shown to the user.
    category : NotificationCategory, default=NotificationCategory.INFO
        Visual category.
    priority : NotificationPriority, default=NotificationPriority.MEDIUM
        Urgency level.
    metadata : Dict[str, Any]
        Free-form attachment, stored as-is.
    action_url : str | None, optional
        Client navigation target.
    expires_in_hours : float | None, optional
        Lifetime of the notification; must be positive when set.
    """

    recipient_id: int | None
    title: str
    message: str
    category: NotificationCategory = NotificationCategory.INFO
    priority: NotificationPriority = NotificationPriority.MEDIUM
    metadata: Dict[str, Any] = Field(default_factory=dict)
    action_url: str | None = None
    expires_in_hours: float | None = None


@dataclasses.dataclass
class Notification:
    """Core domain entity representing a stored notification.

    Attributes
    ----------
    recipient_id : int
        User ID of the recipient.
    title : str
        Short headline, stored trimmed.
    message : str
        Body text, stored trimmed.
    category : NotificationCategory
        Visual category.
    priority : NotificationPriority
        Urgency level.
    is_read : bool, default=False
        Boolean indicating if the notification has been read.
    metadata : Dict[str, Any]
        Free-form attachment.
    action_url : str | None, optional
        Client navigation target.
    created_at : datetime | None, optional
        Datetime when the notification was created (aware UTC).
    expires_at : datetime | None, optional
        Datetime after which the notification is no longer visible.
    id : int | None, optional
        Unique identifier for notification.
    """

    recipient_id: int
    title: str
    message: str
    category: NotificationCategory = NotificationCategory.INFO
    priority: NotificationPriority = NotificationPriority.MEDIUM
    is_read: bool = False
    metadata: Dict[str, Any] = Field(default_factory=dict)
    action_url: str | None = None
    created_at: datetime | None = None
    expires_at: datetime | None = None
    id: int | None = None

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at is not None and self.expires_at < now


@dataclasses.dataclass
class Connection:
    """Presence handle for one live client connection.

    Attributes
    ----------
    connection_id : str
        Server-assigned identifier.
    state : ConnectionState, default=ConnectionState.CONNECTING
        Current lifecycle state.
    user_id : int | None, optional
        User the connection is registered for; set only while registered.
    authenticated_user_id : int | None, optional
        User proven by the handshake token, if any.
    connected_at : datetime | None, optional
        Datetime the connection was accepted.
    last_seen_at : datetime | None, optional
        Datetime of the last signal received.
    """

    connection_id: str
    state: ConnectionState = ConnectionState.CONNECTING
    user_id: int | None = None
    authenticated_user_id: int | None = None
    connected_at: datetime | None = None
    last_seen_at: datetime | None = None
