from datetime import datetime
from typing import Any, Dict, List

from pydantic import BaseModel

from ..domain.entities import Notification as DomainNotification


class NotificationResponse(BaseModel):
    """Response model for a notification.

    Attributes
    ----------
    id : int
        Unique identifier of the notification
    recipient_id : int
        User ID of the recipient
    title : str
        Short headline of the notification
    message : str
        Body text of the notification
    category : str
        Visual category
    priority : str
        Urgency level
    is_read : bool
        Whether the notification has been read
    metadata : Dict[str, Any]
        Additional data associated with the notification
    action_url : str | None
        Client navigation target
    created_at : datetime
        Timestamp of notification creation
    expires_at : datetime | None
        Timestamp after which the notification disappears
    """

    id: int
    recipient_id: int
    title: str
    message: str
    category: str
    priority: str
    is_read: bool
    metadata: Dict[str, Any]
    action_url: str | None = None
    created_at: datetime
    expires_at: datetime | None = None

    @classmethod
    def from_domain(cls, notification: DomainNotification) -> "NotificationResponse":
        return cls(
            id=notification.id,
            recipient_id=notification.recipient_id,
            title=notification.title,
            message=notification.message,
            category=notification.category,
            priority=notification.priority,
            is_read=notification.is_read,
            metadata=notification.metadata,
            action_url=notification.action_url,
            created_at=notification.created_at,
            expires_at=notification.expires_at,
        )


class NotificationListResponse(BaseModel):
    """Response model for a page of notifications.

    Attributes
    ----------
    notifications : List[NotificationResponse]
        Notifications on this page, newest first
    total : int
        Total number of notifications matching criteria
    unread_count : int
        Number of unread notifications of the user
    """

    notifications: List[NotificationResponse]
    total: int
    unread_count: int


class PresenceSnapshotResponse(BaseModel):
    total_connections: int
    registered_connections: int
    online_users: int
    users: Dict[int, int]


class UserPresenceResponse(BaseModel):
    user_id: int
    online: bool
    connections: int
    connection_ids: List[str]
