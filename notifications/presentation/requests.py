from typing import Any, Dict

from pydantic import BaseModel, Field

from ..domain.entities import NotificationCategory, NotificationPriority


class SendNotificationRequest(BaseModel):
    """Request model for sending a notification to one user.

    Attributes
    ----------
    recipient_id : int
        User ID of the recipient
    title : str
        Short headline of the notification
    message : str
        Body text of the notification
    category : NotificationCategory
        Visual category
    priority : NotificationPriority
        Urgency level
    metadata : Dict[str, Any]
        Additional data associated with the notification
    action_url : str | None
        Client navigation target
    expires_in_hours : float | None
        Lifetime of the notification in hours
    """

    recipient_id: int = Field(gt=0)
    title: str = Field(min_length=1, max_length=200)
    message: str = Field(min_length=1, max_length=2000)
    category: NotificationCategory = NotificationCategory.INFO
    priority: NotificationPriority = NotificationPriority.MEDIUM
    metadata: Dict[str, Any] = Field(default_factory=dict)
    action_url: str | None = None
    expires_in_hours: float | None = Field(default=None, gt=0)
