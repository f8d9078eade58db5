from fastapi import APIRouter, Depends, Query, status

from authentication.infrastructure.factory import get_current_user, require_admin
from config.base import Settings, get_settings
from core.presentation.responses import CreatedResponse, SuccessResponse
from users.domain.entities import User as DomainUser

from ..application.dispatcher import NotificationDispatcher
from ..application.events import NotificationEventProducer
from ..application.rules import (
    ClearNotificationsRule,
    DeleteNotificationRule,
    GetUserNotificationsRule,
    MarkAllNotificationsReadRule,
    MarkNotificationReadRule,
    SendNotificationRule,
)
from ..domain.entities import NotificationIntent
from ..domain.exceptions import NotificationError, NotificationValidationError
from ..infrastructure.factory import (
    get_notification_dispatcher,
    get_notification_event_producer,
    get_notification_repository,
    get_presence_registry,
)
from ..infrastructure.presence import InMemoryPresenceRegistry
from ..infrastructure.repositories import NotificationRepository
from .requests import SendNotificationRequest
from .responses import (
    NotificationListResponse,
    NotificationResponse,
    PresenceSnapshotResponse,
    UserPresenceResponse,
)

router = APIRouter(prefix="/notifications")


@router.get("/", response_model=SuccessResponse, status_code=status.HTTP_200_OK)
async def get_notifications(
    limit: int | None = Query(default=None, ge=1),
    offset: int = Query(default=0, ge=0),
    unread_only: bool = False,
    notification_repository: NotificationRepository = Depends(
        get_notification_repository
    ),
    settings: Settings = Depends(get_settings),
    current_user: DomainUser = Depends(get_current_user),
) -> SuccessResponse:
    """Retrieve the current user's non-expired notifications, newest first.

    Parameters
    ----------
    limit : int | None
        Page size, defaults to `notification_fetch_limit`
    offset : int
        Number of notifications to skip
    unread_only : bool
        If True, only unread notifications are returned

    Returns
    -------
    SuccessResponse
        Response containing a `NotificationListResponse`
    """
    limit = limit or settings.notification_fetch_limit
    if limit > settings.notification_max_fetch_limit:
        raise NotificationValidationError(
            f"limit must not exceed {settings.notification_max_fetch_limit}"
        )

    get_notifications_rule = GetUserNotificationsRule(
        user_id=current_user.id,
        limit=limit,
        offset=offset,
        unread_only=unread_only,
        notification_repository=notification_repository,
    )
    result = await get_notifications_rule.execute()

    return SuccessResponse(
        data=NotificationListResponse(
            notifications=[
                NotificationResponse.from_domain(notification)
                for notification in result["notifications"]
            ],
            total=result["total"],
            unread_count=result["unread_count"],
        ),
        message="Notifications retrieved successfully",
    )


@router.put("/read-all", response_model=SuccessResponse, status_code=status.HTTP_200_OK)
async def mark_all_notifications_read(
    notification_repository: NotificationRepository = Depends(
        get_notification_repository
    ),
    current_user: DomainUser = Depends(get_current_user),
) -> SuccessResponse:
    """Mark every notification of the current user as read."""
    mark_all_rule = MarkAllNotificationsReadRule(
        user_id=current_user.id, notification_repository=notification_repository
    )
    updated = await mark_all_rule.execute()

    return SuccessResponse(
        data={"updated": updated},
        message="All notifications marked as read",
    )


@router.put(
    "/{notification_id}/read",
    response_model=SuccessResponse,
    status_code=status.HTTP_200_OK,
)
async def mark_notification_read(
    notification_id: int,
    notification_repository: NotificationRepository = Depends(
        get_notification_repository
    ),
    current_user: DomainUser = Depends(get_current_user),
) -> SuccessResponse:
    """Mark one of the current user's notifications as read.

    Marking an already read notification succeeds without changes.
    """
    mark_read_rule = MarkNotificationReadRule(
        notification_id=notification_id,
        user=current_user,
        notification_repository=notification_repository,
    )
    notification = await mark_read_rule.execute()

    return SuccessResponse(
        data=NotificationResponse.from_domain(notification),
        message="Notification marked as read",
    )


@router.delete(
    "/{notification_id}",
    response_model=SuccessResponse,
    status_code=status.HTTP_200_OK,
)
async def delete_notification(
    notification_id: int,
    notification_repository: NotificationRepository = Depends(
        get_notification_repository
    ),
    current_user: DomainUser = Depends(get_current_user),
) -> SuccessResponse:
    """Delete one of the current user's notifications.

    Raises
    ------
    NotificationAccessDeniedError
        If the notification belongs to another user (403)
    NotificationNotFoundError
        If the notification does not exist (404)
    """
    delete_rule = DeleteNotificationRule(
        notification_id=notification_id,
        user=current_user,
        notification_repository=notification_repository,
    )
    await delete_rule.execute()

    return SuccessResponse(message="Notification deleted")


@router.delete("/", response_model=SuccessResponse, status_code=status.HTTP_200_OK)
async def clear_notifications(
    notification_repository: NotificationRepository = Depends(
        get_notification_repository
    ),
    current_user: DomainUser = Depends(get_current_user),
) -> SuccessResponse:
    """Delete every notification of the current user."""
    clear_rule = ClearNotificationsRule(
        user_id=current_user.id, notification_repository=notification_repository
    )
    deleted = await clear_rule.execute()

    return SuccessResponse(data={"deleted": deleted}, message="Notifications cleared")


@router.post(
    "/send", response_model=CreatedResponse, status_code=status.HTTP_201_CREATED
)
async def send_notification(
    request: SendNotificationRequest,
    dispatcher: NotificationDispatcher = Depends(get_notification_dispatcher),
    current_user: DomainUser = Depends(require_admin),
) -> CreatedResponse:
    """Send a notification to any user. Admin only.

    The notification is stored first and pushed live if the recipient is
    connected; offline recipients find it on their next fetch.
    """
    send_rule = SendNotificationRule(
        intent=NotificationIntent(
            recipient_id=request.recipient_id,
            title=request.title,
            message=request.message,
            category=request.category,
            priority=request.priority,
            metadata=request.metadata,
            action_url=request.action_url,
            expires_in_hours=request.expires_in_hours,
        ),
        sender=current_user,
        dispatcher=dispatcher,
    )
    notification = await send_rule.execute()

    return CreatedResponse(
        data=NotificationResponse.from_domain(notification),
        message="Notification sent",
    )


@router.post(
    "/test", response_model=CreatedResponse, status_code=status.HTTP_201_CREATED
)
async def send_test_notification(
    producer: NotificationEventProducer = Depends(get_notification_event_producer),
    current_user: DomainUser = Depends(get_current_user),
) -> CreatedResponse:
    """Send a test notification to the current user."""
    notification = await producer.test_notification(current_user.id)
    if notification is None:
        raise NotificationError("Test notification could not be sent")

    return CreatedResponse(
        data=NotificationResponse.from_domain(notification),
        message="Test notification sent",
    )


@router.get(
    "/presence", response_model=SuccessResponse, status_code=status.HTTP_200_OK
)
async def get_presence(
    registry: InMemoryPresenceRegistry = Depends(get_presence_registry),
    current_user: DomainUser = Depends(require_admin),
) -> SuccessResponse:
    """Summarize live connections of this server process. Admin only."""
    return SuccessResponse(
        data=PresenceSnapshotResponse(**registry.snapshot()),
        message="Presence retrieved successfully",
    )


@router.get(
    "/presence/{user_id}",
    response_model=SuccessResponse,
    status_code=status.HTTP_200_OK,
)
async def get_user_presence(
    user_id: int,
    registry: InMemoryPresenceRegistry = Depends(get_presence_registry),
    current_user: DomainUser = Depends(require_admin),
) -> SuccessResponse:
    """Report whether one user has live connections. Admin only."""
    connections = registry.connections_for(user_id)

    return SuccessResponse(
        data=UserPresenceResponse(
            user_id=user_id,
            online=registry.is_present(user_id),
            connections=len(connections),
            connection_ids=[connection.connection_id for connection in connections],
        ),
        message="User presence retrieved successfully",
    )
