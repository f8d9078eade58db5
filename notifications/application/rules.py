from datetime import datetime
from typing import Callable, Dict

from loguru import logger

from core.utils.datetime import utc_now
from users.domain.entities import User as DomainUser

from ..domain.entities import Notification as DomainNotification
from ..domain.entities import NotificationIntent
from ..domain.exceptions import (
    NotificationAccessDeniedError,
    NotificationNotFoundError,
)
from .dispatcher import NotificationDispatcher
from .ports import NotificationRepository


class GetUserNotificationsRule:
    """Business logic for listing the current user's notifications."""

    def __init__(
        self,
        user_id: int,
        limit: int,
        offset: int,
        unread_only: bool,
        notification_repository: NotificationRepository,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.user_id = user_id
        self.limit = limit
        self.offset = offset
        self.unread_only = unread_only
        self.notification_repository = notification_repository
        self.clock = clock

    async def execute(self) -> Dict[str, object]:
        """Execute the notification listing.

        Returns
        -------
        Dict[str, object]
            `notifications` (newest first), `total` matching the filter, and the
            user's overall `unread_count`. Expired notifications are excluded
            from all three.
        """
        now = self.clock()
        notifications = await self.notification_repository.get_user_notifications(
            user_id=self.user_id,
            limit=self.limit,
            offset=self.offset,
            unread_only=self.unread_only,
            now=now,
        )
        total = await self.notification_repository.count_user_notifications(
            self.user_id, unread_only=self.unread_only, now=now
        )
        unread_count = await self.notification_repository.count_unread(
            self.user_id, now=now
        )

        return {
            "notifications": notifications,
            "total": total,
            "unread_count": unread_count,
        }


class _OwnedNotificationRule:
    """Shared lookup for rules that act on one notification of the requester."""

    def __init__(
        self,
        notification_id: int,
        user: DomainUser,
        notification_repository: NotificationRepository,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.notification_id = notification_id
        self.user = user
        self.notification_repository = notification_repository
        self.clock = clock

    async def _get_owned_notification(self) -> DomainNotification:
        notification = await self.notification_repository.get_by_id(
            self.notification_id
        )
        if notification is None or notification.is_expired(self.clock()):
            raise NotificationNotFoundError(
                f"Notification {self.notification_id} not found"
            )

        if notification.recipient_id != self.user.id:
            logger.warning(
                f"🚫 User {self.user.id} tried to access notification "
                f"{self.notification_id} of user {notification.recipient_id}"
            )
            raise NotificationAccessDeniedError()

        return notification


class MarkNotificationReadRule(_OwnedNotificationRule):
    """Business logic for marking one notification as read. Idempotent."""

    async def execute(self) -> DomainNotification:
        notification = await self._get_owned_notification()
        if notification.is_read:
            return notification

        return await self.notification_repository.mark_as_read(notification)


class MarkAllNotificationsReadRule:
    """Business logic for marking all of a user's notifications as read."""

    def __init__(
        self, user_id: int, notification_repository: NotificationRepository
    ) -> None:
        self.user_id = user_id
        self.notification_repository = notification_repository

    async def execute(self) -> int:
        updated = await self.notification_repository.mark_all_as_read(self.user_id)
        logger.info(f"📖 Marked {updated} notification(s) read for user {self.user_id}")
        return updated


class DeleteNotificationRule(_OwnedNotificationRule):
    """Business logic for deleting one notification.

    A requester who is not the recipient gets `NotificationAccessDeniedError`
    and the notification is left untouched.
    """

    async def execute(self) -> None:
        notification = await self._get_owned_notification()
        await self.notification_repository.delete(notification)
        logger.info(f"🗑️ Deleted notification {notification.id} of user {self.user.id}")


class ClearNotificationsRule:
    """Business logic for deleting every notification of a user."""

    def __init__(
        self, user_id: int, notification_repository: NotificationRepository
    ) -> None:
        self.user_id = user_id
        self.notification_repository = notification_repository

    async def execute(self) -> int:
        deleted = await self.notification_repository.delete_all_for_user(self.user_id)
        logger.info(f"🗑️ Cleared {deleted} notification(s) of user {self.user_id}")
        return deleted


class SendNotificationRule:
    """Business logic for sending an arbitrary notification on behalf of an admin."""

    def __init__(
        self,
        intent: NotificationIntent,
        sender: DomainUser,
        dispatcher: NotificationDispatcher,
    ) -> None:
        self.intent = intent
        self.sender = sender
        self.dispatcher = dispatcher

    async def execute(self) -> DomainNotification:
        notification = await self.dispatcher.dispatch(self.intent)
        logger.info(
            f"📨 Admin {self.sender.id} sent notification {notification.id} "
            f"to user {notification.recipient_id}"
        )
        return notification


class PurgeExpiredNotificationsRule:
    """Business logic for deleting notifications past their expiry."""

    def __init__(
        self,
        notification_repository: NotificationRepository,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.notification_repository = notification_repository
        self.clock = clock

    async def execute(self) -> int:
        deleted = await self.notification_repository.delete_expired(self.clock())
        if deleted:
            logger.info(f"🧹 Purged {deleted} expired notification(s)")
        return deleted
