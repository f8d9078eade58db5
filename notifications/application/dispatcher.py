import asyncio
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, Set

from loguru import logger

from core.infrastructure.factory import get_data_sanitizer
from core.utils.datetime import isoformat_or_none, utc_now

from ..domain.entities import Notification as DomainNotification
from ..domain.entities import NotificationCategory, NotificationIntent
from ..domain.entities import NotificationPriority
from ..domain.exceptions import DeliveryChannelError, NotificationValidationError
from .ports import DeliveryChannel, NotificationRepository

NEW_NOTIFICATION_EVENT = "newNotification"

# Strong references to in-flight pushes; the event loop only keeps weak ones.
_pending_pushes: Set[asyncio.Task] = set()


def serialize_notification(notification: DomainNotification) -> Dict[str, Any]:
    """Build the live push payload for a stored notification."""
    return {
        "id": notification.id,
        "title": notification.title,
        "message": notification.message,
        "category": NotificationCategory(notification.category).value,
        "priority": NotificationPriority(notification.priority).value,
        "created_at": isoformat_or_none(notification.created_at),
        "action_url": notification.action_url,
        "is_read": False,
    }


async def wait_for_pending_pushes(timeout: float | None = None) -> None:
    """Wait for scheduled pushes to settle, e.g. on shutdown."""
    if not _pending_pushes:
        return

    await asyncio.wait(set(_pending_pushes), timeout=timeout)


class NotificationDispatcher:
    """Persist a notification, then push it to the recipient if they are online.

    The durable write is the only step that can fail a dispatch. Presence
    lookup and the push itself run best-effort: the push is scheduled on the
    running loop and never awaited here, and its failures are only logged.

    Parameters
    ----------
    repository : NotificationRepository
        Store the notification is written to.
    channel : DeliveryChannel
        Live delivery channel used for the presence check and the push.
    clock : Callable[[], datetime], default=utc_now
        Source of the creation time; `expires_at` is derived from it.
    """

    def __init__(
        self,
        repository: NotificationRepository,
        channel: DeliveryChannel,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.repository = repository
        self.channel = channel
        self.clock = clock

    async def dispatch(self, intent: NotificationIntent) -> DomainNotification:
        """Store `intent` as a notification and schedule its live push.

        Parameters
        ----------
        intent : NotificationIntent
            What to send and to whom.

        Returns
        -------
        DomainNotification
            The stored notification, with ID and timestamps assigned.

        Raises
        ------
        NotificationValidationError
            If recipient, title or message is missing, or the expiry is not
            positive. Nothing is written in that case.
        NotificationPersistenceError
            If the store rejected the write. No push is attempted.
        """
        notification = self._build_notification(intent)
        created_notification = await self.repository.create(notification)

        logger.info(
            f"📬 Created notification {created_notification.id} "
            f"for user {created_notification.recipient_id}"
        )

        await self._schedule_push(created_notification)
        return created_notification

    def _build_notification(self, intent: NotificationIntent) -> DomainNotification:
        if intent.recipient_id is None:
            raise NotificationValidationError("Recipient is required")

        title = (intent.title or "").strip()
        if not title:
            raise NotificationValidationError("Title is required")

        message = (intent.message or "").strip()
        if not message:
            raise NotificationValidationError("Message is required")

        if intent.expires_in_hours is not None and intent.expires_in_hours <= 0:
            raise NotificationValidationError("Expiry must be a positive number of hours")

        created_at = self.clock()
        expires_at = (
            created_at + timedelta(hours=intent.expires_in_hours)
            if intent.expires_in_hours is not None
            else None
        )

        return DomainNotification(
            recipient_id=intent.recipient_id,
            title=title,
            message=message,
            category=intent.category,
            priority=intent.priority,
            metadata=dict(intent.metadata or {}),
            action_url=intent.action_url,
            created_at=created_at,
            expires_at=expires_at,
        )

    async def _schedule_push(self, notification: DomainNotification) -> None:
        user_id = notification.recipient_id

        try:
            if not self.channel.is_present(user_id):
                logger.debug(
                    f"💤 User {user_id} offline, notification {notification.id} "
                    "left for polling"
                )
                return

            payload = serialize_notification(notification)
            task = asyncio.get_running_loop().create_task(
                self._push(user_id, notification.id, payload)
            )
            _pending_pushes.add(task)
            task.add_done_callback(_pending_pushes.discard)

        except Exception as e:
            await self._log_delivery_failure(notification.id, user_id, e)

    async def _push(
        self, user_id: int, notification_id: int, payload: Dict[str, Any]
    ) -> None:
        try:
            delivered = await self.channel.emit_to_user(
                user_id, NEW_NOTIFICATION_EVENT, payload
            )
            logger.info(
                f"📡 Pushed notification {notification_id} to user {user_id} "
                f"on {delivered} connection(s)"
            )
        except Exception as e:
            await self._log_delivery_failure(notification_id, user_id, e)

    async def _log_delivery_failure(
        self, notification_id: int, user_id: int, exc: Exception
    ) -> None:
        sanitizer = await get_data_sanitizer()
        error = DeliveryChannelError(
            f"Push of notification {notification_id} to user {user_id} failed: "
            f"{sanitizer.sanitize_exception_for_logging(exc)}"
        )
        logger.error(f"📝 {type(error).__name__}: {error.detail}")
