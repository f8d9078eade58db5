from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Dict, List

from ..domain.entities import Connection
from ..domain.entities import Notification as DomainNotification


class NotificationRepository(ABC):
    """Abstract base class for the notification store.

    Read queries take the caller's notion of `now` so that expired rows are
    excluded consistently, whatever the sweeper has or has not purged yet.
    """

    @abstractmethod
    async def create(self, notification: DomainNotification) -> DomainNotification:
        """Store a new notification.

        Parameters
        ----------
        notification : DomainNotification
            Notification entity to create.

        Returns
        -------
        DomainNotification
            Created notification with ID and creation time assigned.
        """
        pass

    @abstractmethod
    async def get_by_id(self, notification_id: int) -> DomainNotification | None:
        """Retrieve a notification by ID, regardless of owner."""
        pass

    @abstractmethod
    async def get_user_notifications(
        self,
        user_id: int,
        limit: int,
        offset: int = 0,
        unread_only: bool = False,
        now: datetime | None = None,
    ) -> List[DomainNotification]:
        """Retrieve non-expired notifications of one user, newest first.

        Parameters
        ----------
        user_id : int
            ID of the recipient
        limit : int
            Maximum number of notifications to return
        offset : int
            Number of notifications to skip
        unread_only : bool
            If True, return only unread notifications
        now : datetime | None
            Reference time for expiry; defaults to the current time

        Returns
        -------
        List[DomainNotification]
        """
        pass

    @abstractmethod
    async def count_user_notifications(
        self, user_id: int, unread_only: bool = False, now: datetime | None = None
    ) -> int:
        pass

    @abstractmethod
    async def count_unread(self, user_id: int, now: datetime | None = None) -> int:
        pass

    @abstractmethod
    async def mark_as_read(self, notification: DomainNotification) -> DomainNotification:
        """Set `is_read` on an existing notification. Idempotent."""
        pass

    @abstractmethod
    async def mark_all_as_read(self, user_id: int) -> int:
        """Mark every unread notification of a user as read.

        Returns
        -------
        int
            Number of rows changed.
        """
        pass

    @abstractmethod
    async def delete(self, notification: DomainNotification) -> None:
        pass

    @abstractmethod
    async def delete_all_for_user(self, user_id: int) -> int:
        pass

    @abstractmethod
    async def delete_expired(self, now: datetime) -> int:
        """Delete notifications whose `expires_at` is at or before `now`.

        Returns
        -------
        int
            Number of rows deleted.
        """
        pass


class PresenceRegistry(ABC):
    """Process-local map of which users currently have live connections.

    Only the delivery channel mutates the registry; everything else reads it.
    """

    @abstractmethod
    def add(self, connection: Connection) -> None:
        """Track a freshly accepted connection (not yet tied to a user)."""
        pass

    @abstractmethod
    def register(self, connection_id: str, user_id: int) -> Connection:
        """Associate a tracked connection with a user.

        A connection already registered to another user is moved over, so a
        connection is never present for two users at once.
        """
        pass

    @abstractmethod
    def unregister(self, connection_id: str) -> Connection | None:
        pass

    @abstractmethod
    def remove(self, connection_id: str) -> Connection | None:
        pass

    @abstractmethod
    def get(self, connection_id: str) -> Connection | None:
        pass

    @abstractmethod
    def connections_for(self, user_id: int) -> List[Connection]:
        pass

    @abstractmethod
    def is_present(self, user_id: int) -> bool:
        pass

    @abstractmethod
    def snapshot(self) -> Dict[str, Any]:
        """Summarize the registry for status endpoints.

        Returns
        -------
        Dict[str, Any]
            `total_connections`, `registered_connections`, `online_users` and
            a `users` map of user id to connection count.
        """
        pass


class DeliveryChannel(ABC):
    """Best-effort live push to connected users."""

    @abstractmethod
    def is_present(self, user_id: int) -> bool:
        pass

    @abstractmethod
    async def emit_to_user(
        self, user_id: int, event: str, payload: Dict[str, Any]
    ) -> int:
        """Send `event` to every registered connection of `user_id`.

        Returns
        -------
        int
            Number of connections the event was written to.
        """
        pass
