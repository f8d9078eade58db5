from datetime import datetime
from typing import List

from sqlalchemy import delete, func, or_, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import desc, select

from core.utils.datetime import ensure_utc, utc_now

from ..application.ports import NotificationRepository as DomainNotificationRepository
from ..domain.entities import Notification as DomainNotification
from ..domain.entities import NotificationCategory, NotificationPriority
from ..domain.exceptions import NotificationPersistenceError
from .models import Notification


class NotificationRepository(DomainNotificationRepository):
    """Concrete implementation of NotificationRepository backed by the database.

    Write failures are rolled back and surfaced as `NotificationPersistenceError`.
    """

    def __init__(self, session: AsyncSession) -> None:
        """Initialize the repository with a database session.

        Parameters
        ----------
        session : AsyncSession
            Asynchronous SQLAlchemy database session
        """
        self._session = session

    async def create(self, notification: DomainNotification) -> DomainNotification:
        """Create a new notification record in the database.

        Parameters
        ----------
        notification : DomainNotification
            Domain notification entity to be created

        Returns
        -------
        DomainNotification
            Created notification entity with database-assigned values

        Raises
        ------
        NotificationPersistenceError
            If the insert could not be committed
        """
        pydantic_notification = self._to_pydantic_model(notification)
        self._session.add(pydantic_notification)

        await self._commit(f"store notification for user {notification.recipient_id}")
        await self._session.refresh(pydantic_notification)

        return self._to_domain_model(pydantic_notification)

    async def get_by_id(self, notification_id: int) -> DomainNotification | None:
        pydantic_notification = await self._session.get(Notification, notification_id)
        if pydantic_notification is None:
            return None

        return self._to_domain_model(pydantic_notification)

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
            Number of notifications to skip for pagination
        unread_only : bool
            If True, return only unread notifications
        now : datetime | None
            Reference time for expiry

        Returns
        -------
        List[DomainNotification]
            List of notifications matching the criteria
        """
        query = self._visible_to(user_id, unread_only, now)
        query = query.order_by(desc(Notification.created_at), desc(Notification.id))
        query = query.limit(limit).offset(offset)

        result = await self._session.execute(query)
        return [self._to_domain_model(row) for row in result.scalars().all()]

    async def count_user_notifications(
        self, user_id: int, unread_only: bool = False, now: datetime | None = None
    ) -> int:
        subquery = self._visible_to(user_id, unread_only, now).subquery()
        result = await self._session.execute(
            select(func.count()).select_from(subquery)
        )
        return result.scalar_one()

    async def count_unread(self, user_id: int, now: datetime | None = None) -> int:
        return await self.count_user_notifications(user_id, unread_only=True, now=now)

    async def mark_as_read(
        self, notification: DomainNotification
    ) -> DomainNotification:
        pydantic_notification = await self._session.get(Notification, notification.id)
        if pydantic_notification is None:
            return notification

        if not pydantic_notification.is_read:
            pydantic_notification.is_read = True
            self._session.add(pydantic_notification)
            await self._commit(f"mark notification {notification.id} as read")
            await self._session.refresh(pydantic_notification)

        return self._to_domain_model(pydantic_notification)

    async def mark_all_as_read(self, user_id: int) -> int:
        result = await self._session.execute(
            update(Notification)
            .where(Notification.recipient_id == user_id, Notification.is_read == False)  # noqa: E712
            .values(is_read=True)
        )
        await self._commit(f"mark notifications of user {user_id} as read")
        return result.rowcount or 0

    async def delete(self, notification: DomainNotification) -> None:
        await self._session.execute(
            delete(Notification).where(Notification.id == notification.id)
        )
        await self._commit(f"delete notification {notification.id}")

    async def delete_all_for_user(self, user_id: int) -> int:
        result = await self._session.execute(
            delete(Notification).where(Notification.recipient_id == user_id)
        )
        await self._commit(f"clear notifications of user {user_id}")
        return result.rowcount or 0

    async def delete_expired(self, now: datetime) -> int:
        result = await self._session.execute(
            delete(Notification).where(
                Notification.expires_at.is_not(None),
                Notification.expires_at < ensure_utc(now),
            )
        )
        await self._commit("purge expired notifications")
        return result.rowcount or 0

    def _visible_to(self, user_id: int, unread_only: bool, now: datetime | None):
        now = ensure_utc(now or utc_now())
        query = select(Notification).where(
            Notification.recipient_id == user_id,
            or_(Notification.expires_at.is_(None), Notification.expires_at >= now),
        )

        if unread_only:
            query = query.where(Notification.is_read == False)  # noqa: E712

        return query

    async def _commit(self, action: str) -> None:
        try:
            await self._session.commit()
        except SQLAlchemyError as e:
            await self._session.rollback()
            raise NotificationPersistenceError(f"Failed to {action}") from e

    def _to_pydantic_model(
        self, domain_notification: DomainNotification
    ) -> Notification:
        pydantic_notification = Notification(
            recipient_id=domain_notification.recipient_id,
            title=domain_notification.title,
            message=domain_notification.message,
            category=NotificationCategory(domain_notification.category).value,
            priority=NotificationPriority(domain_notification.priority).value,
            is_read=domain_notification.is_read,
            notification_metadata=domain_notification.metadata,
            action_url=domain_notification.action_url,
            expires_at=ensure_utc(domain_notification.expires_at),
        )
        if domain_notification.created_at is not None:
            pydantic_notification.created_at = ensure_utc(
                domain_notification.created_at
            )

        return pydantic_notification

    def _to_domain_model(
        self, pydantic_notification: Notification
    ) -> DomainNotification:
        return DomainNotification(
            id=pydantic_notification.id,
            recipient_id=pydantic_notification.recipient_id,
            title=pydantic_notification.title,
            message=pydantic_notification.message,
            category=NotificationCategory(pydantic_notification.category),
            priority=NotificationPriority(pydantic_notification.priority),
            is_read=pydantic_notification.is_read,
            metadata=pydantic_notification.notification_metadata or {},
            action_url=pydantic_notification.action_url,
            created_at=ensure_utc(pydantic_notification.created_at),
            expires_at=ensure_utc(pydantic_notification.expires_at),
        )
