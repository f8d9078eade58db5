from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from config.base import Settings, get_settings
from config.database import get_database_session
from reports.infrastructure.factory import get_report_repository
from reports.infrastructure.repositories import ReportRepository
from sites.infrastructure.factory import get_site_repository
from sites.infrastructure.repositories import SiteRepository
from users.infrastructure.factory import get_user_repository
from users.infrastructure.repositories import UserRepository

from ..application.dispatcher import NotificationDispatcher
from ..application.events import NotificationEventProducer
from .channel import WebSocketDeliveryChannel
from .presence import InMemoryPresenceRegistry
from .repositories import NotificationRepository

_presence_registry = None
_delivery_channel = None


async def get_presence_registry() -> InMemoryPresenceRegistry:
    """Provide the process-wide `InMemoryPresenceRegistry` singleton.

    Returns
    -------
    InMemoryPresenceRegistry
        Instance of InMemoryPresenceRegistry
    """
    global _presence_registry

    if _presence_registry is None:
        _presence_registry = InMemoryPresenceRegistry()

    return _presence_registry


async def get_delivery_channel() -> WebSocketDeliveryChannel:
    """Provide the process-wide `WebSocketDeliveryChannel` singleton.

    Returns
    -------
    WebSocketDeliveryChannel
        Channel bound to the shared presence registry
    """
    global _delivery_channel

    if _delivery_channel is None:
        _delivery_channel = WebSocketDeliveryChannel(await get_presence_registry())

    return _delivery_channel


def reset_delivery_channel() -> None:
    """Drop the channel and registry singletons (shutdown and tests)."""
    global _presence_registry, _delivery_channel

    _presence_registry = None
    _delivery_channel = None


async def get_notification_repository(
    session: AsyncSession = Depends(get_database_session),
) -> NotificationRepository:
    """Provide a NotificationRepository instance.

    Parameters
    ----------
    session : AsyncSession
        Asynchronous SQLAlchemy database session, injected as a dependency

    Returns
    -------
    NotificationRepository
        Instance of NotificationRepository
    """
    return NotificationRepository(session)


async def get_notification_dispatcher(
    repository: NotificationRepository = Depends(get_notification_repository),
    channel: WebSocketDeliveryChannel = Depends(get_delivery_channel),
) -> NotificationDispatcher:
    """Provide a NotificationDispatcher wired to the request's session.

    Returns
    -------
    NotificationDispatcher
        Dispatcher using the shared WebSocket delivery channel
    """
    return NotificationDispatcher(repository=repository, channel=channel)


async def get_notification_event_producer(
    dispatcher: NotificationDispatcher = Depends(get_notification_dispatcher),
    users: UserRepository = Depends(get_user_repository),
    sites: SiteRepository = Depends(get_site_repository),
    reports: ReportRepository = Depends(get_report_repository),
    settings: Settings = Depends(get_settings),
) -> NotificationEventProducer:
    """Provide a NotificationEventProducer for the current request.

    Returns
    -------
    NotificationEventProducer
        Producer resolving recipients through the directory repositories
    """
    return NotificationEventProducer(
        dispatcher=dispatcher,
        users=users,
        sites=sites,
        reports=reports,
        settings=settings,
    )
