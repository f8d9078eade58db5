import asyncio

from loguru import logger

from config.database import database_session
from core.infrastructure.factory import get_data_sanitizer

from ..application.rules import PurgeExpiredNotificationsRule
from .repositories import NotificationRepository


async def purge_expired_notifications() -> int:
    """Run one sweep of the expired-notification purge in its own session.

    Returns
    -------
    int
        Number of notifications deleted.
    """
    async with database_session() as session:
        purge_rule = PurgeExpiredNotificationsRule(NotificationRepository(session))
        return await purge_rule.execute()


async def run_expiry_sweeper(interval_seconds: float) -> None:
    """Purge expired notifications every `interval_seconds` until cancelled.

    A failed sweep is logged and retried on the next tick.
    """
    logger.info(f"🧹 Expiry sweeper started (every {interval_seconds}s)")

    while True:
        try:
            await purge_expired_notifications()
        except asyncio.CancelledError:
            raise
        except Exception as e:
            sanitizer = await get_data_sanitizer()
            logger.error(
                f"🔴 Expiry sweep failed -> {type(e).__name__}: "
                f"{sanitizer.sanitize_exception_for_logging(e)}"
            )

        await asyncio.sleep(interval_seconds)


def start_expiry_sweeper(interval_seconds: float) -> asyncio.Task | None:
    """Schedule the sweeper on the running loop. Returns None when disabled."""
    if interval_seconds <= 0:
        logger.info("🧹 Expiry sweeper disabled")
        return None

    return asyncio.get_running_loop().create_task(
        run_expiry_sweeper(interval_seconds), name="notification-expiry-sweeper"
    )


async def stop_expiry_sweeper(task: asyncio.Task | None) -> None:
    if task is None:
        return

    task.cancel()
    try:
        await task
    except asyncio.CancelledError:
        pass

    logger.info("🧹 Expiry sweeper stopped")
