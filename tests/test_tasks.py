import asyncio
from datetime import timedelta

from core.utils.datetime import utc_now
from notifications.application.dispatcher import NotificationDispatcher
from notifications.application.rules import PurgeExpiredNotificationsRule
from notifications.domain.entities import NotificationIntent
from notifications.infrastructure.repositories import NotificationRepository
from notifications.infrastructure.tasks import (
    purge_expired_notifications,
    start_expiry_sweeper,
    stop_expiry_sweeper,
)


async def store(session, fake_channel, title, created_at, expires_in_hours=None):
    dispatcher = NotificationDispatcher(
        NotificationRepository(session), fake_channel, clock=lambda: created_at
    )
    return await dispatcher.dispatch(
        NotificationIntent(
            recipient_id=1,
            title=title,
            message=f"{title} message",
            expires_in_hours=expires_in_hours,
        )
    )


async def test_purge_removes_only_expired_rows(session, fake_channel):
    now = utc_now()
    await store(session, fake_channel, "Expired", now - timedelta(hours=3), 1)
    kept = await store(session, fake_channel, "Fresh", now, 1)
    forever = await store(session, fake_channel, "Forever", now - timedelta(days=30))

    deleted = await purge_expired_notifications()

    assert deleted == 1
    repository = NotificationRepository(session)
    remaining = await repository.get_user_notifications(1, limit=10)
    assert {n.id for n in remaining} == {kept.id, forever.id}


async def test_purge_rule_uses_its_clock(session, fake_channel):
    now = utc_now()
    await store(session, fake_channel, "Short lived", now, 1)
    repository = NotificationRepository(session)

    assert await PurgeExpiredNotificationsRule(repository, clock=lambda: now).execute() == 0
    later = now + timedelta(hours=2)
    assert await PurgeExpiredNotificationsRule(repository, clock=lambda: later).execute() == 1


async def test_sweeper_disabled_for_non_positive_interval():
    assert start_expiry_sweeper(0) is None
    await stop_expiry_sweeper(None)


async def test_sweeper_runs_and_stops(session, fake_channel):
    await store(session, fake_channel, "Expired", utc_now() - timedelta(hours=3), 1)
    repository = NotificationRepository(session)
    long_ago = utc_now() - timedelta(days=1)

    task = start_expiry_sweeper(3600)
    assert task is not None
    for _ in range(50):
        if await repository.count_user_notifications(1, now=long_ago) == 0:
            break
        await asyncio.sleep(0.02)

    await stop_expiry_sweeper(task)

    assert task.cancelled()
    assert await repository.count_user_notifications(1, now=long_ago) == 0
