from datetime import UTC, datetime, timedelta

import pytest

from notifications.application.dispatcher import (
    NotificationDispatcher,
    wait_for_pending_pushes,
)
from notifications.application.events import NotificationEventProducer
from notifications.domain.entities import NotificationCategory, NotificationPriority
from notifications.domain.exceptions import NotificationPersistenceError
from notifications.infrastructure.repositories import NotificationRepository
from reports.domain.entities import ReportStatus
from reports.infrastructure.repositories import ReportRepository
from sites.infrastructure.repositories import SiteRepository
from users.infrastructure.repositories import UserRepository

FIXED_NOW = datetime(2026, 6, 1, 8, 0, tzinfo=UTC)


@pytest.fixture
def repository(session):
    return NotificationRepository(session)


@pytest.fixture
def producer(session, repository, fake_channel, settings):
    dispatcher = NotificationDispatcher(repository, fake_channel, clock=lambda: FIXED_NOW)
    return NotificationEventProducer(
        dispatcher=dispatcher,
        users=UserRepository(session),
        sites=SiteRepository(session),
        reports=ReportRepository(session),
        settings=settings,
    )


@pytest.fixture
async def site_with_report(session, seed):
    admin = await seed.admin("Ada Admin")
    engineer = await seed.user("Eve Engineer")
    site = await seed.site("Tower A", created_by=admin.id)
    report = await seed.report(engineer.id, site.id, title="Slab cure check")
    return admin, engineer, site, report


async def test_report_submitted_notifies_site_owner(producer, site_with_report):
    admin, engineer, site, report = site_with_report

    notification = await producer.report_submitted(report.id)

    assert notification.recipient_id == admin.id
    assert notification.title == "📋 New Report Submitted"
    assert notification.message == (
        'Engineer Eve Engineer submitted a new report for site: "Tower A". '
        "Report: Slab cure check"
    )
    assert notification.priority == NotificationPriority.HIGH
    assert notification.category == NotificationCategory.INFO
    assert notification.action_url == f"/admin/reports/{report.id}"
    assert notification.metadata["related_report_id"] == report.id
    assert notification.metadata["related_site_id"] == site.id
    assert notification.metadata["engineer_name"] == "Eve Engineer"


async def test_report_submitted_without_site_owner_is_a_no_op(
    producer, repository, seed
):
    engineer = await seed.user()
    site = await seed.site(created_by=None)
    report = await seed.report(engineer.id, site.id)

    assert await producer.report_submitted(report.id) is None
    assert await repository.count_user_notifications(engineer.id) == 0


async def test_unknown_report_is_a_no_op(producer):
    assert await producer.report_submitted(9999) is None
    assert await producer.report_reviewed(9999, "approved", 1) is None


async def test_report_submitted_to_admins_notifies_every_active_admin(producer, seed):
    first_admin = await seed.admin("First Admin")
    second_admin = await seed.admin("Second Admin")
    await seed.user("Retired Admin", role=first_admin.role, is_active=False)
    engineer = await seed.user()
    site = await seed.site(created_by=first_admin.id)
    report = await seed.report(engineer.id, site.id)

    notifications = await producer.report_submitted_to_admins(report.id)

    assert sorted(n.recipient_id for n in notifications) == sorted(
        [first_admin.id, second_admin.id]
    )


@pytest.mark.parametrize(
    ("status", "category", "title"),
    [
        ("Approved", NotificationCategory.SUCCESS, "✅ Report Approved"),
        ("APPROVED", NotificationCategory.SUCCESS, "✅ Report Approved"),
        ("rejected", NotificationCategory.WARNING, "⚠️ Report Requires Changes"),
        ("Under Review", NotificationCategory.INFO, "📝 Report Updated"),
    ],
)
async def test_report_reviewed_maps_status(
    producer, site_with_report, status, category, title
):
    admin, engineer, site, report = site_with_report

    notification = await producer.report_reviewed(report.id, status, admin.id)

    assert notification.recipient_id == engineer.id
    assert notification.category == category
    assert notification.title == title
    assert notification.priority == NotificationPriority.MEDIUM
    assert notification.action_url == f"/reports/{report.id}"
    assert notification.metadata["reviewer_name"] == "Ada Admin"
    assert notification.message.startswith(f'Your report for "Tower A" has been {status}.')


async def test_rejection_carries_reviewer_feedback(producer, seed):
    admin = await seed.admin()
    engineer = await seed.user()
    site = await seed.site(created_by=admin.id)
    report = await seed.report(
        engineer.id,
        site.id,
        status=ReportStatus.REJECTED,
        review_comment="Missing rebar photos",
    )

    notification = await producer.report_reviewed(report.id, "Rejected", admin.id)

    assert notification.message == (
        'Your report for "Tower A" has been Rejected. Feedback: Missing rebar photos'
    )


async def test_rejection_without_feedback_asks_to_resubmit(producer, site_with_report):
    admin, _, _, report = site_with_report

    notification = await producer.report_reviewed(report.id, "Rejected", admin.id)

    assert notification.message.endswith("Please review and resubmit.")


async def test_engineer_assigned(producer, seed):
    admin = await seed.admin()
    engineer = await seed.user()
    site = await seed.site("Bridge 9", created_by=admin.id, location="Harbour Rd")

    notification = await producer.engineer_assigned(engineer.id, site.id, admin.id)

    assert notification.recipient_id == engineer.id
    assert notification.title == "🎯 New Site Assignment"
    assert notification.message == (
        'You have been assigned to site: "Bridge 9" at Harbour Rd.'
    )
    assert notification.action_url == f"/sites/{site.id}"
    assert notification.metadata["related_site_id"] == site.id
    assert notification.metadata["assigned_by_name"] == "Ada Admin"


async def test_engineers_assigned_deduplicates_and_skips_unknown(producer, seed):
    admin = await seed.admin()
    first = await seed.user("First Engineer")
    second = await seed.user("Second Engineer")
    site = await seed.site(created_by=admin.id)

    notifications = await producer.engineers_assigned(
        [first.id, second.id, first.id, 9999], site.id, admin.id
    )

    assert [n.recipient_id for n in notifications] == [first.id, second.id]


async def test_account_deactivated_notice_expires(producer, seed, settings):
    admin = await seed.admin("Olu Admin")
    engineer = await seed.user()

    notification = await producer.account_deactivated(engineer.id, admin.id)

    assert notification.priority == NotificationPriority.URGENT
    assert notification.category == NotificationCategory.ERROR
    assert notification.title == "🚫 Account Deactivated"
    assert "deactivated by Olu Admin" in notification.message
    assert notification.action_url is None
    assert notification.expires_at == FIXED_NOW + timedelta(
        hours=settings.deactivation_notice_hours
    )


async def test_test_notification(producer, seed, fake_channel):
    user = await seed.user("Tunde")
    fake_channel.present.add(user.id)

    notification = await producer.test_notification(user.id)
    await wait_for_pending_pushes()

    assert notification.priority == NotificationPriority.LOW
    assert notification.action_url == "/dashboard"
    assert "sent to Tunde" in notification.message
    assert notification.metadata["test"] is True
    assert [event for _, event, _ in fake_channel.emitted] == ["newNotification"]


async def test_test_notification_for_unknown_user_is_a_no_op(producer):
    assert await producer.test_notification(9999) is None


async def test_store_failure_is_swallowed(producer, seed, monkeypatch):
    user = await seed.user()

    async def failing_create(notification):
        raise NotificationPersistenceError("store unavailable")

    monkeypatch.setattr(producer.dispatcher.repository, "create", failing_create)

    assert await producer.test_notification(user.id) is None
