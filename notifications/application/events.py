from typing import Awaitable, Iterable, List, TypeVar

from loguru import logger

from config.base import Settings, get_settings
from core.infrastructure.factory import get_data_sanitizer
from reports.application.ports import ReportRepository
from reports.domain.entities import ReportStatus
from sites.application.ports import SiteRepository
from users.application.ports import UserRepository

from ..domain.entities import Notification as DomainNotification
from ..domain.entities import NotificationCategory, NotificationIntent
from ..domain.entities import NotificationPriority
from ..domain.exceptions import RecipientResolutionError
from ..domain.metadata import (
    AccountDeactivatedMetadata,
    ReportReviewedMetadata,
    ReportSubmittedMetadata,
    SiteAssignmentMetadata,
    TestNotificationMetadata,
)
from .dispatcher import NotificationDispatcher

T = TypeVar("T")

REVIEW_OUTCOMES = {
    ReportStatus.APPROVED.value.lower(): (
        NotificationCategory.SUCCESS,
        "✅ Report Approved",
    ),
    ReportStatus.REJECTED.value.lower(): (
        NotificationCategory.WARNING,
        "⚠️ Report Requires Changes",
    ),
}
DEFAULT_REVIEW_OUTCOME = (NotificationCategory.INFO, "📝 Report Updated")


class NotificationEventProducer:
    """Turn domain events into notification intents for the dispatcher.

    Producers run after the triggering change has been committed, so they
    never fail the caller: an unresolvable recipient is logged as a warning
    and any other failure is logged with its traceback. Both return None.

    Parameters
    ----------
    dispatcher : NotificationDispatcher
        Dispatcher used to store and push each notification.
    users : UserRepository
        Directory lookup for users.
    sites : SiteRepository
        Directory lookup for sites.
    reports : ReportRepository
        Directory lookup for reports.
    settings : Settings | None, optional
        Application settings; defaults to `get_settings()`.
    """

    def __init__(
        self,
        dispatcher: NotificationDispatcher,
        users: UserRepository,
        sites: SiteRepository,
        reports: ReportRepository,
        settings: Settings | None = None,
    ) -> None:
        self.dispatcher = dispatcher
        self.users = users
        self.sites = sites
        self.reports = reports
        self.settings = settings or get_settings()

    async def report_submitted(self, report_id: int) -> DomainNotification | None:
        """Tell the admin who owns the report's site that a report came in."""
        return await self._guarded(
            "report_submitted", self._report_submitted(report_id)
        )

    async def report_submitted_to_admins(
        self, report_id: int
    ) -> List[DomainNotification]:
        """Tell every active admin that a report came in."""
        notifications = await self._guarded(
            "report_submitted_to_admins", self._report_submitted_to_admins(report_id)
        )
        return notifications or []

    async def report_reviewed(
        self, report_id: int, status: str, reviewer_id: int
    ) -> DomainNotification | None:
        """Tell the inspector of a report about the outcome of its review."""
        return await self._guarded(
            "report_reviewed", self._report_reviewed(report_id, status, reviewer_id)
        )

    async def engineer_assigned(
        self, engineer_id: int, site_id: int, assigned_by_id: int
    ) -> DomainNotification | None:
        """Tell an engineer they were assigned to a site."""
        return await self._guarded(
            "engineer_assigned",
            self._engineer_assigned(engineer_id, site_id, assigned_by_id),
        )

    async def engineers_assigned(
        self, engineer_ids: Iterable[int], site_id: int, assigned_by_id: int
    ) -> List[DomainNotification]:
        """Bulk form of `engineer_assigned`.

        Duplicate ids are notified once. Engineers that cannot be notified are
        skipped, so the result may be shorter than the input.
        """
        notifications = []
        for engineer_id in dict.fromkeys(engineer_ids):
            notification = await self.engineer_assigned(
                engineer_id, site_id, assigned_by_id
            )
            if notification is not None:
                notifications.append(notification)

        logger.info(
            f"🔔 Sent {len(notifications)} assignment notification(s) for site {site_id}"
        )
        return notifications

    async def account_deactivated(
        self, user_id: int, deactivated_by_id: int
    ) -> DomainNotification | None:
        """Tell a user their account was deactivated. The notice expires."""
        return await self._guarded(
            "account_deactivated",
            self._account_deactivated(user_id, deactivated_by_id),
        )

    async def test_notification(self, user_id: int) -> DomainNotification | None:
        """Send a low-priority self-test notification."""
        return await self._guarded("test_notification", self._test_notification(user_id))

    async def _report_submitted(self, report_id: int) -> DomainNotification:
        report = await self.reports.get(report_id)
        if report is None:
            raise RecipientResolutionError(f"Report {report_id} not found")

        site = await self.sites.get(report.site_id) if report.site_id else None
        if site is None or site.created_by is None:
            raise RecipientResolutionError(
                f"Site or site owner not found for report {report_id}"
            )

        admin = await self.users.get(site.created_by)
        if admin is None:
            raise RecipientResolutionError(f"Admin {site.created_by} not found")

        engineer = await self.users.get(report.inspector_id)
        engineer_name = engineer.name if engineer else "Unknown Engineer"

        metadata = ReportSubmittedMetadata(
            related_report_id=report.id,
            related_site_id=site.id,
            report_title=report.title,
            site_name=site.name,
            engineer_id=report.inspector_id,
            engineer_name=engineer.name if engineer else None,
            submitted_at=report.created_at,
        )
        return await self.dispatcher.dispatch(
            NotificationIntent(
                recipient_id=admin.id,
                title="📋 New Report Submitted",
                message=(
                    f'Engineer {engineer_name} submitted a new report for site: '
                    f'"{site.name}". Report: {report.title}'
                ),
                category=NotificationCategory.INFO,
                priority=NotificationPriority.HIGH,
                metadata=metadata.to_dict(),
                action_url=f"/admin/reports/{report.id}",
            )
        )

    async def _report_submitted_to_admins(
        self, report_id: int
    ) -> List[DomainNotification]:
        report = await self.reports.get(report_id)
        if report is None:
            raise RecipientResolutionError(f"Report {report_id} not found")

        site = await self.sites.get(report.site_id) if report.site_id else None
        site_name = site.name if site else "Unknown Site"
        engineer = await self.users.get(report.inspector_id)
        engineer_name = engineer.name if engineer else "Unknown Engineer"

        admins = await self.users.list_admins()
        logger.info(f"🔔 Notifying {len(admins)} admin(s) about report {report_id}")

        notifications = []
        for admin in admins:
            metadata = ReportSubmittedMetadata(
                related_report_id=report.id,
                related_site_id=site.id if site else None,
                report_title=report.title,
                site_name=site_name,
                engineer_id=report.inspector_id,
                engineer_name=engineer.name if engineer else None,
                submitted_at=report.created_at,
            )
            notifications.append(
                await self.dispatcher.dispatch(
                    NotificationIntent(
                        recipient_id=admin.id,
                        title="📋 New Report Submitted",
                        message=(
                            f"Engineer {engineer_name} submitted a new report "
                            f'for site: "{site_name}"'
                        ),
                        category=NotificationCategory.INFO,
                        priority=NotificationPriority.HIGH,
                        metadata=metadata.to_dict(),
                        action_url=f"/admin/reports/{report.id}",
                    )
                )
            )

        return notifications

    async def _report_reviewed(
        self, report_id: int, status: str, reviewer_id: int
    ) -> DomainNotification:
        report = await self.reports.get(report_id)
        if report is None:
            raise RecipientResolutionError(f"Report {report_id} not found")

        inspector = await self.users.get(report.inspector_id)
        if inspector is None:
            raise RecipientResolutionError(
                f"Inspector {report.inspector_id} of report {report_id} not found"
            )

        site = await self.sites.get(report.site_id) if report.site_id else None
        site_name = site.name if site else "site"
        reviewer = await self.users.get(reviewer_id)

        status_key = str(status).strip().lower()
        category, title = REVIEW_OUTCOMES.get(status_key, DEFAULT_REVIEW_OUTCOME)

        message = f'Your report for "{site_name}" has been {status}.'
        if status_key == ReportStatus.REJECTED.value.lower():
            feedback = (
                f"Feedback: {report.review_comment}"
                if report.review_comment
                else "Please review and resubmit."
            )
            message = f"{message} {feedback}"

        metadata = ReportReviewedMetadata(
            related_report_id=report.id,
            related_site_id=site.id if site else None,
            report_title=report.title,
            site_name=site.name if site else None,
            status=str(status),
            reviewer_id=reviewer_id,
            reviewer_name=reviewer.name if reviewer else "Admin",
            reviewed_at=self.dispatcher.clock(),
        )
        return await self.dispatcher.dispatch(
            NotificationIntent(
                recipient_id=inspector.id,
                title=title,
                message=message,
                category=category,
                priority=NotificationPriority.MEDIUM,
                metadata=metadata.to_dict(),
                action_url=f"/reports/{report.id}",
            )
        )

    async def _engineer_assigned(
        self, engineer_id: int, site_id: int, assigned_by_id: int
    ) -> DomainNotification:
        site = await self.sites.get(site_id)
        engineer = await self.users.get(engineer_id)
        if site is None or engineer is None:
            raise RecipientResolutionError(
                f"Site {site_id} or engineer {engineer_id} not found"
            )

        assigned_by = await self.users.get(assigned_by_id)

        metadata = SiteAssignmentMetadata(
            related_site_id=site.id,
            site_name=site.name,
            site_location=site.display_location,
            assigned_by=assigned_by_id,
            assigned_by_name=assigned_by.name if assigned_by else "Admin",
            assigned_at=self.dispatcher.clock(),
        )
        return await self.dispatcher.dispatch(
            NotificationIntent(
                recipient_id=engineer.id,
                title="🎯 New Site Assignment",
                message=(
                    f'You have been assigned to site: "{site.name}" '
                    f"at {site.location or site.city}."
                ),
                category=NotificationCategory.INFO,
                priority=NotificationPriority.MEDIUM,
                metadata=metadata.to_dict(),
                action_url=f"/sites/{site.id}",
            )
        )

    async def _account_deactivated(
        self, user_id: int, deactivated_by_id: int
    ) -> DomainNotification:
        user = await self.users.get(user_id)
        if user is None:
            raise RecipientResolutionError(f"User {user_id} not found")

        admin = await self.users.get(deactivated_by_id)
        admin_name = admin.name if admin else "Administrator"

        metadata = AccountDeactivatedMetadata(
            deactivated_by=deactivated_by_id,
            deactivated_by_name=admin.name if admin else None,
            deactivated_at=self.dispatcher.clock(),
        )
        return await self.dispatcher.dispatch(
            NotificationIntent(
                recipient_id=user.id,
                title="🚫 Account Deactivated",
                message=(
                    f"Your account has been deactivated by {admin_name}. Please "
                    "contact support if you believe this is an error."
                ),
                category=NotificationCategory.ERROR,
                priority=NotificationPriority.URGENT,
                metadata=metadata.to_dict(),
                expires_in_hours=self.settings.deactivation_notice_hours,
            )
        )

    async def _test_notification(self, user_id: int) -> DomainNotification:
        user = await self.users.get(user_id)
        if user is None:
            raise RecipientResolutionError(f"User {user_id} not found")

        metadata = TestNotificationMetadata(sent_at=self.dispatcher.clock())
        return await self.dispatcher.dispatch(
            NotificationIntent(
                recipient_id=user.id,
                title="🔔 Test Notification",
                message=(
                    f"This is a test notification sent to {user.name}. "
                    "If you can see this, notifications are working!"
                ),
                category=NotificationCategory.INFO,
                priority=NotificationPriority.LOW,
                metadata=metadata.to_dict(),
                action_url="/dashboard",
            )
        )

    async def _guarded(self, producer: str, operation: Awaitable[T]) -> T | None:
        try:
            return await operation

        except RecipientResolutionError as e:
            logger.warning(f"⚠️ {producer} skipped: {e.detail}")
            return None

        except Exception as e:
            sanitizer = await get_data_sanitizer()
            logger.opt(exception=e).error(
                f"❌ {producer} failed -> {type(e).__name__}: "
                f"{sanitizer.sanitize_exception_for_logging(e)}"
            )
            return None
