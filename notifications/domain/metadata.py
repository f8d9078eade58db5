"""Typed metadata attached by the domain event producers.

Every model dumps to the plain dict stored on the notification. Keys that
point at other records use the `related_<kind>_id` form so clients can link
back to them.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict


class NotificationMetadata(BaseModel):
    model_config = ConfigDict(extra="forbid")

    def to_dict(self) -> dict:
        return self.model_dump(mode="json", exclude_none=True)


class ReportSubmittedMetadata(NotificationMetadata):
    related_report_id: int
    related_site_id: int | None = None
    report_title: str
    site_name: str
    engineer_id: int | None = None
    engineer_name: str | None = None
    submitted_at: datetime | None = None


class ReportReviewedMetadata(NotificationMetadata):
    related_report_id: int
    related_site_id: int | None = None
    report_title: str
    site_name: str | None = None
    status: str
    reviewer_id: int
    reviewer_name: str
    reviewed_at: datetime


class SiteAssignmentMetadata(NotificationMetadata):
    related_site_id: int
    site_name: str
    site_location: str
    assigned_by: int
    assigned_by_name: str
    assigned_at: datetime


class AccountDeactivatedMetadata(NotificationMetadata):
    action: str = "account_deactivated"
    deactivated_by: int
    deactivated_by_name: str | None = None
    deactivated_at: datetime


class TestNotificationMetadata(NotificationMetadata):
    __test__ = False

    test: bool = True
    sent_at: datetime
