from datetime import datetime
from enum import StrEnum

from pydantic import dataclasses


class ReportStatus(StrEnum):
    """Lifecycle states of an inspection report."""

    PENDING = "Pending"
    SUBMITTED = "Submitted"
    UNDER_REVIEW = "Under Review"
    APPROVED = "Approved"
    REJECTED = "Rejected"


@dataclasses.dataclass
class Report:
    """Core domain entity representing an inspection report.

    Attributes
    ----------
    title: str
        Title of the report.
    inspector_id: int
        ID of the engineer who wrote the report.
    site_id: int | None, optional
        ID of the site the report belongs to.
    status: ReportStatus, default=ReportStatus.PENDING
        Review state of the report.
    review_comment: str | None, optional
        Reviewer feedback, set when the report is reviewed.
    created_at: datetime | None, optional
        Datetime when the report was created.
    id: int | None, optional
        Unique identifier for report.
    """

    title: str
    inspector_id: int
    site_id: int | None = None
    status: ReportStatus = ReportStatus.PENDING
    review_comment: str | None = None
    created_at: datetime | None = None
    id: int | None = None
