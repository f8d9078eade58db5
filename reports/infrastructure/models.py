from datetime import UTC, datetime

from sqlmodel import Field, SQLModel

from ..domain.entities import ReportStatus


class Report(SQLModel, table=True):
    """SQLModel table representation for the Report entity.

    Attributes
    ----------
    id : int | None
        Primary key, auto-incrementing integer
    title : str
        Title of the report
    site_id : int | None
        Foreign key to the site table, nullable
    inspector_id : int
        Foreign key to the user table
    status : str
        Review state, stored as its display value
    review_comment : str | None
        Reviewer feedback
    created_at : datetime
        Timestamp of report creation (aware UTC)
    """

    id: int | None = Field(default=None, primary_key=True)
    title: str = Field(nullable=False)
    site_id: int | None = Field(
        default=None, foreign_key="site.id", nullable=True, index=True
    )
    inspector_id: int = Field(foreign_key="user.id", nullable=False, index=True)
    status: str = Field(default=ReportStatus.PENDING.value, nullable=False)
    review_comment: str | None = Field(default=None, nullable=True)
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(tz=UTC)
    )
