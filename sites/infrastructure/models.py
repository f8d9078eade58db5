from datetime import UTC, datetime

from sqlmodel import Field, SQLModel


class Site(SQLModel, table=True):
    """SQLModel table representation for the Site entity.

    Attributes
    ----------
    id : int | None
        Primary key, auto-incrementing integer
    name : str
        Name of the site
    location : str | None
        Free-text address
    city : str | None
        City of the site
    country : str | None
        Country of the site
    created_by : int | None
        ID of the owning admin, nullable for legacy sites
    created_at : datetime
        Timestamp of site creation (aware UTC)
    """

    id: int | None = Field(default=None, primary_key=True)
    name: str = Field(nullable=False)
    location: str | None = Field(default=None, nullable=True)
    city: str | None = Field(default=None, nullable=True)
    country: str | None = Field(default=None, nullable=True)
    created_by: int | None = Field(
        default=None, foreign_key="user.id", nullable=True, index=True
    )
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(tz=UTC)
    )
