from datetime import datetime

from pydantic import dataclasses


@dataclasses.dataclass
class Site:
    """Core domain entity representing a construction site.

    Attributes
    ----------
    name: str
        Name of the site.
    location: str | None, optional
        Free-text address of the site.
    city: str | None, optional
        City the site is in.
    country: str | None, optional
        Country the site is in.
    created_by: int | None, optional
        ID of the admin who created (and owns) the site.
    created_at: datetime | None, optional
        Datetime when the site was created.
    id: int | None, optional
        Unique identifier for site.
    """

    name: str
    location: str | None = None
    city: str | None = None
    country: str | None = None
    created_by: int | None = None
    created_at: datetime | None = None
    id: int | None = None

    @property
    def display_location(self) -> str:
        """Location shown in messages, falling back to "city, country"."""
        if self.location:
            return self.location
        return ", ".join(part for part in (self.city, self.country) if part)
