from abc import ABC, abstractmethod

from ..domain.entities import Site as DomainSite


class SiteRepository(ABC):
    """Abstract base class for site lookups."""

    @abstractmethod
    async def create(self, site: DomainSite) -> DomainSite:
        """Store a new site.

        Parameters
        ----------
        site : DomainSite
            Site entity to create.

        Returns
        -------
        DomainSite
            Created site with ID assigned.
        """
        pass

    @abstractmethod
    async def get(self, site_id: int) -> DomainSite | None:
        """Retrieve a site by its ID.

        Parameters
        ----------
        site_id : int
            ID of the site.

        Returns
        -------
        DomainSite | None
            Matching site, or None if it does not exist.
        """
        pass
