from sqlalchemy.ext.asyncio import AsyncSession

from core.utils.datetime import ensure_utc

from ..application.ports import SiteRepository as DomainSiteRepository
from ..domain.entities import Site as DomainSite
from .models import Site


class SiteRepository(DomainSiteRepository):
    """Concrete implementation of SiteRepository backed by the database."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(self, site: DomainSite) -> DomainSite:
        pydantic_site = Site(
            name=site.name,
            location=site.location,
            city=site.city,
            country=site.country,
            created_by=site.created_by,
        )
        self._session.add(pydantic_site)

        try:
            await self._session.commit()
            await self._session.refresh(pydantic_site)
        except Exception:
            await self._session.rollback()
            raise

        return self._to_domain_model(pydantic_site)

    async def get(self, site_id: int) -> DomainSite | None:
        pydantic_site = await self._session.get(Site, site_id)
        if pydantic_site is None:
            return None

        return self._to_domain_model(pydantic_site)

    def _to_domain_model(self, pydantic_site: Site) -> DomainSite:
        return DomainSite(
            id=pydantic_site.id,
            name=pydantic_site.name,
            location=pydantic_site.location,
            city=pydantic_site.city,
            country=pydantic_site.country,
            created_by=pydantic_site.created_by,
            created_at=ensure_utc(pydantic_site.created_at),
        )
