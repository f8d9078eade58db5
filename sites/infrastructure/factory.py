from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from config.database import get_database_session

from .repositories import SiteRepository


async def get_site_repository(
    session: AsyncSession = Depends(get_database_session),
) -> SiteRepository:
    """Provide a SiteRepository instance.

    Parameters
    ----------
    session : AsyncSession
        Asynchronous SQLAlchemy database session, injected as a dependency

    Returns
    -------
    SiteRepository
        Instance of SiteRepository
    """
    return SiteRepository(session)
