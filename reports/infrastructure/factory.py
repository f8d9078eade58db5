from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from config.database import get_database_session

from .repositories import ReportRepository


async def get_report_repository(
    session: AsyncSession = Depends(get_database_session),
) -> ReportRepository:
    """Provide a ReportRepository instance.

    Parameters
    ----------
    session : AsyncSession
        Asynchronous SQLAlchemy database session, injected as a dependency

    Returns
    -------
    ReportRepository
        Instance of ReportRepository
    """
    return ReportRepository(session)
