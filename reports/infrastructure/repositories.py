from sqlalchemy.ext.asyncio import AsyncSession

from core.utils.datetime import ensure_utc

from ..application.ports import ReportRepository as DomainReportRepository
from ..domain.entities import Report as DomainReport
from ..domain.entities import ReportStatus
from .models import Report


class ReportRepository(DomainReportRepository):
    """Concrete implementation of ReportRepository backed by the database."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(self, report: DomainReport) -> DomainReport:
        pydantic_report = Report(
            title=report.title,
            site_id=report.site_id,
            inspector_id=report.inspector_id,
            status=ReportStatus(report.status).value,
            review_comment=report.review_comment,
        )
        self._session.add(pydantic_report)

        try:
            await self._session.commit()
            await self._session.refresh(pydantic_report)
        except Exception:
            await self._session.rollback()
            raise

        return self._to_domain_model(pydantic_report)

    async def get(self, report_id: int) -> DomainReport | None:
        pydantic_report = await self._session.get(Report, report_id)
        if pydantic_report is None:
            return None

        return self._to_domain_model(pydantic_report)

    def _to_domain_model(self, pydantic_report: Report) -> DomainReport:
        return DomainReport(
            id=pydantic_report.id,
            title=pydantic_report.title,
            site_id=pydantic_report.site_id,
            inspector_id=pydantic_report.inspector_id,
            status=ReportStatus(pydantic_report.status),
            review_comment=pydantic_report.review_comment,
            created_at=ensure_utc(pydantic_report.created_at),
        )
