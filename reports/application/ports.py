from abc import ABC, abstractmethod

from ..domain.entities import Report as DomainReport


class ReportRepository(ABC):
    """Abstract base class for report lookups."""

    @abstractmethod
    async def create(self, report: DomainReport) -> DomainReport:
        """Store a new report.

        Parameters
        ----------
        report : DomainReport
            Report entity to create.

        Returns
        -------
        DomainReport
            Created report with ID assigned.
        """
        pass

    @abstractmethod
    async def get(self, report_id: int) -> DomainReport | None:
        """Retrieve a report by its ID.

        Parameters
        ----------
        report_id : int
            ID of the report.

        Returns
        -------
        DomainReport | None
            Matching report, or None if it does not exist.
        """
        pass
