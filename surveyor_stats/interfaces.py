"""
Collaborator Interfaces

Abstract boundaries between the pipeline and the outside world. The
production implementations live in ``ingestion.crm_client``,
``database.store`` and ``notifications``; tests substitute in-memory fakes.
"""

from abc import ABC, abstractmethod
from datetime import date, datetime
from typing import Any, Dict, List, Optional

from surveyor_stats.schemas import (
    DailyStatAggregate,
    DateRange,
    EmployeeIdentity,
    InactivityIncident,
    StatusMapping,
    SyncRunRecord,
    SyncStatus,
    TimeEntryRecord,
)


class ReportFetcher(ABC):
    """Authenticated read against the CRM reporting API"""

    @abstractmethod
    async def fetch_report(self, report_id: str) -> Dict[str, Any]:
        """Return the raw tabular payload; raise TransportError on failure"""


class StatsRepository(ABC):
    """Read snapshots and write aggregates against the internal store"""

    @abstractmethod
    async def load_status_mappings(self) -> List[StatusMapping]:
        ...

    @abstractmethod
    async def load_employees(self, active_only: bool = False) -> List[EmployeeIdentity]:
        ...

    @abstractmethod
    async def upsert_daily_stat_aggregate(self, row: DailyStatAggregate) -> None:
        """Insert or replace keyed on (employee_id, date)"""

    @abstractmethod
    async def load_daily_stat_aggregates(
        self, employee_id: str, start: date, end: date
    ) -> List[DailyStatAggregate]:
        ...

    @abstractmethod
    async def load_time_entries(self, employee_id: str, window: DateRange) -> List[TimeEntryRecord]:
        ...

    @abstractmethod
    async def load_inactivity_incidents(
        self, employee_id: str, window: DateRange
    ) -> List[InactivityIncident]:
        ...


class SyncRunLog(ABC):
    """Audit trail of sync runs"""

    @abstractmethod
    async def create_run(self, started_at: datetime) -> SyncRunRecord:
        ...

    @abstractmethod
    async def finish_run(
        self,
        run_id: int,
        status: SyncStatus,
        completed_at: datetime,
        records_processed: int = 0,
        error_message: Optional[str] = None,
    ) -> None:
        ...

    @abstractmethod
    async def recent_runs(self, limit: int = 20) -> List[SyncRunRecord]:
        ...


class EmailSender(ABC):
    """Email delivery primitive"""

    @abstractmethod
    def is_configured(self) -> bool:
        ...

    @abstractmethod
    async def send_email(self, to: str, subject: str, body: str) -> bool:
        """
        Return True when accepted, False when the provider rejected it.

        Raises TransportError only when the provider could not be reached.
        """


class SMSSender(ABC):
    """SMS delivery primitive"""

    @abstractmethod
    def is_configured(self) -> bool:
        ...

    @abstractmethod
    async def send_sms(self, to: str, message: str) -> bool:
        """Same contract as EmailSender.send_email"""
