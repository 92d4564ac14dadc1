"""
Pipeline Value Types

Enumerations and plain records shared between the ingestion,
transformation, reporting and persistence layers.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Dict, Optional


# =============================================================================
# ENUMERATIONS
# =============================================================================

class OutcomeCategory(str, Enum):
    """Outcome taxonomy every external status is mapped into"""
    BAD_CONTACT = "bad_contact"
    DEAD = "dead"
    STILL_CONTACTING = "still_contacting"
    INSTALL = "install"
    DEMO = "demo"


class RecordType(str, Enum):
    """CRM record type a status belongs to"""
    LEAD = "lead"
    APPOINTMENT = "appointment"


class SyncStatus(str, Enum):
    """Sync run lifecycle status"""
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


class ReportPeriod(str, Enum):
    """Date window of a period report"""
    TODAY = "today"
    YESTERDAY = "yesterday"
    LAST_7_DAYS = "last_7_days"

    @property
    def label(self) -> str:
        return {
            ReportPeriod.TODAY: "Today",
            ReportPeriod.YESTERDAY: "Yesterday",
            ReportPeriod.LAST_7_DAYS: "Last 7 Days",
        }[self]


def empty_counts() -> Dict[OutcomeCategory, int]:
    """Zero count for every category in the taxonomy"""
    return {category: 0 for category in OutcomeCategory}


# =============================================================================
# RECORDS
# =============================================================================

@dataclass(frozen=True)
class StatusMapping:
    """Operator-configured external status -> outcome category"""
    external_status: str
    record_type: RecordType
    category: OutcomeCategory


@dataclass(frozen=True)
class EmployeeIdentity:
    """Projection of an employee used for actor resolution"""
    employee_id: str
    first_name: str = ""
    last_name: str = ""
    email: str = ""
    alias: Optional[str] = None

    @property
    def display_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


@dataclass(frozen=True)
class ReportRow:
    """One normalized detail row of an external report"""
    actor_label: str
    status: str
    count: int


@dataclass
class DailyStatAggregate:
    """One employee's outcome counts for one day"""
    employee_id: str
    date: date
    counts_by_category: Dict[OutcomeCategory, int] = field(default_factory=empty_counts)
    last_synced_at: Optional[datetime] = None

    @property
    def total(self) -> int:
        return sum(self.counts_by_category.values())

    def count(self, category: OutcomeCategory) -> int:
        return self.counts_by_category.get(category, 0)


@dataclass(frozen=True)
class DateRange:
    """Inclusive datetime window"""
    start: datetime
    end: datetime

    @property
    def start_date(self) -> date:
        return self.start.date()

    @property
    def end_date(self) -> date:
        return self.end.date()

    def describe(self) -> str:
        if self.start_date == self.end_date:
            return self.start_date.isoformat()
        return f"{self.start_date.isoformat()} to {self.end_date.isoformat()}"

    def as_dict(self) -> Dict[str, str]:
        return {"start": self.start_date.isoformat(), "end": self.end_date.isoformat()}


@dataclass(frozen=True)
class TimeEntryRecord:
    """A time-clock shift"""
    employee_id: str
    clock_in: datetime
    clock_out: Optional[datetime] = None
    store: Optional[str] = None
    store_name: Optional[str] = None

    @property
    def hours(self) -> float:
        if self.clock_out is None:
            return 0.0
        return (self.clock_out - self.clock_in).total_seconds() / 3600


@dataclass(frozen=True)
class InactivityIncident:
    """A detected period of inactivity during a shift"""
    employee_id: str
    detected_at: datetime
    duration_minutes: int = 0
    current_page: Optional[str] = None
    notes: Optional[str] = None

    @property
    def reason(self) -> str:
        return self.notes or self.current_page or "Unknown"


@dataclass
class SyncRunRecord:
    """Audit record of one sync run"""
    id: int
    started_at: datetime
    status: SyncStatus = SyncStatus.RUNNING
    completed_at: Optional[datetime] = None
    records_processed: int = 0
    error_message: Optional[str] = None
