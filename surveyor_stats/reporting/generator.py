"""
Period Report Generator

Builds a non-persisted performance report over a date window by merging,
per active employee:
- Survey outcomes from the daily stats aggregates
- Hours worked and shifts from the time clock
- Inactivity minutes and incidents

Employees with no data from any of the three sources are left out.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional

import structlog

from surveyor_stats.config.settings import ReportSettings, get_settings
from surveyor_stats.interfaces import StatsRepository
from surveyor_stats.schemas import (
    DateRange,
    EmployeeIdentity,
    InactivityIncident,
    OutcomeCategory,
    ReportPeriod,
    TimeEntryRecord,
    empty_counts,
)
from .periods import resolve_date_range

logger = structlog.get_logger(__name__)


# =============================================================================
# REPORT STRUCTURE
# =============================================================================

@dataclass
class SurveySummary:
    """Outcome counts summed over the window"""
    counts_by_category: Dict[OutcomeCategory, int] = field(default_factory=empty_counts)
    total_surveys: int = 0

    def count(self, category: OutcomeCategory) -> int:
        return self.counts_by_category.get(category, 0)

    @property
    def install_count(self) -> int:
        return self.count(OutcomeCategory.INSTALL)

    @property
    def install_rate(self) -> float:
        if self.total_surveys == 0:
            return 0.0
        return self.install_count / self.total_surveys


@dataclass
class TimeClockSummary:
    total_hours: float = 0.0
    shifts: List[TimeEntryRecord] = field(default_factory=list)

    @property
    def shift_count(self) -> int:
        return len(self.shifts)


@dataclass
class InactivitySummary:
    total_minutes: int = 0
    incidents: List[InactivityIncident] = field(default_factory=list)

    @property
    def incident_count(self) -> int:
        return len(self.incidents)


@dataclass
class EmployeeReportSummary:
    """
    One employee's slice of a period report.

    Each section is None when its source had no data (or was switched off);
    the flat properties below zero-fill the missing ones.
    """
    employee: EmployeeIdentity
    survey: Optional[SurveySummary] = None
    time_clock: Optional[TimeClockSummary] = None
    inactivity: Optional[InactivitySummary] = None

    @property
    def employee_id(self) -> str:
        return self.employee.employee_id

    @property
    def name(self) -> str:
        return self.employee.display_name

    @property
    def alias(self) -> Optional[str]:
        return self.employee.alias

    @property
    def has_data(self) -> bool:
        return any(s is not None for s in (self.survey, self.time_clock, self.inactivity))

    @property
    def counts_by_category(self) -> Dict[OutcomeCategory, int]:
        if self.survey is None:
            return empty_counts()
        return dict(self.survey.counts_by_category)

    @property
    def total_surveys(self) -> int:
        return self.survey.total_surveys if self.survey else 0

    @property
    def install_count(self) -> int:
        return self.survey.install_count if self.survey else 0

    @property
    def install_rate(self) -> float:
        return self.survey.install_rate if self.survey else 0.0

    @property
    def hours_worked(self) -> float:
        return self.time_clock.total_hours if self.time_clock else 0.0

    @property
    def shift_count(self) -> int:
        return self.time_clock.shift_count if self.time_clock else 0

    @property
    def inactive_minutes(self) -> int:
        return self.inactivity.total_minutes if self.inactivity else 0

    @property
    def incident_count(self) -> int:
        return self.inactivity.incident_count if self.inactivity else 0


@dataclass
class TeamTotals:
    """Elementwise sum over every included employee"""
    counts_by_category: Dict[OutcomeCategory, int] = field(default_factory=empty_counts)
    total_surveys: int = 0
    hours_worked: float = 0.0
    shift_count: int = 0
    inactive_minutes: int = 0
    incident_count: int = 0

    @property
    def install_count(self) -> int:
        return self.counts_by_category.get(OutcomeCategory.INSTALL, 0)

    @property
    def inactive_hours(self) -> float:
        return self.inactive_minutes / 60

    def add(self, summary: EmployeeReportSummary) -> None:
        for category, value in summary.counts_by_category.items():
            self.counts_by_category[category] = self.counts_by_category.get(category, 0) + value
        self.total_surveys += summary.total_surveys
        self.hours_worked += summary.hours_worked
        self.shift_count += summary.shift_count
        self.inactive_minutes += summary.inactive_minutes
        self.incident_count += summary.incident_count


@dataclass
class PeriodReport:
    period: ReportPeriod
    date_range: DateRange
    generated_at: datetime
    employees: List[EmployeeReportSummary] = field(default_factory=list)
    team_totals: TeamTotals = field(default_factory=TeamTotals)

    @property
    def is_empty(self) -> bool:
        return not self.employees


def top_performers(report: PeriodReport, limit: int = 3) -> List[EmployeeReportSummary]:
    """Employees with at least one install, most installs first, stable on ties"""
    ranked = [e for e in report.employees if e.install_count > 0]
    ranked.sort(key=lambda e: e.install_count, reverse=True)
    return ranked[:limit]


# =============================================================================
# GENERATOR
# =============================================================================

class PeriodReportGenerator:
    """
    Aggregates persisted data into a PeriodReport.

    Example:
        generator = PeriodReportGenerator(store)
        report = await generator.generate(ReportPeriod.TODAY, local_now(tz))
    """

    def __init__(self, repository: StatsRepository, config: Optional[ReportSettings] = None):
        self.repository = repository
        self.config = config or get_settings().report

    async def generate(self, period: ReportPeriod, now: datetime) -> PeriodReport:
        period = ReportPeriod(period)
        window = resolve_date_range(period, now)
        report = PeriodReport(period=period, date_range=window, generated_at=now)

        employees = await self.repository.load_employees(active_only=True)
        logger.info(
            "Generating period report",
            period=period.value,
            start=window.start.isoformat(),
            end=window.end.isoformat(),
            employees=len(employees),
        )

        for employee in employees:
            summary = await self._summarize_employee(employee, window)
            if summary.has_data:
                report.employees.append(summary)
                report.team_totals.add(summary)

        logger.info("Period report generated", period=period.value, included=len(report.employees))
        return report

    async def _summarize_employee(
        self, employee: EmployeeIdentity, window: DateRange
    ) -> EmployeeReportSummary:
        summary = EmployeeReportSummary(employee=employee)

        if self.config.include_survey_stats:
            rows = await self.repository.load_daily_stat_aggregates(
                employee.employee_id, window.start_date, window.end_date
            )
            if rows:
                survey = SurveySummary()
                for row in rows:
                    for category in OutcomeCategory:
                        survey.counts_by_category[category] += row.count(category)
                    survey.total_surveys += row.total
                summary.survey = survey

        if self.config.include_time_clock:
            entries = await self.repository.load_time_entries(employee.employee_id, window)
            if entries:
                summary.time_clock = TimeClockSummary(
                    total_hours=sum(entry.hours for entry in entries),
                    shifts=list(entries),
                )

        if self.config.include_inactivity:
            incidents = await self.repository.load_inactivity_incidents(employee.employee_id, window)
            if incidents:
                summary.inactivity = InactivitySummary(
                    total_minutes=sum(incident.duration_minutes for incident in incidents),
                    incidents=list(incidents),
                )

        return summary
