"""
Unit Tests - Period Report Generator
"""
from datetime import date, datetime

import pytest

from surveyor_stats.config.settings import ReportSettings
from surveyor_stats.reporting import PeriodReportGenerator, resolve_date_range, top_performers
from surveyor_stats.schemas import (
    DailyStatAggregate,
    InactivityIncident,
    OutcomeCategory,
    ReportPeriod,
    TimeEntryRecord,
    empty_counts,
)

NOW = datetime(2025, 3, 14, 18, 30)


def put_stats(store, employee_id: str, day: date, **counts) -> None:
    by_category = empty_counts()
    for name, value in counts.items():
        by_category[OutcomeCategory(name)] = value
    store.aggregates[(employee_id, day)] = DailyStatAggregate(employee_id, day, by_category)


@pytest.fixture
def seeded_store(memory_store):
    put_stats(memory_store, "emp-1", date(2025, 3, 14), still_contacting=4, install=2)
    put_stats(memory_store, "emp-1", date(2025, 3, 10), install=1, dead=1)
    put_stats(memory_store, "emp-2", date(2025, 3, 13), demo=3, install=1)
    put_stats(memory_store, "emp-2", date(2025, 2, 1), install=9)
    memory_store.time_entries.append(TimeEntryRecord(
        "emp-3", datetime(2025, 3, 14, 9, 0), datetime(2025, 3, 14, 15, 30), store="lowes",
    ))
    memory_store.incidents.append(InactivityIncident("emp-3", datetime(2025, 3, 14, 11, 0), 45))
    return memory_store


class TestResolveDateRange:
    """Tests for resolve_date_range"""

    def test_today(self):
        """Test today runs from midnight to now"""
        window = resolve_date_range(ReportPeriod.TODAY, NOW)

        assert window.start == datetime(2025, 3, 14)
        assert window.end == NOW

    def test_yesterday(self):
        """Test yesterday covers the whole previous day"""
        window = resolve_date_range("yesterday", NOW)

        assert window.start == datetime(2025, 3, 13)
        assert window.end == datetime(2025, 3, 13, 23, 59, 59)
        assert window.describe() == "2025-03-13"

    def test_last_7_days(self):
        """Test last_7_days starts at midnight seven days back"""
        window = resolve_date_range(ReportPeriod.LAST_7_DAYS, NOW)

        assert window.start == datetime(2025, 3, 7)
        assert window.end == NOW
        assert window.describe() == "2025-03-07 to 2025-03-14"

    def test_unknown_period(self):
        """Test an unknown period is rejected"""
        with pytest.raises(ValueError):
            resolve_date_range("last_month", NOW)


class TestPeriodReportGenerator:
    """Tests for PeriodReportGenerator"""

    @pytest.mark.asyncio
    async def test_last_7_days_merges_all_sources(self, seeded_store, report_config):
        """Test time-clock-only employees are included with zero-filled surveys"""
        report = await PeriodReportGenerator(seeded_store, report_config).generate(
            ReportPeriod.LAST_7_DAYS, NOW
        )

        assert [e.employee_id for e in report.employees] == ["emp-1", "emp-2", "emp-3"]
        john, maria, dana = report.employees

        assert john.install_count == 3
        assert john.total_surveys == 8
        assert maria.install_count == 1
        assert maria.counts_by_category[OutcomeCategory.DEMO] == 3

        assert dana.survey is None
        assert dana.total_surveys == 0
        assert dana.install_rate == 0.0
        assert all(v == 0 for v in dana.counts_by_category.values())
        assert dana.hours_worked == 6.5
        assert dana.inactive_minutes == 45

        totals = report.team_totals
        assert totals.total_surveys == 12
        assert totals.install_count == 4
        assert totals.hours_worked == 6.5
        assert totals.incident_count == 1

    @pytest.mark.asyncio
    async def test_today_excludes_employees_without_data(self, seeded_store, report_config):
        """Test employees with no data in the window are left out"""
        report = await PeriodReportGenerator(seeded_store, report_config).generate(
            ReportPeriod.TODAY, NOW
        )

        assert [e.employee_id for e in report.employees] == ["emp-1", "emp-3"]

    @pytest.mark.asyncio
    async def test_inactive_employees_are_skipped(self, seeded_store, report_config):
        """Test only active employees are reported"""
        seeded_store.inactive_ids = {"emp-1"}

        report = await PeriodReportGenerator(seeded_store, report_config).generate(
            ReportPeriod.LAST_7_DAYS, NOW
        )

        assert "emp-1" not in [e.employee_id for e in report.employees]

    @pytest.mark.asyncio
    async def test_section_switches(self, seeded_store):
        """Test disabled sections are not loaded"""
        config = ReportSettings(include_time_clock=False, include_inactivity=False)

        report = await PeriodReportGenerator(seeded_store, config).generate(
            ReportPeriod.LAST_7_DAYS, NOW
        )

        assert [e.employee_id for e in report.employees] == ["emp-1", "emp-2"]
        assert report.team_totals.hours_worked == 0.0

    @pytest.mark.asyncio
    async def test_empty_report(self, memory_store, report_config):
        """Test a window without data yields an empty report"""
        report = await PeriodReportGenerator(memory_store, report_config).generate(
            ReportPeriod.YESTERDAY, NOW
        )

        assert report.is_empty
        assert report.team_totals.total_surveys == 0


class TestTopPerformers:
    """Tests for top_performers"""

    @pytest.mark.asyncio
    async def test_ranks_by_installs(self, seeded_store, report_config):
        """Test installers are ranked and zero-install employees dropped"""
        report = await PeriodReportGenerator(seeded_store, report_config).generate(
            ReportPeriod.LAST_7_DAYS, NOW
        )

        ranked = top_performers(report)

        assert [e.employee_id for e in ranked] == ["emp-1", "emp-2"]

    @pytest.mark.asyncio
    async def test_limit_and_stable_ties(self, memory_store, report_config):
        """Test ties keep report order and the list is truncated"""
        for employee_id in ("emp-1", "emp-2", "emp-3"):
            put_stats(memory_store, employee_id, date(2025, 3, 14), install=2)

        report = await PeriodReportGenerator(memory_store, report_config).generate(
            ReportPeriod.TODAY, NOW
        )

        assert [e.employee_id for e in top_performers(report, limit=2)] == ["emp-1", "emp-2"]
