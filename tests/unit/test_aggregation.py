"""
Unit Tests - Aggregation
"""
from datetime import date, datetime

from surveyor_stats.quality import RunDiagnostics
from surveyor_stats.schemas import OutcomeCategory, RecordType, ReportRow
from surveyor_stats.transformation import (
    IdentityResolver,
    OutcomeTuple,
    StatusMappingResolver,
    aggregate_outcomes,
    classify_rows,
)

RUN_DATE = date(2025, 3, 14)


class TestClassifyRows:
    """Tests for classify_rows"""

    def test_resolves_mapped_rows(self, status_mappings, employees):
        """Test a mapped row with a known surveyor yields an outcome"""
        diagnostics = RunDiagnostics()
        rows = [ReportRow("J. Smith", "Working - Contacted", 4)]

        outcomes = list(classify_rows(
            rows, RecordType.LEAD, RUN_DATE,
            StatusMappingResolver(status_mappings), IdentityResolver(employees), diagnostics,
        ))

        assert outcomes == [OutcomeTuple("emp-1", RUN_DATE, OutcomeCategory.STILL_CONTACTING, 4)]
        assert diagnostics.matched_by_alias == 1
        assert diagnostics.skipped_rows == 0

    def test_excludes_unmapped_and_unmatched(self, status_mappings, employees):
        """Test failing rows are skipped and recorded"""
        diagnostics = RunDiagnostics()
        rows = [
            ReportRow("J. Smith", "Qualified", 2),
            ReportRow("Nobody", "Not Interested", 1),
            ReportRow("Maria Garcia", "Not Interested", 3),
        ]

        outcomes = list(classify_rows(
            rows, RecordType.LEAD, RUN_DATE,
            StatusMappingResolver(status_mappings), IdentityResolver(employees), diagnostics,
        ))

        assert [o.employee_id for o in outcomes] == ["emp-2"]
        assert diagnostics.unmapped_statuses == {RecordType.LEAD: {"Qualified"}}
        assert diagnostics.unmatched_actors == {"Nobody"}
        assert diagnostics.matched_by_name == 1
        assert diagnostics.skipped_rows == 2

    def test_row_failing_both_lookups(self, status_mappings, employees):
        """Test a row failing both is reported twice but skipped once"""
        diagnostics = RunDiagnostics()

        outcomes = list(classify_rows(
            [ReportRow("Unknown Person", "Qualified", 2)], RecordType.LEAD, RUN_DATE,
            StatusMappingResolver(status_mappings), IdentityResolver(employees), diagnostics,
        ))

        assert outcomes == []
        assert diagnostics.unmapped_status_count == 1
        assert diagnostics.unmatched_actors == {"Unknown Person"}
        assert diagnostics.skipped_rows == 1
        assert [issue["kind"] for issue in diagnostics.summary()["issues"]] == [
            "unmapped_status",
            "unmatched_actor",
        ]

    def test_status_is_scoped_to_record_type(self, status_mappings, employees):
        """Test a lead status on the appointment report is unmapped"""
        diagnostics = RunDiagnostics()

        outcomes = list(classify_rows(
            [ReportRow("J. Smith", "Working - Contacted", 1)], RecordType.APPOINTMENT, RUN_DATE,
            StatusMappingResolver(status_mappings), IdentityResolver(employees), diagnostics,
        ))

        assert outcomes == []
        assert diagnostics.unmapped_statuses == {RecordType.APPOINTMENT: {"Working - Contacted"}}


class TestAggregateOutcomes:
    """Tests for aggregate_outcomes"""

    def test_sums_per_employee_and_day(self):
        """Test lead and appointment outcomes combine into one row"""
        synced_at = datetime(2025, 3, 14, 18, 30)
        outcomes = [
            OutcomeTuple("emp-1", RUN_DATE, OutcomeCategory.STILL_CONTACTING, 4),
            OutcomeTuple("emp-2", RUN_DATE, OutcomeCategory.DEAD, 1),
            OutcomeTuple("emp-1", RUN_DATE, OutcomeCategory.STILL_CONTACTING, 2),
            OutcomeTuple("emp-1", RUN_DATE, OutcomeCategory.INSTALL, 1),
        ]

        aggregates = aggregate_outcomes(outcomes, synced_at=synced_at)

        assert [a.employee_id for a in aggregates] == ["emp-1", "emp-2"]
        first = aggregates[0]
        assert first.count(OutcomeCategory.STILL_CONTACTING) == 6
        assert first.count(OutcomeCategory.INSTALL) == 1
        assert first.count(OutcomeCategory.DEMO) == 0
        assert first.total == 7
        assert first.last_synced_at == synced_at

    def test_total_equals_sum_of_categories(self):
        """Test every aggregate carries every category and a consistent total"""
        outcomes = [
            OutcomeTuple("emp-1", RUN_DATE, category, n)
            for n, category in enumerate(OutcomeCategory, start=1)
        ]

        (aggregate,) = aggregate_outcomes(outcomes)

        assert set(aggregate.counts_by_category) == set(OutcomeCategory)
        assert aggregate.total == sum(aggregate.counts_by_category.values()) == 15

    def test_no_outcomes(self):
        """Test nothing in, nothing out"""
        assert aggregate_outcomes([]) == []
