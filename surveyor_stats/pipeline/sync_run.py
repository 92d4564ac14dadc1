"""
Stats Sync Run

Reconciles CRM report data into the daily survey stats table.

Steps:
1. Open a sync run record (status running)
2. Load the status mapping snapshot (fatal if empty)
3. Fetch and parse each configured report, in order (fatal on fetch error)
4. Map statuses and resolve surveyors, collecting diagnostics
5. Aggregate per (employee, day) and upsert each row independently
6. Close the run record as completed or failed

A run never retries; the next scheduled run simply replaces the day's rows.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

import structlog
from prometheus_client import Counter, Histogram

from surveyor_stats.config.logging import bind_run_context, clear_run_context
from surveyor_stats.config.settings import CRMSettings, get_settings
from surveyor_stats.exceptions import ConfigurationError, PersistenceError, SurveyStatsError
from surveyor_stats.ingestion.report_parser import parse_report, report_name
from surveyor_stats.interfaces import ReportFetcher, StatsRepository, SyncRunLog
from surveyor_stats.quality.diagnostics import RunDiagnostics
from surveyor_stats.reporting.periods import local_now
from surveyor_stats.schemas import RecordType, SyncStatus
from surveyor_stats.transformation import (
    IdentityResolver,
    OutcomeTuple,
    StatusMappingResolver,
    aggregate_outcomes,
    classify_rows,
)

logger = structlog.get_logger(__name__)


# =============================================================================
# METRICS
# =============================================================================

SYNC_RUNS = Counter(
    "surveyor_stats_sync_runs_total",
    "Sync runs by final status",
    ["status"],
)

PARSED_ROWS = Counter(
    "surveyor_stats_parsed_rows_total",
    "Report rows parsed",
    ["record_type"],
)

UPSERT_FAILURES = Counter(
    "surveyor_stats_upsert_failures_total",
    "Aggregate rows that failed to persist",
)

SYNC_DURATION = Histogram(
    "surveyor_stats_sync_duration_seconds",
    "Wall time of a sync run",
)


# =============================================================================
# RESULT
# =============================================================================

@dataclass
class SyncRunResult:
    run_id: int
    status: SyncStatus
    started_at: datetime
    completed_at: Optional[datetime] = None
    records_processed: int = 0
    sources: List[Dict[str, Any]] = field(default_factory=list)
    diagnostics: Dict[str, Any] = field(default_factory=dict)
    error: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.status == SyncStatus.COMPLETED

    def as_dict(self) -> Dict[str, Any]:
        return {
            "run_id": self.run_id,
            "status": self.status.value,
            "started_at": self.started_at.isoformat(),
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "records_processed": self.records_processed,
            "sources": self.sources,
            "diagnostics": self.diagnostics,
            "error": self.error,
        }


# =============================================================================
# RUNNER
# =============================================================================

class StatsSyncRunner:
    """
    Executes one sync run against injected collaborators.

    Example:
        runner = StatsSyncRunner(SalesforceReportClient(), store, store)
        result = await runner.run()
    """

    def __init__(
        self,
        fetcher: ReportFetcher,
        repository: StatsRepository,
        run_log: SyncRunLog,
        config: Optional[CRMSettings] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.fetcher = fetcher
        self.repository = repository
        self.run_log = run_log
        self.config = config or get_settings().crm
        self.clock = clock or (lambda: local_now(get_settings().report.timezone))

    async def run(self) -> SyncRunResult:
        started_at = self.clock()
        record = await self.run_log.create_run(started_at)
        result = SyncRunResult(run_id=record.id, status=SyncStatus.RUNNING, started_at=started_at)
        diagnostics = RunDiagnostics()

        bind_run_context(run_id=record.id)
        logger.info("Stats sync started")
        try:
            with SYNC_DURATION.time():
                try:
                    result.records_processed = await self._execute(result, diagnostics)
                except SurveyStatsError as e:
                    logger.error("Stats sync failed", error=str(e), error_type=type(e).__name__)
                    await self._close(result, diagnostics, SyncStatus.FAILED, str(e))
                    return result
                except Exception as e:
                    logger.exception("Stats sync crashed", error=str(e))
                    await self._close(result, diagnostics, SyncStatus.FAILED, str(e))
                    raise

            diagnostics.log_summary()
            await self._close(result, diagnostics, SyncStatus.COMPLETED, None)
            logger.info(
                "Stats sync completed",
                records_processed=result.records_processed,
                skipped_rows=diagnostics.skipped_rows,
            )
            return result
        finally:
            clear_run_context("run_id")

    async def _close(
        self,
        result: SyncRunResult,
        diagnostics: RunDiagnostics,
        status: SyncStatus,
        error: Optional[str],
    ) -> None:
        result.status = status
        result.error = error
        result.completed_at = self.clock()
        result.diagnostics = diagnostics.summary()
        SYNC_RUNS.labels(status=status.value).inc()
        await self.run_log.finish_run(
            result.run_id,
            status,
            result.completed_at,
            records_processed=result.records_processed,
            error_message=error,
        )

    async def _execute(self, result: SyncRunResult, diagnostics: RunDiagnostics) -> int:
        mappings = StatusMappingResolver(await self.repository.load_status_mappings())
        if mappings.is_empty:
            raise ConfigurationError(
                "No status mappings configured. Map CRM statuses to outcome categories first."
            )

        sources = self.config.report_sources()
        if not sources:
            raise ConfigurationError(
                "No Salesforce report ids configured. Set SALESFORCE_LEAD_REPORT_ID and/or "
                "SALESFORCE_APPOINTMENT_REPORT_ID (the id is in the report URL: /lightning/r/Report/{id}/view)."
            )

        employees = await self.repository.load_employees()
        identities = IdentityResolver(employees)
        run_date = result.started_at.date()
        logger.info(
            "Sync snapshots loaded",
            mappings=len(mappings),
            employees=len(employees),
            sources=[record_type for record_type, _ in sources],
        )

        outcomes: List[OutcomeTuple] = []
        for record_type_value, report_id in sources:
            record_type = RecordType(record_type_value)
            payload = await self.fetcher.fetch_report(report_id)
            rows = parse_report(payload, diagnostics)
            PARSED_ROWS.labels(record_type=record_type.value).inc(len(rows))
            logger.info(
                "Report parsed",
                record_type=record_type.value,
                report_id=report_id,
                report_name=report_name(payload),
                rows=len(rows),
            )
            outcomes.extend(
                classify_rows(rows, record_type, run_date, mappings, identities, diagnostics)
            )
            result.sources.append({
                "record_type": record_type.value,
                "report_id": report_id,
                "report_name": report_name(payload),
                "rows": len(rows),
            })

        aggregates = aggregate_outcomes(outcomes, synced_at=self.clock())

        processed = 0
        for aggregate in aggregates:
            try:
                await self.repository.upsert_daily_stat_aggregate(aggregate)
            except PersistenceError as e:
                diagnostics.record_upsert_failure(e)
                UPSERT_FAILURES.inc()
                continue
            processed += 1

        logger.info("Aggregates upserted", processed=processed, failed=len(diagnostics.upsert_failures))
        return processed
