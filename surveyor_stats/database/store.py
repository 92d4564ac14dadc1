"""
Survey Stats Store

SQLAlchemy implementation of the pipeline's persistence collaborators:
snapshot reads (status mappings, employees, time entries, inactivity),
aggregate upserts and the sync run audit log.

Every public method runs in its own session and transaction, so a failed
upsert for one employee never rolls back rows already written.
"""

from contextlib import asynccontextmanager
from datetime import date, datetime
from typing import AsyncGenerator, List, Optional
import uuid

import structlog
from sqlalchemy import and_, select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from surveyor_stats.exceptions import PersistenceError
from surveyor_stats.interfaces import StatsRepository, SyncRunLog
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
from .models import (
    CATEGORY_COLUMNS,
    Employee,
    EmployeeSurveyStats,
    InactivityLog,
    StatsSyncLog,
    StatusMappingRecord,
    TimeEntry,
)

logger = structlog.get_logger(__name__)

_UPSERT_BUILDERS = {
    "postgresql": pg_insert,
    "sqlite": sqlite_insert,
}


class SurveyStatsStore(StatsRepository, SyncRunLog):
    """
    Persistence gateway for the sync and report pipelines.

    Example:
        store = SurveyStatsStore(get_session_factory())
        mappings = await store.load_status_mappings()
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    @asynccontextmanager
    async def _transaction(self) -> AsyncGenerator[AsyncSession, None]:
        async with self._session_factory() as session:
            async with session.begin():
                yield session

    # -------------------------------------------------------------------------
    # Snapshots
    # -------------------------------------------------------------------------

    async def load_status_mappings(self) -> List[StatusMapping]:
        async with self._transaction() as session:
            result = await session.execute(
                select(StatusMappingRecord).order_by(
                    StatusMappingRecord.object_type, StatusMappingRecord.salesforce_status
                )
            )
            return [
                StatusMapping(
                    external_status=rec.salesforce_status,
                    record_type=rec.object_type,
                    category=rec.category,
                )
                for rec in result.scalars()
            ]

    async def load_employees(self, active_only: bool = False) -> List[EmployeeIdentity]:
        query = select(Employee).order_by(Employee.created_at, Employee.id)
        if active_only:
            query = query.where(Employee.status == "active")
        async with self._transaction() as session:
            result = await session.execute(query)
            return [
                EmployeeIdentity(
                    employee_id=emp.id,
                    first_name=emp.first_name or "",
                    last_name=emp.last_name or "",
                    email=emp.email or "",
                    alias=emp.alias,
                )
                for emp in result.scalars()
            ]

    async def load_daily_stat_aggregates(
        self, employee_id: str, start: date, end: date
    ) -> List[DailyStatAggregate]:
        async with self._transaction() as session:
            result = await session.execute(
                select(EmployeeSurveyStats)
                .where(
                    and_(
                        EmployeeSurveyStats.employee_id == employee_id,
                        EmployeeSurveyStats.stat_date >= start,
                        EmployeeSurveyStats.stat_date <= end,
                    )
                )
                .order_by(EmployeeSurveyStats.stat_date)
            )
            return [
                DailyStatAggregate(
                    employee_id=row.employee_id,
                    date=row.stat_date,
                    counts_by_category={
                        category: getattr(row, column) or 0
                        for category, column in CATEGORY_COLUMNS.items()
                    },
                    last_synced_at=row.last_synced_at,
                )
                for row in result.scalars()
            ]

    async def load_time_entries(self, employee_id: str, window: DateRange) -> List[TimeEntryRecord]:
        async with self._transaction() as session:
            result = await session.execute(
                select(TimeEntry)
                .where(
                    and_(
                        TimeEntry.employee_id == employee_id,
                        TimeEntry.clock_in >= window.start,
                        TimeEntry.clock_in <= window.end,
                    )
                )
                .order_by(TimeEntry.clock_in.desc())
            )
            return [
                TimeEntryRecord(
                    employee_id=entry.employee_id,
                    clock_in=entry.clock_in,
                    clock_out=entry.clock_out,
                    store=entry.store,
                    store_name=entry.store_name,
                )
                for entry in result.scalars()
            ]

    async def load_inactivity_incidents(
        self, employee_id: str, window: DateRange
    ) -> List[InactivityIncident]:
        async with self._transaction() as session:
            result = await session.execute(
                select(InactivityLog)
                .where(
                    and_(
                        InactivityLog.employee_id == employee_id,
                        InactivityLog.detected_at >= window.start,
                        InactivityLog.detected_at <= window.end,
                    )
                )
                .order_by(InactivityLog.detected_at.desc())
            )
            return [
                InactivityIncident(
                    employee_id=log.employee_id,
                    detected_at=log.detected_at,
                    duration_minutes=log.inactive_duration_minutes or 0,
                    current_page=log.current_page,
                    notes=log.notes,
                )
                for log in result.scalars()
            ]

    # -------------------------------------------------------------------------
    # Aggregates
    # -------------------------------------------------------------------------

    async def upsert_daily_stat_aggregate(self, row: DailyStatAggregate) -> None:
        """
        Insert or replace the (employee_id, date) row.

        Raises:
            PersistenceError: the write failed; nothing was changed
        """
        now = datetime.utcnow()
        measures = {
            column: row.count(category) for category, column in CATEGORY_COLUMNS.items()
        }
        measures["total_surveys"] = row.total
        measures["last_synced_at"] = row.last_synced_at or now
        measures["updated_at"] = now

        try:
            async with self._transaction() as session:
                dialect = session.get_bind().dialect.name
                builder = _UPSERT_BUILDERS.get(dialect)
                if builder is None:
                    raise PersistenceError(
                        f"Upsert not supported for dialect {dialect}", employee_id=row.employee_id
                    )
                table = EmployeeSurveyStats.__table__
                stmt = builder(table).values(
                    id=str(uuid.uuid4()),
                    employee_id=row.employee_id,
                    date=row.date,
                    **measures,
                )
                stmt = stmt.on_conflict_do_update(
                    index_elements=[table.c.employee_id, table.c.date],
                    set_=measures,
                )
                await session.execute(stmt)
        except SQLAlchemyError as e:
            raise PersistenceError(
                f"Failed to upsert stats for employee {row.employee_id}: {e}",
                employee_id=row.employee_id,
            ) from e

    # -------------------------------------------------------------------------
    # Sync run log
    # -------------------------------------------------------------------------

    async def create_run(self, started_at: datetime) -> SyncRunRecord:
        async with self._transaction() as session:
            log = StatsSyncLog(sync_started_at=started_at, status=SyncStatus.RUNNING)
            session.add(log)
            await session.flush()
            return SyncRunRecord(id=log.id, started_at=started_at)

    async def finish_run(
        self,
        run_id: int,
        status: SyncStatus,
        completed_at: datetime,
        records_processed: int = 0,
        error_message: Optional[str] = None,
    ) -> None:
        async with self._transaction() as session:
            await session.execute(
                update(StatsSyncLog)
                .where(StatsSyncLog.id == run_id)
                .values(
                    status=status,
                    sync_completed_at=completed_at,
                    records_processed=records_processed,
                    error_message=error_message,
                )
            )

    async def recent_runs(self, limit: int = 20) -> List[SyncRunRecord]:
        async with self._transaction() as session:
            result = await session.execute(
                select(StatsSyncLog).order_by(StatsSyncLog.sync_started_at.desc()).limit(limit)
            )
            return [
                SyncRunRecord(
                    id=log.id,
                    started_at=log.sync_started_at,
                    status=log.status,
                    completed_at=log.sync_completed_at,
                    records_processed=log.records_processed or 0,
                    error_message=log.error_message,
                )
                for log in result.scalars()
            ]
