"""
Aggregation Engine

Combines parsed report rows into one DailyStatAggregate per
(employee, day). Rows are first classified through the status mapping and
identity resolvers; rows failing either are excluded and recorded on the
run diagnostics.

Aggregates are recomputed from the full report on every run and replace the
stored row, so re-running a day never double counts.
"""

from dataclasses import dataclass
from datetime import date, datetime
from typing import Dict, Iterable, Iterator, List, Optional, Tuple

import structlog

from surveyor_stats.quality.diagnostics import RunDiagnostics
from surveyor_stats.schemas import (
    DailyStatAggregate,
    OutcomeCategory,
    RecordType,
    ReportRow,
    empty_counts,
)
from .identity import IdentityResolver
from .status_mapping import StatusMappingResolver

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class OutcomeTuple:
    """A fully resolved report row"""
    employee_id: str
    date: date
    category: OutcomeCategory
    count: int


def classify_rows(
    rows: Iterable[ReportRow],
    record_type: RecordType,
    run_date: date,
    mappings: StatusMappingResolver,
    identities: IdentityResolver,
    diagnostics: RunDiagnostics,
) -> Iterator[OutcomeTuple]:
    """
    Map status and resolve actor for each row.

    Both lookups run for every row so a row failing both is reported under
    both diagnostics; it is still skipped only once.
    """
    for row in rows:
        category = mappings.resolve(row.status, record_type)
        if category is None:
            diagnostics.record_unmapped_status(row.status, record_type)

        match = identities.resolve(row.actor_label)
        if match is None:
            diagnostics.record_unmatched_actor(row.actor_label)

        if category is None or match is None:
            diagnostics.record_skipped_row()
            continue

        diagnostics.record_resolution(match.via_alias)
        yield OutcomeTuple(
            employee_id=match.employee_id,
            date=run_date,
            category=category,
            count=row.count,
        )


def aggregate_outcomes(
    outcomes: Iterable[OutcomeTuple],
    synced_at: Optional[datetime] = None,
) -> List[DailyStatAggregate]:
    """
    Sum outcome counts per (employee_id, date, category).

    Output order follows the first appearance of each (employee_id, date).
    """
    buckets: Dict[Tuple[str, date], Dict[OutcomeCategory, int]] = {}
    for outcome in outcomes:
        counts = buckets.setdefault((outcome.employee_id, outcome.date), empty_counts())
        counts[outcome.category] += outcome.count

    aggregates = [
        DailyStatAggregate(
            employee_id=employee_id,
            date=day,
            counts_by_category=counts,
            last_synced_at=synced_at,
        )
        for (employee_id, day), counts in buckets.items()
    ]
    logger.debug("Aggregated outcomes", aggregates=len(aggregates))
    return aggregates
