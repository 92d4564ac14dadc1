"""
Run Diagnostics

Per-run accumulator for data quality findings. One instance is created by
the sync run and threaded through every stage; nothing here is global.

Collected:
- Unmapped external statuses, per record type
- Actor labels that resolved to no employee
- Alias-tier vs name-tier resolution counts
- Malformed report counts
- Aggregate rows that failed to persist
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Set, Tuple

import structlog
from prometheus_client import Counter

from surveyor_stats.exceptions import DataQualityError, PersistenceError
from surveyor_stats.schemas import RecordType

logger = structlog.get_logger(__name__)


# =============================================================================
# METRICS
# =============================================================================

SKIPPED_ROWS = Counter(
    "surveyor_stats_skipped_rows_total",
    "Report row exclusions by reason",
    ["reason"],
)

IDENTITY_RESOLUTIONS = Counter(
    "surveyor_stats_identity_resolutions_total",
    "Actor labels resolved to an employee",
    ["tier_group"],
)

ALIAS_GUIDANCE = (
    "Set the employee's alias to match the CRM surveyor value exactly"
)


@dataclass
class RunDiagnostics:
    """Mutable diagnostics for a single sync run"""
    unmapped_statuses: Dict[RecordType, Set[str]] = field(default_factory=dict)
    unmatched_actors: Set[str] = field(default_factory=set)
    matched_by_alias: int = 0
    matched_by_name: int = 0
    malformed_counts: List[Tuple[str, Any]] = field(default_factory=list)
    skipped_rows: int = 0
    upsert_failures: List[str] = field(default_factory=list)
    issues: List[DataQualityError] = field(default_factory=list)

    # -------------------------------------------------------------------------
    # Recording
    # -------------------------------------------------------------------------

    def record_unmapped_status(self, status: str, record_type: RecordType) -> bool:
        """Record an unmapped status. Returns True the first time it is seen."""
        SKIPPED_ROWS.labels(reason="unmapped_status").inc()
        seen = self.unmapped_statuses.setdefault(record_type, set())
        if status in seen:
            return False
        seen.add(status)
        self.issues.append(DataQualityError(
            "unmapped_status", status, f"Unmapped {record_type.value} status: {status!r}"
        ))
        logger.warning(
            "Unmapped status, skipping row",
            status=status,
            record_type=record_type.value,
            distinct_unmapped=self.unmapped_status_count,
        )
        return True

    def record_unmatched_actor(self, label: str) -> bool:
        """Record an actor label with no employee. Returns True when new."""
        SKIPPED_ROWS.labels(reason="unmatched_actor").inc()
        if label in self.unmatched_actors:
            return False
        self.unmatched_actors.add(label)
        self.issues.append(DataQualityError(
            "unmatched_actor", label, f"No employee found for surveyor: {label!r}"
        ))
        logger.warning("No employee found for surveyor, skipping row", label=label)
        return True

    def record_malformed_count(self, actor_label: str, raw_value: Any) -> None:
        self.skipped_rows += 1
        self.malformed_counts.append((actor_label, raw_value))
        SKIPPED_ROWS.labels(reason="malformed_count").inc()
        self.issues.append(DataQualityError(
            "malformed_count", raw_value, f"Malformed count {raw_value!r} for {actor_label!r}"
        ))
        logger.warning("Malformed report count, treating as zero", label=actor_label, raw_value=repr(raw_value))

    def record_skipped_row(self) -> None:
        self.skipped_rows += 1

    def record_resolution(self, via_alias: bool) -> None:
        if via_alias:
            self.matched_by_alias += 1
        else:
            self.matched_by_name += 1
        IDENTITY_RESOLUTIONS.labels(tier_group="alias" if via_alias else "name").inc()

    def record_upsert_failure(self, error: PersistenceError) -> None:
        self.upsert_failures.append(error.employee_id or "")
        logger.error("Failed to upsert stats", employee_id=error.employee_id, error=str(error))

    # -------------------------------------------------------------------------
    # Reporting
    # -------------------------------------------------------------------------

    @property
    def unmapped_status_count(self) -> int:
        return sum(len(values) for values in self.unmapped_statuses.values())

    def summary(self) -> Dict[str, Any]:
        """Operator-facing summary, safe to serialize"""
        result: Dict[str, Any] = {
            "unmapped_statuses": {
                record_type.value: sorted(values)
                for record_type, values in self.unmapped_statuses.items()
            },
            "unmatched_actors": sorted(self.unmatched_actors),
            "matched_by_alias": self.matched_by_alias,
            "matched_by_name": self.matched_by_name,
            "malformed_counts": len(self.malformed_counts),
            "skipped_rows": self.skipped_rows,
            "upsert_failures": len(self.upsert_failures),
            "issues": [
                {"kind": issue.kind, "value": str(issue.raw_value), "message": str(issue)}
                for issue in self.issues
            ],
        }
        if self.unmatched_actors:
            result["guidance"] = ALIAS_GUIDANCE
        return result

    def log_summary(self) -> None:
        logger.info(
            "Identity resolution summary",
            matched_by_alias=self.matched_by_alias,
            matched_by_name=self.matched_by_name,
        )
        if self.unmatched_actors:
            logger.warning(
                "Unmatched surveyors",
                count=len(self.unmatched_actors),
                labels=sorted(self.unmatched_actors),
                tip=ALIAS_GUIDANCE,
            )
        if self.unmapped_statuses:
            logger.warning(
                "Unmapped statuses",
                count=self.unmapped_status_count,
                statuses=self.summary()["unmapped_statuses"],
            )
