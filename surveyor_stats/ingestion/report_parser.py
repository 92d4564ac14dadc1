"""
Report Row Parser

Normalizes a CRM tabular report payload into (actor label, status, count)
rows. The payload is a fact map keyed by grouping; detail rows carry an
ordered list of data cells:

    {"factMap": {"T!T": {"rows": [{"dataCells": [
        {"label": "J. Smith", "value": "J. Smith"},
        {"label": "Working - Contacted", "value": "Working - Contacted"},
        {"label": "4", "value": 4},
    ]}]}}}

Cells are positional: surveyor, status, record count.
"""

import math
from typing import Any, Dict, Iterable, List, Optional

import structlog

from surveyor_stats.quality.diagnostics import RunDiagnostics
from surveyor_stats.schemas import ReportRow

logger = structlog.get_logger(__name__)

DETAIL_FACT_KEYS = ("T!T", "T")
ACTOR_CELL, STATUS_CELL, COUNT_CELL = 0, 1, 2


def _cell_text(cell: Any) -> str:
    if not isinstance(cell, dict):
        return ""
    value = cell.get("value")
    if value is None:
        return ""
    return str(value).strip()


def parse_count(raw: Any) -> Optional[int]:
    """
    Parse a report count.

    Returns None when the value is present but not numeric; callers default
    that to zero after recording it.
    """
    if raw is None or raw == "":
        return 0
    if isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        return raw
    if isinstance(raw, float):
        return int(raw) if math.isfinite(raw) else None
    text = str(raw).strip().replace(",", "")
    if not text:
        return 0
    try:
        return int(text)
    except ValueError:
        pass
    try:
        value = float(text)
    except ValueError:
        return None
    return int(value) if math.isfinite(value) else None


def _detail_rows(payload: Dict[str, Any]) -> Iterable[Dict[str, Any]]:
    fact_map = (payload or {}).get("factMap") or {}
    for key in DETAIL_FACT_KEYS:
        fact = fact_map.get(key)
        if fact and fact.get("rows"):
            return fact["rows"]
    return []


def parse_report(
    payload: Dict[str, Any],
    diagnostics: Optional[RunDiagnostics] = None,
) -> List[ReportRow]:
    """
    Extract normalized rows from a report payload.

    Rows with fewer than three cells, an empty label or status, or a zero
    count are dropped. Malformed counts are recorded on ``diagnostics`` and
    treated as zero. Never raises for row-level problems.
    """
    rows: List[ReportRow] = []
    for row in _detail_rows(payload):
        if not isinstance(row, dict):
            logger.debug("Skipping non-object report row", row_type=type(row).__name__)
            continue
        cells = row.get("dataCells")
        if not isinstance(cells, list):
            cells = []
        if len(cells) < 3:
            logger.debug("Skipping short report row", cells=len(cells))
            continue

        actor_label = _cell_text(cells[ACTOR_CELL])
        status = _cell_text(cells[STATUS_CELL])
        raw_count = cells[COUNT_CELL].get("value") if isinstance(cells[COUNT_CELL], dict) else None
        count = parse_count(raw_count)
        if count is None:
            if diagnostics is not None:
                diagnostics.record_malformed_count(actor_label, raw_count)
            count = 0

        if not actor_label or not status or count == 0:
            continue
        rows.append(ReportRow(actor_label=actor_label, status=status, count=count))

    return rows


def report_name(payload: Dict[str, Any]) -> str:
    """Report name from metadata, for logging"""
    metadata = (payload or {}).get("reportMetadata") or {}
    return metadata.get("name") or "unnamed report"
