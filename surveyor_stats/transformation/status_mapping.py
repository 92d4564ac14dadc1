"""
Status Mapping Resolver

Maps an external CRM status string to an outcome category using the
operator-configured mapping snapshot loaded at the start of a run.
"""

from typing import Dict, Iterable, Optional, Tuple

import structlog

from surveyor_stats.schemas import OutcomeCategory, RecordType, StatusMapping

logger = structlog.get_logger(__name__)


class StatusMappingResolver:
    """
    Immutable lookup of (external status, record type) -> category.

    Matching is exact and case-sensitive: operators copy the external value
    verbatim when configuring a mapping. A miss returns None, which callers
    treat as a skip signal rather than an error.

    Example:
        resolver = StatusMappingResolver(mappings)
        category = resolver.resolve("Working - Contacted", RecordType.LEAD)
    """

    def __init__(self, mappings: Iterable[StatusMapping]):
        table: Dict[Tuple[RecordType, str], OutcomeCategory] = {}
        for mapping in mappings:
            key = (RecordType(mapping.record_type), mapping.external_status)
            if key in table and table[key] != mapping.category:
                logger.warning(
                    "Conflicting status mapping, keeping last",
                    status=mapping.external_status,
                    record_type=key[0].value,
                )
            table[key] = OutcomeCategory(mapping.category)
        self._table = table

    def __len__(self) -> int:
        return len(self._table)

    @property
    def is_empty(self) -> bool:
        return not self._table

    def count_for(self, record_type: RecordType) -> int:
        return sum(1 for rt, _ in self._table if rt == record_type)

    def resolve(self, status: str, record_type: RecordType) -> Optional[OutcomeCategory]:
        """Return the mapped category, or None when the status is unmapped"""
        return self._table.get((record_type, status))
