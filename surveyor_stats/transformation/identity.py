"""
Identity Resolution Engine

Resolves the CRM's free-text surveyor label to an internal employee id.

The CRM has no stable key for the surveyor, so every employee is registered
under several representations, grouped in priority tiers (highest first):

    1. alias, exact
    2. alias, lower-cased
    3. "First Last", exact and lower-cased
    4. "Last, First", exact and lower-cased
    5. first name, exact and lower-cased
    6. last name, exact and lower-cased
    7. email local part, exact and lower-cased

Keys are inserted from the lowest tier to the highest, employees in snapshot
order, and a later insertion replaces an earlier one. Within a tier the
last-registered employee wins; across tiers the higher tier wins. Short keys
such as a shared first name are therefore lossy; setting an alias removes
the ambiguity for that employee.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Iterable, List, Optional, Tuple

import structlog

from surveyor_stats.schemas import EmployeeIdentity

logger = structlog.get_logger(__name__)


class MatchTier(str, Enum):
    """Identity lookup tiers, declared in priority order"""
    ALIAS = "alias"
    ALIAS_LOWER = "alias_lower"
    FULL_NAME = "full_name"
    REVERSED_NAME = "reversed_name"
    FIRST_NAME = "first_name"
    LAST_NAME = "last_name"
    EMAIL_LOCAL_PART = "email_local_part"

    @property
    def priority(self) -> int:
        """0 is the highest priority"""
        return TIER_ORDER.index(self)

    @property
    def is_alias(self) -> bool:
        return self in (MatchTier.ALIAS, MatchTier.ALIAS_LOWER)


TIER_ORDER: List[MatchTier] = list(MatchTier)


def _clean(value: Optional[str]) -> str:
    return (value or "").strip()


def _alias(emp: EmployeeIdentity) -> List[str]:
    alias = _clean(emp.alias)
    return [alias] if alias else []


def _alias_lower(emp: EmployeeIdentity) -> List[str]:
    alias = _clean(emp.alias)
    return [alias.lower()] if alias else []


def _with_lower(value: str) -> List[str]:
    if not value:
        return []
    return [value, value.lower()]


def _full_name(emp: EmployeeIdentity) -> List[str]:
    first, last = _clean(emp.first_name), _clean(emp.last_name)
    if not (first and last):
        return []
    return _with_lower(f"{first} {last}")


def _reversed_name(emp: EmployeeIdentity) -> List[str]:
    first, last = _clean(emp.first_name), _clean(emp.last_name)
    if not (first and last):
        return []
    return _with_lower(f"{last}, {first}")


def _first_name(emp: EmployeeIdentity) -> List[str]:
    return _with_lower(_clean(emp.first_name))


def _last_name(emp: EmployeeIdentity) -> List[str]:
    return _with_lower(_clean(emp.last_name))


def _email_local_part(emp: EmployeeIdentity) -> List[str]:
    email = _clean(emp.email)
    if not email:
        return []
    return _with_lower(email.split("@", 1)[0].strip())


TIER_KEYS: Dict[MatchTier, Callable[[EmployeeIdentity], List[str]]] = {
    MatchTier.ALIAS: _alias,
    MatchTier.ALIAS_LOWER: _alias_lower,
    MatchTier.FULL_NAME: _full_name,
    MatchTier.REVERSED_NAME: _reversed_name,
    MatchTier.FIRST_NAME: _first_name,
    MatchTier.LAST_NAME: _last_name,
    MatchTier.EMAIL_LOCAL_PART: _email_local_part,
}


@dataclass(frozen=True)
class Resolution:
    """Outcome of a successful lookup"""
    employee_id: str
    tier: MatchTier
    key: str

    @property
    def via_alias(self) -> bool:
        return self.tier.is_alias


class IdentityResolver:
    """
    Prioritized multi-key lookup table built from an employee snapshot.

    Example:
        resolver = IdentityResolver(employees)
        match = resolver.resolve("J. Smith")
        if match:
            print(match.employee_id, match.tier)
    """

    def __init__(self, employees: Iterable[EmployeeIdentity]):
        self._employees = list(employees)
        self._table: Dict[str, Tuple[str, MatchTier]] = {}
        self.overwrites = 0
        self._build()

    def _build(self) -> None:
        for tier in reversed(TIER_ORDER):
            key_fn = TIER_KEYS[tier]
            for emp in self._employees:
                for key in key_fn(emp):
                    previous = self._table.get(key)
                    if previous and previous[0] != emp.employee_id:
                        self.overwrites += 1
                        logger.debug(
                            "Identity key reassigned",
                            key=key,
                            tier=tier.value,
                            previous_employee_id=previous[0],
                            employee_id=emp.employee_id,
                        )
                    self._table[key] = (emp.employee_id, tier)

        logger.info(
            "Identity table built",
            employees=len(self._employees),
            keys=len(self._table),
            reassigned_keys=self.overwrites,
        )

    def __len__(self) -> int:
        return len(self._table)

    def resolve(self, label: str) -> Optional[Resolution]:
        """
        Resolve a surveyor label.

        The label is tried as given, then lower-cased. When both hit, the
        higher tier wins; on equal tiers the as-given form wins.
        """
        best: Optional[Resolution] = None
        for candidate in (label, label.lower()):
            hit = self._table.get(candidate)
            if hit is None:
                continue
            employee_id, tier = hit
            if best is None or tier.priority < best.tier.priority:
                best = Resolution(employee_id=employee_id, tier=tier, key=candidate)
        return best
