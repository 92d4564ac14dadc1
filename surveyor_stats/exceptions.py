"""
Exception Hierarchy

Errors raised across the survey stats pipeline:
- ConfigurationError: missing credentials, report ids or status mappings
- TransportError: CRM report fetch or delivery transport failures
- DataQualityError: unmapped statuses, unresolved actors, malformed counts
- PersistenceError: a single aggregate row failed to persist
"""

from typing import Any, Optional


class SurveyStatsError(Exception):
    """Base class for all pipeline errors"""


class ConfigurationError(SurveyStatsError):
    """Required configuration is missing or unusable. Always fatal."""


class TransportError(SurveyStatsError):
    """A remote call could not be completed"""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class DataQualityError(SurveyStatsError):
    """
    A single input value could not be used.

    Never propagated out of the pipeline: instances are recorded on the
    run diagnostics so an operator can fix the offending configuration.
    """

    def __init__(self, kind: str, raw_value: Any, message: str):
        super().__init__(message)
        self.kind = kind
        self.raw_value = raw_value


class PersistenceError(SurveyStatsError):
    """A single row failed to persist"""

    def __init__(self, message: str, employee_id: Optional[str] = None):
        super().__init__(message)
        self.employee_id = employee_id


class DeliveryError(TransportError):
    """A delivery channel's transport could not be reached at all"""

    def __init__(self, message: str, report: Any = None):
        super().__init__(message)
        self.report = report


class SyncRunFailedError(SurveyStatsError):
    """The sync step of the combined pipeline did not complete"""

    def __init__(self, message: str, run_id: Optional[int] = None):
        super().__init__(message)
        self.run_id = run_id
