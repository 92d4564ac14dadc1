"""
Data Transformation Module
"""
from .aggregation import OutcomeTuple, aggregate_outcomes, classify_rows
from .identity import IdentityResolver, MatchTier, Resolution
from .status_mapping import StatusMappingResolver

__all__ = [
    "OutcomeTuple",
    "aggregate_outcomes",
    "classify_rows",
    "IdentityResolver",
    "MatchTier",
    "Resolution",
    "StatusMappingResolver",
]
