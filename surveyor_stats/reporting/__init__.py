"""
Period Reporting Module
"""
from .generator import (
    EmployeeReportSummary,
    PeriodReport,
    PeriodReportGenerator,
    TeamTotals,
    top_performers,
)
from .periods import local_now, resolve_date_range
from .renderers import RenderedDigest, render_digest, render_summary

__all__ = [
    "EmployeeReportSummary",
    "PeriodReport",
    "PeriodReportGenerator",
    "TeamTotals",
    "top_performers",
    "local_now",
    "resolve_date_range",
    "RenderedDigest",
    "render_digest",
    "render_summary",
]
