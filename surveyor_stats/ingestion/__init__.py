"""
Data Ingestion Module
"""
from .crm_client import SalesforceReportClient, SalesforceTokenProvider
from .report_parser import parse_count, parse_report

__all__ = [
    "SalesforceReportClient",
    "SalesforceTokenProvider",
    "parse_count",
    "parse_report",
]
