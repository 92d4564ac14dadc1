"""
Surveyor Stats Platform

Nightly reconciliation of CRM survey outcomes into per-employee daily stats,
plus period performance reports delivered by email and SMS.
"""

__version__ = "1.0.0"
