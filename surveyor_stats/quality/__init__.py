"""
Data Quality Module
"""
from .diagnostics import ALIAS_GUIDANCE, RunDiagnostics

__all__ = [
    "ALIAS_GUIDANCE",
    "RunDiagnostics",
]
