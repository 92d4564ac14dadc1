"""
Pipeline Orchestration Module
"""
from .entrypoint import PipelineServices, run_nightly, run_pipeline, run_sync, send_period_report
from .sync_run import StatsSyncRunner, SyncRunResult

__all__ = [
    "PipelineServices",
    "run_nightly",
    "run_pipeline",
    "run_sync",
    "send_period_report",
    "StatsSyncRunner",
    "SyncRunResult",
]
