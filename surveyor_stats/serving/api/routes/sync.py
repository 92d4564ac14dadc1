"""
Sync API Endpoints

Manual trigger and history of stats sync runs.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
import structlog

from surveyor_stats.pipeline import PipelineServices, run_sync
from ..dependencies import get_services

router = APIRouter()
logger = structlog.get_logger(__name__)


class SyncRunResponse(BaseModel):
    """Outcome of a sync run"""
    run_id: int
    status: str
    started_at: datetime
    completed_at: Optional[datetime]
    records_processed: int
    sources: List[Dict[str, Any]]
    diagnostics: Dict[str, Any]
    error: Optional[str]


class SyncRunSummary(BaseModel):
    """Sync run audit record"""
    id: int
    status: str
    started_at: datetime
    completed_at: Optional[datetime]
    records_processed: int
    error_message: Optional[str]


@router.post("/run", response_model=SyncRunResponse)
async def trigger_sync(services: PipelineServices = Depends(get_services)) -> SyncRunResponse:
    """
    Run a stats sync now.

    A failed run is still a 200: the failure is reported in the body and in
    the sync log.
    """
    logger.info("Manual stats sync requested")
    result = await run_sync(services)
    return SyncRunResponse(**result.as_dict())


@router.get("/runs", response_model=List[SyncRunSummary])
async def list_sync_runs(
    limit: int = Query(20, ge=1, le=200),
    services: PipelineServices = Depends(get_services),
) -> List[SyncRunSummary]:
    """Most recent sync runs, newest first"""
    runs = await services.store.recent_runs(limit)
    return [
        SyncRunSummary(
            id=run.id,
            status=run.status.value,
            started_at=run.started_at,
            completed_at=run.completed_at,
            records_processed=run.records_processed,
            error_message=run.error_message,
        )
        for run in runs
    ]
