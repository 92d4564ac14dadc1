"""
Report API Endpoints

- POST /reports/send: generate and deliver a period report
- POST /pipeline/run: sync, then deliver the report
"""

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
import structlog

from surveyor_stats.exceptions import DeliveryError, SyncRunFailedError
from surveyor_stats.pipeline import PipelineServices, run_pipeline, send_period_report
from surveyor_stats.schemas import ReportPeriod
from ..dependencies import get_services

router = APIRouter()
logger = structlog.get_logger(__name__)


class ReportRequest(BaseModel):
    """Report trigger; omitted fields fall back to the report settings"""
    period: Optional[ReportPeriod] = None
    email_recipients: Optional[List[str]] = None
    sms_recipients: Optional[List[str]] = None


class PipelineResponse(BaseModel):
    records_processed: int
    emails_sent: int
    sms_sent: int
    date_range: Dict[str, str]


def _delivery_failed(error: DeliveryError) -> HTTPException:
    detail: Dict[str, Any] = {"error": str(error)}
    if error.report is not None:
        detail["delivery"] = error.report.as_dict()
    return HTTPException(status_code=502, detail=detail)


@router.post("/reports/send")
async def send_report(
    request: ReportRequest,
    services: PipelineServices = Depends(get_services),
) -> Dict[str, Any]:
    """Generate and deliver a period report without syncing first"""
    try:
        return await send_period_report(
            services,
            period=request.period,
            email_recipients=request.email_recipients,
            sms_recipients=request.sms_recipients,
            manual=True,
        )
    except DeliveryError as e:
        raise _delivery_failed(e) from e


@router.post("/pipeline/run", response_model=PipelineResponse)
async def trigger_pipeline(
    request: ReportRequest,
    services: PipelineServices = Depends(get_services),
) -> PipelineResponse:
    """Sync today's stats, then deliver the period report"""
    try:
        result = await run_pipeline(
            services,
            period=request.period,
            email_recipients=request.email_recipients,
            sms_recipients=request.sms_recipients,
        )
    except SyncRunFailedError as e:
        logger.error("Pipeline aborted, sync failed", run_id=e.run_id, error=str(e))
        raise HTTPException(status_code=500, detail={"error": str(e), "run_id": e.run_id}) from e
    except DeliveryError as e:
        raise _delivery_failed(e) from e
    return PipelineResponse(**result)
