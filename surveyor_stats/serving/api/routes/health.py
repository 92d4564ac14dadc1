"""
Health Check Endpoints

Provides health and readiness checks for orchestration systems.
"""

from datetime import datetime
from typing import Any, Dict

from fastapi import APIRouter, Response
from pydantic import BaseModel

from surveyor_stats.config import get_settings
from surveyor_stats.database.connection import check_database_health

router = APIRouter()


class HealthResponse(BaseModel):
    """Health check response"""
    status: str
    version: str
    environment: str
    timestamp: datetime
    checks: Dict[str, Any]


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """
    Comprehensive health check endpoint.

    Checks:
    - Database connectivity
    - CRM credentials and report ids
    - Delivery transports
    """
    settings = get_settings()
    checks: Dict[str, Any] = {}
    overall_status = "healthy"

    db_health = await check_database_health()
    checks["database"] = db_health
    if db_health.get("status") != "healthy":
        overall_status = "unhealthy"

    missing = settings.crm.missing_credentials()
    sources = [record_type for record_type, _ in settings.crm.report_sources()]
    checks["crm"] = {
        "status": "configured" if not missing and sources else "incomplete",
        "missing": missing,
        "report_sources": sources,
    }
    if checks["crm"]["status"] != "configured" and overall_status == "healthy":
        overall_status = "degraded"

    checks["email"] = {"configured": settings.email.api_key is not None}
    checks["sms"] = {
        "configured": bool(
            settings.sms.account_sid and settings.sms.auth_token and settings.sms.phone_number
        )
    }

    return HealthResponse(
        status=overall_status,
        version=settings.version,
        environment=settings.app_env,
        timestamp=datetime.utcnow(),
        checks=checks,
    )


@router.get("/health/live")
async def liveness_check() -> Dict[str, str]:
    """
    Kubernetes liveness check endpoint.

    Returns 200 if the application is running.
    """
    return {"status": "alive"}


@router.get("/health/ready")
async def readiness_check(response: Response) -> Dict[str, str]:
    """
    Kubernetes readiness check endpoint.

    Returns 200 once the database answers.
    """
    db_health = await check_database_health()
    if db_health.get("status") != "healthy":
        response.status_code = 503
        return {"status": "not_ready", "reason": "database_unavailable"}
    return {"status": "ready"}
