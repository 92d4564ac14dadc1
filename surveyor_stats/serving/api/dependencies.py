"""
Route dependencies.
"""

from fastapi import HTTPException, Request

from surveyor_stats.pipeline import PipelineServices


def get_services(request: Request) -> PipelineServices:
    """Services wired at startup; 503 until the database is up"""
    services = getattr(request.app.state, "services", None)
    if services is None:
        raise HTTPException(status_code=503, detail="Pipeline services not initialized")
    return services
