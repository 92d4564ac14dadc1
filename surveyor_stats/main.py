"""
FastAPI Production Application

Main entry point for the Surveyor Stats API.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from sqlalchemy.exc import SQLAlchemyError
import structlog

from surveyor_stats.config import get_settings
from surveyor_stats.config.logging import configure_logging
from surveyor_stats.database.connection import close_database, get_session_factory, init_database
from surveyor_stats.pipeline import PipelineServices
from surveyor_stats.serving.api import create_api_app

settings = get_settings()
logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    configure_logging()
    logger.info("Starting Surveyor Stats API", environment=settings.app_env)

    try:
        await init_database()
        app.state.services = PipelineServices.from_settings(get_session_factory(), settings)
        logger.info("Database initialized")
    except (SQLAlchemyError, OSError) as e:
        logger.warning("Database init failed, pipeline routes disabled", error=str(e))

    yield

    logger.info("Shutting down...")
    await close_database()


app = create_api_app(lifespan=lifespan)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=settings.api_host, port=settings.api_port)
