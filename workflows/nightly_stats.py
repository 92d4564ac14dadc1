"""
Prefect Workflow Orchestration - Nightly Surveyor Stats

Scheduled workflows for:
- Syncing CRM outcome reports into the daily stats table
- Sending the period report by email and SMS
- The combined nightly pipeline (sync, then report)

Sync tasks never retry: a run either completes or fails, and the next
scheduled run replaces the day's rows.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator, List, Optional

from prefect import flow, get_run_logger, task

from surveyor_stats.config import get_settings
from surveyor_stats.config.logging import configure_logging
from surveyor_stats.database.connection import close_database, get_session_factory, init_database
from surveyor_stats.pipeline import PipelineServices, run_nightly, run_sync, send_period_report


@asynccontextmanager
async def pipeline_services() -> AsyncGenerator[PipelineServices, None]:
    """Database-backed services for the duration of one flow run"""
    configure_logging()
    await init_database()
    try:
        yield PipelineServices.from_settings(get_session_factory(), get_settings())
    finally:
        await close_database()


# =============================================================================
# TASKS
# =============================================================================

@task(
    name="sync_survey_stats",
    description="Reconcile CRM report outcomes into employee_survey_stats",
    retries=0,
)
async def sync_survey_stats() -> dict:
    """Run one sync and return its summary"""
    logger = get_run_logger()

    async with pipeline_services() as services:
        result = await run_sync(services)

    logger.info(
        f"Sync run {result.run_id} {result.status.value}: "
        f"{result.records_processed} records, "
        f"{len(result.diagnostics.get('unmatched_actors', []))} unmatched surveyors"
    )
    if not result.succeeded:
        raise RuntimeError(f"Sync run {result.run_id} failed: {result.error}")
    return result.as_dict()


@task(
    name="deliver_period_report",
    description="Generate, render and deliver the period report",
    retries=0,
)
async def deliver_period_report(period: Optional[str] = None, manual: bool = False) -> dict:
    """
    Send the report to the configured recipients.

    Never retried: a DeliveryError arrives after every recipient was
    attempted, so a retry would resend to the ones already reached.
    """
    logger = get_run_logger()

    async with pipeline_services() as services:
        result = await send_period_report(services, period=period, manual=manual)

    if result.get("skipped"):
        logger.info("Period reports are disabled")
    else:
        logger.info(
            f"Report ({result['period']}) delivered: "
            f"{result['emails_sent']} emails, {result['sms_sent']} SMS"
        )
    return result


@task(
    name="sync_and_report",
    description="Sync today's outcomes, then deliver the period report",
    retries=0,
)
async def sync_and_report(
    period: Optional[str] = None,
    email_recipients: Optional[List[str]] = None,
    sms_recipients: Optional[List[str]] = None,
) -> dict:
    async with pipeline_services() as services:
        return await run_nightly(
            services,
            period=period,
            email_recipients=email_recipients,
            sms_recipients=sms_recipients,
        )


# =============================================================================
# FLOWS
# =============================================================================

@flow(
    name="stats_sync",
    description="Sync CRM survey outcomes for today",
)
async def stats_sync() -> dict:
    return await sync_survey_stats()


@flow(
    name="daily_report",
    description="Send the surveyor performance report",
)
async def daily_report(period: Optional[str] = None) -> dict:
    return await deliver_period_report(period=period)


@flow(
    name="nightly_pipeline",
    description="Sync today's outcomes, then send the period report",
)
async def nightly_pipeline(
    period: Optional[str] = None,
    email_recipients: Optional[List[str]] = None,
    sms_recipients: Optional[List[str]] = None,
) -> dict:
    """
    Combined nightly run. Only syncs when period reports are disabled.

    Returns:
        {records_processed, emails_sent, sms_sent, date_range}
    """
    logger = get_run_logger()

    result = await sync_and_report(
        period=period,
        email_recipients=email_recipients,
        sms_recipients=sms_recipients,
    )
    logger.info(
        f"Nightly pipeline complete: {result['records_processed']} records, "
        f"{result['emails_sent']} emails, {result['sms_sent']} SMS"
    )
    return result


# =============================================================================
# DEPLOYMENT CONFIGURATION
# =============================================================================

if __name__ == "__main__":
    import asyncio
    import sys

    if "--serve" in sys.argv:
        from prefect.client.schemas.schedules import CronSchedule

        report = get_settings().report
        nightly_pipeline.serve(
            name="nightly-surveyor-stats",
            schedule=CronSchedule(cron=report.cron_schedule, timezone=report.timezone),
        )
    else:
        asyncio.run(nightly_pipeline())
