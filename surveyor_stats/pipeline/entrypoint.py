"""
Pipeline Entry Points

- send_period_report: generate, render and deliver a period report
- run_pipeline: sync the current day, then send the period report
- run_nightly: the scheduled variant; sync only when reports are disabled

Both are called from the API routes and the Prefect flows.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional, Sequence, Union

import structlog
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from surveyor_stats.config.settings import Settings, get_settings
from surveyor_stats.database.store import SurveyStatsStore
from surveyor_stats.exceptions import SyncRunFailedError
from surveyor_stats.ingestion.crm_client import SalesforceReportClient
from surveyor_stats.interfaces import EmailSender, ReportFetcher, SMSSender
from surveyor_stats.notifications import SendGridEmailSender, TwilioSMSSender, deliver
from surveyor_stats.reporting import (
    PeriodReportGenerator,
    local_now,
    render_digest,
    render_summary,
)
from surveyor_stats.schemas import ReportPeriod
from .sync_run import StatsSyncRunner, SyncRunResult

logger = structlog.get_logger(__name__)


@dataclass
class PipelineServices:
    """Collaborators wired for one process"""
    store: SurveyStatsStore
    fetcher: ReportFetcher
    email_sender: EmailSender
    sms_sender: SMSSender
    settings: Settings

    @classmethod
    def from_settings(
        cls,
        session_factory: async_sessionmaker[AsyncSession],
        settings: Optional[Settings] = None,
    ) -> "PipelineServices":
        settings = settings or get_settings()
        return cls(
            store=SurveyStatsStore(session_factory),
            fetcher=SalesforceReportClient(settings.crm),
            email_sender=SendGridEmailSender(settings.email),
            sms_sender=TwilioSMSSender(settings.sms),
            settings=settings,
        )

    def now(self) -> datetime:
        return local_now(self.settings.report.timezone)

    def sync_runner(self) -> StatsSyncRunner:
        return StatsSyncRunner(
            self.fetcher,
            self.store,
            self.store,
            config=self.settings.crm,
            clock=self.now,
        )


async def run_sync(services: PipelineServices) -> SyncRunResult:
    return await services.sync_runner().run()


async def send_period_report(
    services: PipelineServices,
    period: Union[ReportPeriod, str, None] = None,
    email_recipients: Optional[Sequence[str]] = None,
    sms_recipients: Optional[Sequence[str]] = None,
    manual: bool = True,
) -> Dict[str, Any]:
    """
    Generate and deliver a period report.

    Recipients and period default to the report settings. Scheduled
    (non-manual) sends are skipped when reports are disabled.

    Raises:
        DeliveryError: a whole channel was unreachable
    """
    config = services.settings.report
    period = ReportPeriod(period or config.period)

    if not config.enabled and not manual:
        logger.info("Period reports disabled, skipping", period=period.value)
        return {"skipped": True, "emails_sent": 0, "sms_sent": 0, "employees_reported": 0}

    if email_recipients is None:
        email_recipients = config.email_recipients
    if sms_recipients is None:
        sms_recipients = config.sms_recipients

    generator = PeriodReportGenerator(services.store, config)
    report = await generator.generate(period, services.now())

    digest = render_digest(report, incident_detail_limit=config.incident_detail_limit)
    summary = render_summary(report, top_count=config.top_performer_count)

    delivery = await deliver(
        digest,
        summary,
        list(email_recipients),
        list(sms_recipients),
        services.email_sender,
        services.sms_sender,
    )
    return {
        "skipped": False,
        "period": period.value,
        "date_range": report.date_range.as_dict(),
        "employees_reported": len(report.employees),
        **delivery.as_dict(),
    }


async def run_pipeline(
    services: PipelineServices,
    period: Union[ReportPeriod, str, None] = None,
    email_recipients: Optional[Sequence[str]] = None,
    sms_recipients: Optional[Sequence[str]] = None,
) -> Dict[str, Any]:
    """
    Sync, then report.

    Returns:
        {records_processed, emails_sent, sms_sent, date_range}

    Raises:
        SyncRunFailedError: the sync failed; nothing was delivered
        DeliveryError: a whole delivery channel was unreachable
    """
    sync = await run_sync(services)
    if not sync.succeeded:
        raise SyncRunFailedError(f"Stats sync failed: {sync.error}", run_id=sync.run_id)

    delivery = await send_period_report(
        services,
        period=period,
        email_recipients=email_recipients,
        sms_recipients=sms_recipients,
        manual=True,
    )
    return {
        "records_processed": sync.records_processed,
        "emails_sent": delivery["emails_sent"],
        "sms_sent": delivery["sms_sent"],
        "date_range": delivery["date_range"],
    }


async def run_nightly(
    services: PipelineServices,
    period: Union[ReportPeriod, str, None] = None,
    email_recipients: Optional[Sequence[str]] = None,
    sms_recipients: Optional[Sequence[str]] = None,
) -> Dict[str, Any]:
    """
    Scheduled run: sync, then report unless reports are disabled.

    Returns:
        {records_processed, emails_sent, sms_sent, date_range}; date_range is
        None when reports are disabled and nothing was sent.

    Raises:
        SyncRunFailedError: the sync failed; nothing was delivered
        DeliveryError: a whole delivery channel was unreachable
    """
    if services.settings.report.enabled:
        return await run_pipeline(
            services,
            period=period,
            email_recipients=email_recipients,
            sms_recipients=sms_recipients,
        )

    logger.info("Period reports disabled, running sync only")
    sync = await run_sync(services)
    if not sync.succeeded:
        raise SyncRunFailedError(f"Stats sync failed: {sync.error}", run_id=sync.run_id)
    return {
        "records_processed": sync.records_processed,
        "emails_sent": 0,
        "sms_sent": 0,
        "date_range": None,
    }
