"""
Delivery Fan-out

Sends the rendered digest to every email recipient and the summary to every
SMS recipient. Each recipient is attempted independently and concurrently;
one failure never affects another recipient or the other channel.

Only a channel that could not be reached at all raises, and only after both
channels have been attempted.
"""

import asyncio
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Sequence

import structlog
from prometheus_client import Counter

from surveyor_stats.exceptions import DeliveryError, TransportError
from surveyor_stats.interfaces import EmailSender, SMSSender
from surveyor_stats.reporting.renderers import RenderedDigest

logger = structlog.get_logger(__name__)


# =============================================================================
# METRICS
# =============================================================================

DELIVERY_ATTEMPTS = Counter(
    "surveyor_stats_delivery_attempts_total",
    "Per-recipient delivery attempts",
    ["channel", "outcome"],
)


# =============================================================================
# RESULT
# =============================================================================

@dataclass
class DeliveryReport:
    emails_sent: int = 0
    sms_sent: int = 0
    email_failures: List[str] = field(default_factory=list)
    sms_failures: List[str] = field(default_factory=list)
    unreachable_channels: List[str] = field(default_factory=list)

    def as_dict(self) -> Dict[str, Any]:
        return {
            "emails_sent": self.emails_sent,
            "sms_sent": self.sms_sent,
            "email_failures": list(self.email_failures),
            "sms_failures": list(self.sms_failures),
            "unreachable_channels": list(self.unreachable_channels),
        }


# Outcome of one recipient attempt
SENT, REJECTED, UNREACHABLE = "sent", "rejected", "unreachable"


async def _attempt(channel: str, recipient: str, send: Callable[[], Awaitable[bool]]) -> str:
    try:
        accepted = await send()
    except TransportError as e:
        logger.error("Delivery transport error", channel=channel, recipient=recipient, error=str(e))
        outcome = UNREACHABLE
    except Exception as e:
        logger.exception("Delivery failed", channel=channel, recipient=recipient, error=str(e))
        outcome = REJECTED
    else:
        outcome = SENT if accepted else REJECTED
        if not accepted:
            logger.warning("Delivery rejected", channel=channel, recipient=recipient)

    DELIVERY_ATTEMPTS.labels(channel=channel, outcome=outcome).inc()
    return outcome


async def _fan_out(
    channel: str,
    recipients: Sequence[str],
    send: Callable[[str], Awaitable[bool]],
) -> List[str]:
    return list(await asyncio.gather(
        *(_attempt(channel, r, lambda r=r: send(r)) for r in recipients)
    ))


def _tally(recipients: Sequence[str], outcomes: List[str], failures: List[str]) -> int:
    sent = 0
    for recipient, outcome in zip(recipients, outcomes):
        if outcome == SENT:
            sent += 1
        else:
            failures.append(recipient)
    return sent


async def deliver(
    digest: RenderedDigest,
    summary: str,
    email_recipients: Sequence[str],
    sms_recipients: Sequence[str],
    email_sender: EmailSender,
    sms_sender: SMSSender,
) -> DeliveryReport:
    """
    Deliver a rendered report to all recipients.

    Returns:
        DeliveryReport with per-channel counts and failed recipients

    Raises:
        DeliveryError: a channel with recipients was not configured, or every
            attempt on it failed at the transport level. The partial report is
            attached to the error.
    """
    report = DeliveryReport()

    if email_recipients:
        if not email_sender.is_configured():
            logger.error("Email transport not configured", recipients=len(email_recipients))
            report.email_failures.extend(email_recipients)
            report.unreachable_channels.append("email")
        else:
            logger.info("Sending digest emails", recipients=len(email_recipients))
            outcomes = await _fan_out(
                "email",
                email_recipients,
                lambda to: email_sender.send_email(to, digest.subject, digest.body),
            )
            report.emails_sent = _tally(email_recipients, outcomes, report.email_failures)
            if all(outcome == UNREACHABLE for outcome in outcomes):
                report.unreachable_channels.append("email")

    if sms_recipients and summary:
        if not sms_sender.is_configured():
            logger.error("SMS transport not configured", recipients=len(sms_recipients))
            report.sms_failures.extend(sms_recipients)
            report.unreachable_channels.append("sms")
        else:
            logger.info("Sending summary SMS", recipients=len(sms_recipients))
            outcomes = await _fan_out(
                "sms",
                sms_recipients,
                lambda to: sms_sender.send_sms(to, summary),
            )
            report.sms_sent = _tally(sms_recipients, outcomes, report.sms_failures)
            if all(outcome == UNREACHABLE for outcome in outcomes):
                report.unreachable_channels.append("sms")

    logger.info(
        "Delivery finished",
        emails_sent=report.emails_sent,
        sms_sent=report.sms_sent,
        email_failures=len(report.email_failures),
        sms_failures=len(report.sms_failures),
    )

    if report.unreachable_channels:
        raise DeliveryError(
            f"Delivery channel unreachable: {', '.join(report.unreachable_channels)}",
            report=report,
        )
    return report
