"""
Report period windows.

All datetimes are naive and expressed in the configured report timezone.
"""

from datetime import datetime, time, timedelta
from typing import Optional, Union
from zoneinfo import ZoneInfo

from surveyor_stats.schemas import DateRange, ReportPeriod


def local_now(tz_name: Optional[str] = None) -> datetime:
    """Current wall-clock time in ``tz_name`` without tzinfo"""
    if not tz_name:
        return datetime.now()
    return datetime.now(ZoneInfo(tz_name)).replace(tzinfo=None)


def resolve_date_range(period: Union[ReportPeriod, str], now: datetime) -> DateRange:
    """
    Window covered by a period report.

    - today: midnight today .. now
    - yesterday: midnight yesterday .. 23:59:59 yesterday
    - last_7_days: midnight seven days ago .. now
    """
    period = ReportPeriod(period)
    midnight = datetime.combine(now.date(), time.min)

    if period is ReportPeriod.YESTERDAY:
        start = midnight - timedelta(days=1)
        return DateRange(start=start, end=datetime.combine(start.date(), time(23, 59, 59)))
    if period is ReportPeriod.LAST_7_DAYS:
        return DateRange(start=midnight - timedelta(days=7), end=now)
    return DateRange(start=midnight, end=now)
