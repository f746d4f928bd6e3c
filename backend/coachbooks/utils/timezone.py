import calendar
from datetime import date, datetime
from zoneinfo import ZoneInfo

from coachbooks.core.config import settings

BUSINESS_TZ = ZoneInfo(settings.business_timezone)


def now_business() -> datetime:
    return datetime.now(tz=BUSINESS_TZ)


def today_business() -> date:
    return now_business().date()


def naive_now() -> datetime:
    # Columns are stored as naive business-local datetimes.
    return now_business().replace(tzinfo=None)


def to_business_naive(dt: datetime | None) -> datetime | None:
    if dt is None or dt.tzinfo is None:
        return dt
    return dt.astimezone(BUSINESS_TZ).replace(tzinfo=None)


def add_months(dt: datetime, months: int) -> datetime:
    # Clamped to the target month's last day: Jan 31 + 1 month is Feb 28 (29 in leap years).
    total = dt.month - 1 + months
    year, month = dt.year + total // 12, total % 12 + 1
    return dt.replace(year=year, month=month, day=min(dt.day, calendar.monthrange(year, month)[1]))
