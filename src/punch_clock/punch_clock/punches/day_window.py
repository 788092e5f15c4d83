from __future__ import annotations

from datetime import date, datetime, time, timezone

from ..common.datetime_utils import as_utc, get_zone
from ..core.exceptions import ValidationError
from .model import DayWindow, PeriodWindow

_LAST_MILLISECOND = time(23, 59, 59, 999000)


def day_start(day: date, tz_name: str) -> datetime:
    """Local midnight of ``day`` expressed in UTC."""
    local = datetime.combine(day, time.min, tzinfo=get_zone(tz_name))
    return local.astimezone(timezone.utc)


def day_end(day: date, tz_name: str) -> datetime:
    """Local 23:59:59.999 of ``day`` expressed in UTC (inclusive upper bound)."""
    local = datetime.combine(day, _LAST_MILLISECOND, tzinfo=get_zone(tz_name))
    return local.astimezone(timezone.utc)


def local_date(instant: datetime, tz_name: str) -> date:
    return as_utc(instant).astimezone(get_zone(tz_name)).date()


def day_window(day: date, tz_name: str) -> DayWindow:
    return DayWindow(day=day, start=day_start(day, tz_name), end=day_end(day, tz_name))


def today_window(now: datetime, tz_name: str) -> DayWindow:
    """Window of the day containing ``now``; open-ended because the day is still running."""
    today = local_date(now, tz_name)
    return DayWindow(day=today, start=day_start(today, tz_name), end=None)


def period_window(first_day: date, last_day: date, tz_name: str) -> PeriodWindow:
    if last_day < first_day:
        raise ValidationError("'to' must not be before 'from'")
    return PeriodWindow(
        first_day=first_day,
        last_day=last_day,
        start=day_start(first_day, tz_name),
        end=day_end(last_day, tz_name),
    )
