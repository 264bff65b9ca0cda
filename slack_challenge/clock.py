"""Week and day-slot arithmetic in the challenge time zone."""

from __future__ import annotations

import math
from datetime import date, datetime, timedelta, timezone
from typing import Optional, Union
from zoneinfo import ZoneInfo

from .models import WeekInfo

WEEKDAY_NAMES = ("월요일", "화요일", "수요일", "목요일", "금요일", "토요일", "일요일")

Timestamp = Union[float, int, datetime]


def week_id_for(day: date) -> str:
    iso = day.isocalendar()
    return f"{iso.year}-W{iso.week:02d}"


def week_start(day: date) -> date:
    return day - timedelta(days=day.weekday())


def week_of_month(day: date) -> int:
    """Return the 1-based week of the month, counting Monday-started weeks.

    Anchoring on week starts instead of raw ISO week numbers keeps the value
    correct in January, where the 1st may belong to week 52 or 53.
    """

    first = day.replace(day=1)
    return (week_start(day) - week_start(first)).days // 7 + 1


def to_local(timestamp: Timestamp, zone: ZoneInfo) -> datetime:
    if isinstance(timestamp, datetime):
        if timestamp.tzinfo is None:
            raise ValueError("naive datetimes are not accepted; attach a tzinfo")
        return timestamp.astimezone(zone)
    if isinstance(timestamp, bool) or not isinstance(timestamp, (int, float)):
        raise ValueError(f"unsupported timestamp: {timestamp!r}")
    if not math.isfinite(timestamp):
        raise ValueError(f"timestamp must be finite, got {timestamp!r}")
    try:
        return datetime.fromtimestamp(timestamp, tz=timezone.utc).astimezone(zone)
    except (OverflowError, OSError) as exc:
        raise ValueError(f"timestamp out of range: {timestamp!r}") from exc


def resolve(timestamp: Timestamp, zone: ZoneInfo) -> WeekInfo:
    """Resolve a timestamp to its week, month and weekday in ``zone``."""

    local = to_local(timestamp, zone)
    day = local.date()
    weekday_index = day.weekday()
    return WeekInfo(
        week_id=week_id_for(day),
        month=day.month,
        week_of_month=week_of_month(day),
        weekday_index=weekday_index,
        weekday_name=WEEKDAY_NAMES[weekday_index],
        local=local,
    )


def now(zone: ZoneInfo) -> datetime:
    return datetime.now(timezone.utc).astimezone(zone)


def slot_for(weekday_index: int, week_length: int) -> Optional[int]:
    """Return the row column for a weekday, or ``None`` when it is not tracked."""

    if 0 <= weekday_index < week_length:
        return weekday_index
    return None


__all__ = [
    "WEEKDAY_NAMES",
    "now",
    "resolve",
    "slot_for",
    "to_local",
    "week_id_for",
    "week_of_month",
    "week_start",
]
