from __future__ import annotations

import time
from datetime import date, datetime, timedelta, timezone

MS_PER_MINUTE = 60_000
MS_PER_HOUR = 3_600_000
MS_PER_DAY = 86_400_000


def now_ms() -> int:
    return int(time.time() * 1000)


def local_datetime(ts_ms: int) -> datetime:
    return datetime.fromtimestamp(ts_ms / 1000)


def day_key(ts_ms: int) -> str:
    """Local calendar day of a timestamp as YYYY-MM-DD."""
    return local_datetime(ts_ms).date().isoformat()


def review_day(ts_ms: int, boundary_hour: int = 2) -> int:
    """Ordinal of the review day containing ts_ms.

    A review day starts at boundary_hour local time, so 01:59 still belongs
    to the previous day.
    """
    shifted = local_datetime(ts_ms) - timedelta(hours=boundary_hour)
    return shifted.date().toordinal()


def iso_utc(ts_ms: int) -> str:
    return datetime.fromtimestamp(ts_ms / 1000, tz=timezone.utc).isoformat()


def parse_day_key(value: str) -> date:
    return date.fromisoformat(value)


def format_duration(ms: int) -> str:
    """Compact duration such as '2d 3h', '5h' or '12m' (never below 1m)."""
    hours = int(ms // MS_PER_HOUR)
    days, rem_hours = divmod(hours, 24)
    if days > 0:
        return f"{days}d {rem_hours}h" if rem_hours > 0 else f"{days}d"
    if hours > 0:
        return f"{hours}h"
    return f"{max(1, int(ms // MS_PER_MINUTE))}m"
