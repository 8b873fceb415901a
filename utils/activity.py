from __future__ import annotations

from datetime import date, timedelta
from typing import Dict, Optional

from utils.timeutil import parse_day_key


def current_streak(activity_log: Dict[str, int], today: Optional[date] = None) -> int:
    """Consecutive active days ending today."""
    day = today or date.today()
    streak = 0
    while activity_log.get(day.isoformat(), 0) > 0:
        streak += 1
        day -= timedelta(days=1)
    return streak


def longest_streak(activity_log: Dict[str, int]) -> int:
    days = []
    for key, count in activity_log.items():
        if count <= 0:
            continue
        try:
            days.append(parse_day_key(key))
        except ValueError:
            continue
    if not days:
        return 0
    days.sort()
    longest = current = 1
    for prev, day in zip(days, days[1:]):
        if (day - prev).days == 1:
            current += 1
            longest = max(longest, current)
        else:
            current = 1
    return longest


def mastery_percent(mastered: int, total: int) -> float:
    if total <= 0:
        return 0.0
    return round((mastered / total) * 100, 1)
