"""Priority scoring for due problems.

priority = overdueRatio * difficultyWeight * tagWeight

overdueRatio is max(0, (elapsed - interval) / interval), so a problem that is
not yet due scores exactly 0 and mastered problems score -inf.
"""
from __future__ import annotations

import math
from typing import Iterable, List, Mapping, Optional

from models.problem import Problem
from utils.stages import interval_days, interval_ms, is_mastered
from utils.tags import max_tag_weight
from utils.timeutil import review_day

DIFFICULTY_WEIGHTS = {
    "Easy": 0.8,
    "Medium": 1.0,
    "Hard": 1.5,
}
DEFAULT_DIFFICULTY_WEIGHT = 1.0
DEFAULT_TAG_WEIGHT = 1.0

INTERVAL_MODE_ELAPSED = "elapsed"
INTERVAL_MODE_CALENDAR = "calendar"


def difficulty_weight(difficulty: Optional[str]) -> float:
    return DIFFICULTY_WEIGHTS.get(difficulty or "", DEFAULT_DIFFICULTY_WEIGHT)


def overdue_ratio(
    stage: int,
    last_review_time: int,
    now: int,
    mode: str = INTERVAL_MODE_ELAPSED,
    boundary_hour: int = 2,
) -> float:
    if mode == INTERVAL_MODE_CALENDAR:
        elapsed = review_day(now, boundary_hour) - review_day(last_review_time, boundary_hour)
        interval = interval_days(stage)
    else:
        elapsed = now - last_review_time
        interval = interval_ms(stage)
    return max(0.0, (elapsed - interval) / interval)


def calculate_priority(
    problem: Problem,
    tag_weights: Mapping[str, float],
    now: int,
    mode: str = INTERVAL_MODE_ELAPSED,
    boundary_hour: int = 2,
) -> float:
    if is_mastered(problem.stage):
        return -math.inf
    ratio = overdue_ratio(problem.stage, problem.last_review_time, now, mode, boundary_hour)
    return (
        ratio
        * difficulty_weight(problem.difficulty)
        * max_tag_weight(problem.tags, tag_weights, DEFAULT_TAG_WEIGHT)
    )


def refresh_priorities(
    problems: Iterable[Problem],
    tag_weights: Mapping[str, float],
    now: int,
    mode: str = INTERVAL_MODE_ELAPSED,
    boundary_hour: int = 2,
) -> List[Problem]:
    refreshed = []
    for problem in problems:
        problem.priority_score = calculate_priority(problem, tag_weights, now, mode, boundary_hour)
        refreshed.append(problem)
    return refreshed


def build_review_queue(problems: Iterable[Problem]) -> List[Problem]:
    """Non-mastered problems, highest score first; ties keep enumeration order."""
    active = [p for p in problems if not is_mastered(p.stage)]
    return sorted(active, key=lambda p: p.priority_score, reverse=True)


def is_due(problem: Problem) -> bool:
    return problem.priority_score > 0 and not is_mastered(problem.stage)
