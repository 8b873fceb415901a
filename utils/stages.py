from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Dict, List, Optional

from utils.timeutil import MS_PER_HOUR, format_duration


@dataclass(frozen=True)
class ReviewStage:
    label: str
    interval_hours: float  # math.inf for the mastered stage


REVIEW_STAGES = (
    ReviewStage("Review 1", 24),
    ReviewStage("Review 2", 48),
    ReviewStage("Review 3", 96),
    ReviewStage("Review 4", 168),
    ReviewStage("Review 5", 360),
    ReviewStage("Review 6", 720),
    ReviewStage("Mastered", math.inf),
)

MASTERED_STAGE = len(REVIEW_STAGES) - 1


def clamp_stage(stage: int) -> int:
    return max(0, min(int(stage), MASTERED_STAGE))


def next_stage(stage: int) -> int:
    """Advance one stage, capped at the mastered stage."""
    return clamp_stage(stage + 1)


def is_mastered(stage: int) -> bool:
    return stage >= MASTERED_STAGE


def stage_label(stage: int) -> str:
    return REVIEW_STAGES[clamp_stage(stage)].label


def interval_ms(stage: int) -> float:
    return REVIEW_STAGES[clamp_stage(stage)].interval_hours * MS_PER_HOUR


def interval_days(stage: int) -> float:
    return REVIEW_STAGES[clamp_stage(stage)].interval_hours / 24


def next_review_time(stage: int, last_review_time: int) -> Optional[int]:
    """Timestamp (ms) at which the problem becomes due, None once mastered."""
    if is_mastered(stage):
        return None
    return int(last_review_time + interval_ms(stage))


def describe_due(stage: int, last_review_time: int, now: int) -> str:
    due_at = next_review_time(stage, last_review_time)
    if due_at is None:
        return "mastered"
    diff = due_at - now
    if diff <= 0:
        return f"overdue {format_duration(abs(diff))}"
    return f"due in {format_duration(diff)}"


def stages_info() -> List[Dict]:
    return [
        {
            "stage": index,
            "label": stage.label,
            "interval_hours": None if math.isinf(stage.interval_hours) else stage.interval_hours,
        }
        for index, stage in enumerate(REVIEW_STAGES)
    ]
