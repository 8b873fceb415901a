import math

from utils.stages import (
    MASTERED_STAGE,
    REVIEW_STAGES,
    describe_due,
    next_review_time,
    next_stage,
    stages_info,
)
from utils.timeutil import MS_PER_HOUR, format_duration


def test_stage_table_intervals():
    assert len(REVIEW_STAGES) == 7
    assert [s.interval_hours for s in REVIEW_STAGES[:-1]] == [24, 48, 96, 168, 360, 720]
    assert math.isinf(REVIEW_STAGES[MASTERED_STAGE].interval_hours)
    assert REVIEW_STAGES[MASTERED_STAGE].label == "Mastered"


def test_next_stage_is_capped_at_mastered():
    assert next_stage(0) == 1
    assert next_stage(5) == MASTERED_STAGE
    assert next_stage(MASTERED_STAGE) == MASTERED_STAGE


def test_next_review_time_and_description():
    last = 1_000_000_000_000
    assert next_review_time(0, last) == last + 24 * MS_PER_HOUR
    assert next_review_time(MASTERED_STAGE, last) is None
    assert describe_due(0, last, last + 19 * MS_PER_HOUR) == "due in 5h"
    assert describe_due(0, last, last + 51 * MS_PER_HOUR) == "overdue 1d 3h"
    assert describe_due(MASTERED_STAGE, last, last) == "mastered"


def test_format_duration_floors_to_one_minute():
    assert format_duration(10) == "1m"
    assert format_duration(48 * MS_PER_HOUR) == "2d"


def test_stages_info_reports_null_for_mastered():
    info = stages_info()
    assert info[0] == {"stage": 0, "label": "Review 1", "interval_hours": 24}
    assert info[-1]["interval_hours"] is None
