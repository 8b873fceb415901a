import pytest

from db.store import ScheduleStore
from models.problem import Problem
from utils.engine import ReviewEngine

T0 = 1_770_000_000_000


class FakeClock:
    def __init__(self, now: int):
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> int:
        self.now += ms
        return self.now


@pytest.fixture
def clock():
    return FakeClock(T0)


@pytest.fixture
def store(tmp_path):
    return ScheduleStore(tmp_path / "leetcurve.db")


@pytest.fixture
def engine(store, clock):
    return ReviewEngine(store, clock=clock)


@pytest.fixture
def make_problem():
    def _make(slug="two-sum", stage=0, last_review_time=T0, difficulty="Medium", tags=None, **extra):
        return Problem(
            slug=slug,
            title=extra.pop("title", slug),
            difficulty=difficulty,
            tags=tags or [],
            stage=stage,
            first_accepted_time=extra.pop("first_accepted_time", last_review_time),
            last_review_time=last_review_time,
            review_history=extra.pop("review_history", [last_review_time]),
            **extra,
        )
    return _make
