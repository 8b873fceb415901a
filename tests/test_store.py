import math

import pytest

from models.problem import CodeEntry, Problem
from models.settings import Settings
from utils.errors import InvalidInputError, NotFoundError, StorageError
from utils.timeutil import MS_PER_DAY, day_key

T0 = 1_770_000_000_000


def test_put_and_get_round_trip(store, make_problem):
    problem = make_problem(
        tags=["Array", "Hash Table"],
        review_history=[T0 - MS_PER_DAY, T0],
        code="return []",
        code_history=[CodeEntry(code="return []", lang="python3", time=T0)],
        note="two pointers",
    )
    store.put_problem("two-sum", problem)
    loaded = store.get_problem("two-sum")
    assert loaded == problem


def test_put_rejects_mismatched_slug(store, make_problem):
    with pytest.raises(InvalidInputError):
        store.put_problem("other", make_problem())
    assert store.get_problem("other") is None


def test_put_overwrites_history(store, make_problem):
    store.put_problem("two-sum", make_problem(review_history=[T0]))
    store.put_problem("two-sum", make_problem(stage=1, review_history=[T0, T0 + 5]))
    loaded = store.get_problem("two-sum")
    assert loaded.stage == 1
    assert loaded.review_history == [T0, T0 + 5]


def test_list_keeps_insertion_order(store, make_problem):
    for slug in ["c", "a", "b"]:
        store.put_problem(slug, make_problem(slug=slug))
    store.put_problem("a", make_problem(slug="a", stage=2))
    assert [p.slug for p in store.list_problems()] == ["c", "a", "b"]
    assert store.count_problems() == 3


def test_delete_unknown_slug_is_not_an_error(store, make_problem):
    store.put_problem("two-sum", make_problem())
    assert store.delete_problem("two-sum") is True
    assert store.delete_problem("two-sum") is False
    assert store.list_problems() == []


def test_mastered_score_survives_storage(store, make_problem):
    problem = make_problem(stage=6)
    problem.priority_score = -math.inf
    store.put_problem("two-sum", problem)
    assert store.get_problem("two-sum").priority_score == -math.inf


def test_update_priorities(store, make_problem):
    store.put_problem("a", make_problem(slug="a"))
    store.put_problem("b", make_problem(slug="b"))
    store.update_priorities({"a": 1.25, "b": 0.0})
    assert store.get_problem("a").priority_score == 1.25


def test_settings_round_trip(store):
    assert store.get_settings().tag_weights == {}
    store.put_settings(Settings(tagWeights={"DP": 2.0, "Graph": 1.5}))
    assert store.get_settings().tag_weights == {"DP": 2.0, "Graph": 1.5}
    store.put_settings(Settings())
    assert store.get_settings().tag_weights == {}


def test_increment_today_accumulates(store):
    assert store.increment_today(T0) == day_key(T0)
    store.increment_today(T0 + 1000)
    store.increment_today(T0 + 2 * MS_PER_DAY)
    log = store.get_activity_log()
    assert log[day_key(T0)] == 2
    assert log[day_key(T0 + 2 * MS_PER_DAY)] == 1


def test_reset_unknown_slug(store):
    with pytest.raises(NotFoundError):
        store.reset_problem("missing", T0)


def test_reset_keeps_history_and_note(store, make_problem):
    store.put_problem("two-sum", make_problem(stage=4, review_history=[T0 - 5, T0], note="n"))
    reset = store.reset_problem("two-sum", T0 + MS_PER_DAY)
    assert reset.stage == 0
    loaded = store.get_problem("two-sum")
    assert loaded.last_review_time == T0 + MS_PER_DAY
    assert loaded.review_history == [T0 - 5, T0]
    assert loaded.note == "n"


def test_snapshot_collects_everything(store, make_problem):
    store.put_problem("two-sum", make_problem())
    store.put_settings(Settings(tagWeights={"Array": 1.2}))
    store.increment_today(T0)
    snapshot = store.snapshot()
    assert list(snapshot.problems) == ["two-sum"]
    assert snapshot.settings.tag_weights == {"Array": 1.2}
    assert snapshot.activity_log == {day_key(T0): 1}


def test_replace_all_is_atomic(store, make_problem):
    store.put_problem("two-sum", make_problem())
    broken = Problem.model_construct(
        slug="broken",
        title="broken",
        stage=99,
        first_accepted_time=T0,
        last_review_time=T0,
        review_history=[T0],
    )
    with pytest.raises(StorageError):
        store.replace_all({"fine": make_problem(slug="fine"), "broken": broken})
    assert [p.slug for p in store.list_problems()] == ["two-sum"]


def test_replace_all_keeps_settings_when_not_given(store, make_problem):
    store.put_settings(Settings(tagWeights={"DP": 3.0}))
    store.replace_all({"a": make_problem(slug="a")})
    assert store.get_settings().tag_weights == {"DP": 3.0}
    store.replace_all({}, Settings(), {})
    assert store.list_problems() == []
    assert store.get_settings().tag_weights == {}
