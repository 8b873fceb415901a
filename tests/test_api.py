import pytest
from fastapi.testclient import TestClient

from main import app
from utils.deps import get_engine
from utils.errors import StorageError
from utils.timeutil import MS_PER_DAY, MS_PER_HOUR


@pytest.fixture
def client(engine):
    app.dependency_overrides[get_engine] = lambda: engine
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_submission_then_queue(client, clock):
    response = client.post(
        "/submissions",
        json={"slug": "two-sum", "questionId": 1, "title": "Two Sum", "difficulty": "Easy", "tags": ["Array"]},
    )
    assert response.status_code == 200
    assert response.json()["outcome"] == "created"

    clock.advance(2 * MS_PER_DAY)
    queue = client.get("/problems/queue").json()
    assert [p["slug"] for p in queue] == ["two-sum"]
    assert queue[0]["questionId"] == "1"
    assert queue[0]["priority_score"] == pytest.approx(0.8)


def test_submission_without_slug_is_rejected(client):
    response = client.post("/submissions", json={"title": "Two Sum"})
    assert response.status_code == 400


def test_problem_lookup_and_reset_unknown(client):
    assert client.get("/problems/missing").status_code == 404
    assert client.post("/problems/missing/reset").status_code == 404
    assert client.patch("/problems/missing/note", json={"note": "x"}).status_code == 404
    assert client.delete("/problems/missing").json() == {"success": True}


def test_mastered_priority_serializes_as_null(client, clock):
    for _ in range(7):
        client.post("/submissions", json={"slug": "two-sum"})
        clock.advance(2 * MS_PER_HOUR)
    problems = client.get("/problems").json()
    assert problems["two-sum"]["stage"] == 6
    assert problems["two-sum"]["priority_score"] is None
    assert [p["slug"] for p in client.get("/problems/mastered").json()] == ["two-sum"]
    assert client.get("/problems/queue").json() == []


def test_search_and_tags(client):
    client.post("/submissions", json={"slug": "two-sum", "title": "Two Sum", "tags": ["Array", "Hash Table"]})
    client.post("/submissions", json={"slug": "climbing-stairs", "title": "Climbing Stairs", "tags": ["DP"]})
    assert client.get("/problems/tags").json() == ["Array", "DP", "Hash Table"]
    found = client.get("/problems/search", params={"q": "stairs"}).json()
    assert [p["slug"] for p in found] == ["climbing-stairs"]
    found = client.get("/problems/search", params={"tags": "Array,Hash Table"}).json()
    assert [p["slug"] for p in found] == ["two-sum"]


def test_settings_validation(client):
    assert client.put("/settings", json={"tagWeights": {"DP": 0}}).status_code == 422
    response = client.put("/settings", json={"tagWeights": {"DP": 2.5}})
    assert response.status_code == 200
    assert client.get("/settings").json() == {"tagWeights": {"DP": 2.5}}


def test_stats_activity_and_stages(client):
    client.post("/submissions", json={"slug": "two-sum"})
    assert list(client.get("/activity").json().values()) == [1]
    assert client.get("/stats").json()["total"] == 1
    stages = client.get("/stages").json()
    assert stages[-1] == {"stage": 6, "label": "Mastered", "interval_hours": None}


def test_export_then_import(client):
    client.post("/submissions", json={"slug": "two-sum", "submittedCode": "pass"})
    response = client.get("/admin/export")
    assert response.status_code == 200
    assert "attachment" in response.headers["content-disposition"]
    snapshot = response.json()

    client.delete("/problems/two-sum")
    response = client.post("/admin/import", json=snapshot)
    assert response.status_code == 200
    assert client.get("/problems/two-sum").json()["code"] == "pass"

    assert client.post("/admin/import", json={"version": "1.0.0"}).status_code == 400


def test_message_endpoint(client):
    response = client.post("/messages", json={"type": "SUBMISSION_ACCEPTED", "data": {"slug": "two-sum"}})
    assert response.json()["success"] is True
    response = client.post("/messages", json={"type": "RESET_PROBLEM", "data": {"slug": "nope"}})
    assert response.json() == {"success": False, "message": response.json()["message"], "error": "NotFound", "data": None}


def test_storage_failures_become_503(client, engine, monkeypatch):
    def unavailable(*args, **kwargs):
        raise StorageError("Schedule store unavailable: disk I/O error")

    monkeypatch.setattr(engine.store, "list_problems", unavailable)
    monkeypatch.setattr(engine.store, "delete_problem", unavailable)
    monkeypatch.setattr(engine.store, "get_settings", unavailable)
    for path in ("/problems", "/problems/queue", "/problems/tags", "/problems/search", "/stats", "/settings"):
        response = client.get(path)
        assert response.status_code == 503, path
        assert "unavailable" in response.json()["detail"]
    assert client.delete("/problems/two-sum").status_code == 503


def test_add_problem_and_due_info(client):
    response = client.post("/problems", json={"title": "Climbing Stairs", "tags": ["DP"], "note": "fibonacci"})
    assert response.status_code == 200
    assert response.json()["slug"] == "climbing-stairs"
    assert client.post("/problems", json={"title": "Climbing Stairs"}).status_code == 400
    due = client.get("/problems/climbing-stairs/due").json()
    assert due["due"] == "due in 1d"
    assert client.get("/problems/missing/due").status_code == 404


def test_clear_all_endpoint(client):
    client.post("/submissions", json={"slug": "two-sum"})
    assert client.post("/admin/clear").json() == {"success": True}
    assert client.get("/problems").json() == {}
    assert client.get("/activity").json() == {}
