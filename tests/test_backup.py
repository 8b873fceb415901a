import json
import threading

from db.store import ScheduleStore
from models.problem import SubmissionEvent
from utils.backup import DebouncedBackup, FileBackupSink, load_latest_backup
from utils.engine import ReviewEngine
from utils.timeutil import MS_PER_MINUTE


class RecordingNotifier:
    def __init__(self):
        self.providers = []

    def notify_backup(self, snapshot):
        self.providers.append(snapshot)


class FailingNotifier:
    def notify_backup(self, snapshot):
        raise RuntimeError("backup target unreachable")


def test_debounce_coalesces_bursts():
    written = []
    backup = DebouncedBackup(written.append, debounce_seconds=60)
    backup.notify_backup(lambda: {"problems": {"a": {}}})
    backup.notify_backup(lambda: {"problems": {"a": {}, "b": {}}})
    assert backup.pending
    assert backup.flush() is True
    assert written == [{"problems": {"a": {}, "b": {}}}]
    assert backup.flush() is False


def test_snapshot_is_built_only_when_the_backup_fires():
    calls = []

    def provider():
        calls.append(1)
        return {"problems": {"a": {}}}

    written = []
    backup = DebouncedBackup(written.append, debounce_seconds=60)
    for _ in range(5):
        backup.notify_backup(provider)
    assert calls == []
    backup.flush()
    assert calls == [1]
    assert len(written) == 1


def test_provider_returning_none_writes_nothing():
    written = []
    backup = DebouncedBackup(written.append, debounce_seconds=60)
    backup.notify_backup(lambda: None)
    assert backup.flush() is False
    assert written == []


def test_failing_sink_is_logged_and_dropped(caplog):
    def sink(snapshot):
        raise OSError("disk full")

    backup = DebouncedBackup(sink, debounce_seconds=60)
    backup.notify_backup(lambda: {"problems": {}})
    assert backup.flush() is False
    assert not backup.pending
    assert "Backup skipped" in caplog.text


def test_timer_fires_after_debounce():
    fired = threading.Event()
    backup = DebouncedBackup(lambda snapshot: fired.set(), debounce_seconds=0.01)
    backup.notify_backup(lambda: {"problems": {}})
    assert fired.wait(timeout=2)


def test_file_sink_prunes_old_backups(tmp_path):
    sink = FileBackupSink(tmp_path, keep=3)
    for n in range(5):
        sink({"problems": {}, "n": n})
    files = sorted(tmp_path.glob("backup-*.json"))
    assert len(files) == 3
    assert load_latest_backup(tmp_path)["n"] == 4


def test_load_latest_backup_skips_unreadable(tmp_path):
    assert load_latest_backup(tmp_path / "missing") is None
    (tmp_path / "backup-20260101-000000-000000.json").write_text(json.dumps({"problems": {}}), encoding="utf-8")
    (tmp_path / "backup-20260102-000000-000000.json").write_text("{not json", encoding="utf-8")
    assert load_latest_backup(tmp_path) == {"problems": {}}


def test_engine_notifies_after_writes_but_not_on_cooldown(store, clock):
    notifier = RecordingNotifier()
    engine = ReviewEngine(store, clock=clock, backup=notifier)
    engine.ingest_accepted_submission(SubmissionEvent(slug="two-sum"))
    assert len(notifier.providers) == 1
    assert "two-sum" in notifier.providers[0]()["problems"]

    clock.advance(MS_PER_MINUTE)
    engine.ingest_accepted_submission(SubmissionEvent(slug="two-sum"))
    assert len(notifier.providers) == 1


def test_backup_failure_never_blocks_ingestion(store, clock):
    engine = ReviewEngine(store, clock=clock, backup=FailingNotifier())
    result = engine.ingest_accepted_submission(SubmissionEvent(slug="two-sum"))
    assert result.success is True
    assert store.get_problem("two-sum") is not None


def test_restore_if_empty(store, clock, tmp_path):
    source = ReviewEngine(store, clock=clock)
    source.ingest_accepted_submission(SubmissionEvent(slug="two-sum", title="Two Sum"))
    snapshot = source.export_data()

    target = ReviewEngine(ScheduleStore(tmp_path / "restored.db"), clock=clock)
    assert target.restore_if_empty(None) is False
    assert target.restore_if_empty(snapshot) is True
    assert target.get_problem("two-sum").title == "Two Sum"
    assert target.restore_if_empty(snapshot) is False


def test_empty_store_yields_no_snapshot_until_cleared(store, clock):
    notifier = RecordingNotifier()
    engine = ReviewEngine(store, clock=clock, backup=notifier)
    engine.ingest_accepted_submission(SubmissionEvent(slug="two-sum"))
    engine.delete_problem("two-sum")
    assert notifier.providers[-1]() is None

    engine.ingest_accepted_submission(SubmissionEvent(slug="two-sum"))
    engine.clear_all()
    snapshot = notifier.providers[-1]()
    assert snapshot["problems"] == {}
    assert engine.restore_if_empty(snapshot) is False
