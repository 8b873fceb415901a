"""Best-effort backups of the whole store.

The engine tells a notifier that the store changed after every write and never
waits on it. What it hands over is a snapshot provider: a zero-argument
callable that builds the snapshot (or returns None when there is nothing worth
keeping). DebouncedBackup coalesces bursts of writes and only calls the
provider, then the sink, once the debounce window has passed; anything either
of them raises is logged and dropped.
"""
from __future__ import annotations

import json
import logging
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Protocol

logger = logging.getLogger(__name__)

BACKUP_KEEP = 7
DEFAULT_DEBOUNCE_SECONDS = 5.0


SnapshotProvider = Callable[[], Optional[Dict[str, Any]]]


class BackupNotifier(Protocol):
    def notify_backup(self, snapshot: SnapshotProvider) -> None:
        ...


class FileBackupSink:
    """Write snapshots as JSON files and prune all but the newest `keep`."""

    def __init__(self, backup_dir: Path, keep: int = BACKUP_KEEP):
        self.backup_dir = Path(backup_dir)
        self.keep = keep

    def __call__(self, snapshot: Dict[str, Any]) -> Path:
        self.backup_dir.mkdir(parents=True, exist_ok=True)
        timestamp = datetime.now(timezone.utc).strftime("%Y%m%d-%H%M%S-%f")
        backup_path = self.backup_dir / f"backup-{timestamp}.json"
        backup_path.write_text(json.dumps(snapshot, ensure_ascii=False, indent=2), encoding="utf-8")
        existing = sorted(self.backup_dir.glob("backup-*.json"), reverse=True)
        for old_backup in existing[self.keep:]:
            old_backup.unlink(missing_ok=True)
        return backup_path


def load_latest_backup(backup_dir: Path) -> Optional[Dict[str, Any]]:
    """Newest readable backup snapshot, or None when there is nothing usable."""
    backup_dir = Path(backup_dir)
    if not backup_dir.exists():
        return None
    for path in sorted(backup_dir.glob("backup-*.json"), reverse=True):
        try:
            return json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            logger.warning("Skipping unreadable backup %s: %s", path.name, exc)
    return None


class DebouncedBackup:
    def __init__(
        self,
        sink: Callable[[Dict[str, Any]], Any],
        debounce_seconds: float = DEFAULT_DEBOUNCE_SECONDS,
    ):
        self.sink = sink
        self.debounce_seconds = debounce_seconds
        self._lock = threading.Lock()
        self._timer: Optional[threading.Timer] = None
        self._pending: Optional[SnapshotProvider] = None

    def notify_backup(self, snapshot: SnapshotProvider) -> None:
        with self._lock:
            self._pending = snapshot
            if self._timer is not None:
                self._timer.cancel()
            self._timer = threading.Timer(self.debounce_seconds, self.flush)
            self._timer.daemon = True
            self._timer.start()

    def flush(self) -> bool:
        """Send the pending snapshot now. Returns True if the sink accepted it."""
        with self._lock:
            provider = self._pending
            self._pending = None
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None
        if provider is None:
            return False
        try:
            snapshot = provider()
            if snapshot is None:
                return False
            self.sink(snapshot)
        except Exception as exc:
            logger.warning("Backup skipped: %s", exc)
            return False
        logger.debug("Backup written (%d problems)", len(snapshot.get("problems", {})))
        return True

    @property
    def pending(self) -> bool:
        return self._pending is not None
