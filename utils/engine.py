"""Review engine: stage transitions, priority refresh and submission ingestion.

The engine owns no state of its own beyond configuration; everything durable
lives in the ScheduleStore it is given. Read-modify-write sequences are
serialized behind a single lock.
"""
from __future__ import annotations

import logging
import math
import threading
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Optional

from pydantic import ValidationError

from db.store import ScheduleStore
from models.problem import (
    ORIGIN_BASE_URLS,
    CodeEntry,
    Difficulty,
    NewProblem,
    Origin,
    Problem,
    SubmissionEvent,
    origin_from_url,
    problem_url,
    slugify,
)
from models.results import IngestOutcome, IngestResult, Stats
from models.settings import SNAPSHOT_VERSION, Settings, Snapshot
from utils.activity import current_streak, longest_streak, mastery_percent
from utils.backup import BackupNotifier
from utils.errors import InvalidInputError, NotFoundError
from utils.priority import (
    INTERVAL_MODE_CALENDAR,
    INTERVAL_MODE_ELAPSED,
    build_review_queue,
    calculate_priority,
    is_due,
    refresh_priorities,
)
from utils.search import filter_problems
from utils.stages import (
    REVIEW_STAGES,
    describe_due,
    is_mastered,
    next_review_time,
    next_stage,
    stage_label,
    stages_info,
)
from utils.tags import collect_tags
from utils.timeutil import MS_PER_DAY, MS_PER_MINUTE, iso_utc, local_datetime, now_ms

logger = logging.getLogger(__name__)

DEFAULT_COOLDOWN_MINUTES = 60
DEFAULT_RECENT_DAYS = 7
URGENT_LIMIT = 6
INTERVAL_MODES = (INTERVAL_MODE_ELAPSED, INTERVAL_MODE_CALENDAR)


class ReviewEngine:
    def __init__(
        self,
        store: ScheduleStore,
        clock: Callable[[], int] = now_ms,
        cooldown_minutes: float = DEFAULT_COOLDOWN_MINUTES,
        interval_mode: str = INTERVAL_MODE_ELAPSED,
        day_boundary_hour: int = 2,
        recent_days: int = DEFAULT_RECENT_DAYS,
        backup: Optional[BackupNotifier] = None,
    ):
        if interval_mode not in INTERVAL_MODES:
            logger.warning("Unknown interval_mode %r, using %r", interval_mode, INTERVAL_MODE_ELAPSED)
            interval_mode = INTERVAL_MODE_ELAPSED
        self.store = store
        self.clock = clock
        self.cooldown_ms = int(cooldown_minutes * MS_PER_MINUTE)
        self.interval_mode = interval_mode
        self.day_boundary_hour = day_boundary_hour
        self.recent_days = recent_days
        self.backup = backup
        self._lock = threading.RLock()

    def _score(self, problem: Problem, tag_weights: Dict[str, float], now: int) -> float:
        return calculate_priority(problem, tag_weights, now, self.interval_mode, self.day_boundary_hour)

    def _notify_backup(self, allow_empty: bool = False) -> None:
        """Tell the notifier the store changed; the snapshot is built when it fires."""
        if self.backup is None:
            return
        try:
            self.backup.notify_backup(lambda: self._backup_payload(allow_empty))
        except Exception as exc:
            logger.warning("Backup notification failed: %s", exc)

    def _backup_payload(self, allow_empty: bool = False) -> Optional[Dict[str, Any]]:
        # Empty snapshots go out only after clear_all.
        with self._lock:
            snapshot = self.store.snapshot()
        if not snapshot.problems and not allow_empty:
            return None
        return self._snapshot_payload(snapshot)

    def _snapshot_payload(self, snapshot: Snapshot) -> Dict[str, Any]:
        snapshot.version = SNAPSHOT_VERSION
        snapshot.export_time = iso_utc(self.clock())
        return snapshot.model_dump(mode="json", by_alias=True)

    # Ingestion

    @staticmethod
    def _code_entry(event: SubmissionEvent, timestamp: int) -> Optional[CodeEntry]:
        code = (event.submitted_code or "").strip()
        if not code:
            return None
        return CodeEntry(code=code, lang=event.submitted_lang or "", time=timestamp)

    def _create_problem(self, event: SubmissionEvent, timestamp: int) -> Problem:
        origin = event.origin if event.origin in ORIGIN_BASE_URLS else Origin.COM.value
        entry = self._code_entry(event, timestamp)
        return Problem(
            slug=event.slug,
            question_id=event.question_id or "",
            title=event.title or event.slug,
            difficulty=event.difficulty or Difficulty.MEDIUM.value,
            tags=event.tags or [],
            url=event.url or problem_url(origin, event.slug),
            origin=origin,
            stage=0,
            first_accepted_time=timestamp,
            last_review_time=timestamp,
            review_history=[timestamp],
            code=entry.code if entry else "",
            code_history=[entry] if entry else [],
        )

    def _advance_problem(self, problem: Problem, event: SubmissionEvent, timestamp: int) -> None:
        problem.stage = next_stage(problem.stage)
        problem.last_review_time = timestamp
        problem.review_history.append(timestamp)
        if event.tags:
            problem.tags = event.tags
        if event.difficulty:
            problem.difficulty = event.difficulty
        if event.title:
            problem.title = event.title
        if event.question_id:
            problem.question_id = event.question_id
        if event.origin in ORIGIN_BASE_URLS:
            problem.origin = event.origin
        if event.url:
            problem.url = event.url
        entry = self._code_entry(event, timestamp)
        if entry:
            problem.code_history.append(entry)
            problem.code = entry.code

    def ingest_accepted_submission(self, event: SubmissionEvent) -> IngestResult:
        """Record an accepted submission: create, advance, or coalesce into the cooldown."""
        if not event.slug:
            raise InvalidInputError("Cannot identify the problem: slug is missing")
        with self._lock:
            now = self.clock()
            timestamp = event.timestamp if event.timestamp is not None else now
            existing = self.store.get_problem(event.slug)
            settings = self.store.get_settings()

            if existing is None:
                problem = self._create_problem(event, timestamp)
                result = IngestResult(
                    outcome=IngestOutcome.CREATED,
                    message="New problem added to the review queue",
                    stage=problem.stage,
                )
            else:
                elapsed = timestamp - existing.last_review_time
                if elapsed < self.cooldown_ms:
                    remaining = math.ceil((self.cooldown_ms - elapsed) / MS_PER_MINUTE)
                    logger.debug("Cooldown hit for %s (%d min left)", event.slug, remaining)
                    return IngestResult(
                        outcome=IngestOutcome.COOLDOWN,
                        message=f"Still in cooldown, {remaining} minutes remain before this counts as a review",
                        stage=existing.stage,
                        remaining_minutes=remaining,
                    )
                problem = existing
                self._advance_problem(problem, event, timestamp)
                result = IngestResult(
                    outcome=IngestOutcome.ADVANCED,
                    message=f"Review recorded, advanced to stage {stage_label(problem.stage)}",
                    stage=problem.stage,
                )

            problem.priority_score = self._score(problem, settings.tag_weights, now)
            self.store.put_problem(problem.slug, problem)
            self.store.increment_today(now)
        logger.info("Ingested %s: %s (stage %d)", event.slug, result.outcome.value, result.stage)
        self._notify_backup()
        return result

    def add_problem(self, new: NewProblem) -> Problem:
        """Track a problem entered by hand. Counts as today's activity like a first accept."""
        with self._lock:
            now = self.clock()
            slug = new.slug or slugify(new.title) or f"problem-{now}"
            if self.store.get_problem(slug) is not None:
                raise InvalidInputError(f"Problem '{slug}' already exists")
            origin = origin_from_url(new.url)
            problem = Problem(
                slug=slug,
                question_id=new.question_id,
                title=new.title,
                difficulty=new.difficulty,
                tags=new.tags,
                url=new.url or problem_url(origin, slug),
                origin=origin,
                stage=0,
                first_accepted_time=now,
                last_review_time=now,
                review_history=[now],
                note=new.note,
            )
            problem.priority_score = self._score(problem, self.store.get_settings().tag_weights, now)
            self.store.put_problem(slug, problem)
            self.store.increment_today(now)
        logger.info("Added %s by hand", slug)
        self._notify_backup()
        return problem

    # Queries

    def refresh_priorities(self) -> List[Problem]:
        """Recompute every cached score against the current clock and settings."""
        with self._lock:
            now = self.clock()
            tag_weights = self.store.get_settings().tag_weights
            problems = refresh_priorities(
                self.store.list_problems(), tag_weights, now, self.interval_mode, self.day_boundary_hour
            )
            self.store.update_priorities({p.slug: p.priority_score for p in problems})
        return problems

    def get_review_queue(self) -> List[Problem]:
        return build_review_queue(self.refresh_priorities())

    def get_all_problems(self) -> Dict[str, Problem]:
        return {problem.slug: problem for problem in self.refresh_priorities()}

    def get_problem(self, slug: str) -> Problem:
        problem = self.store.get_problem(slug)
        if problem is None:
            raise NotFoundError(f"Problem '{slug}' not found")
        return problem

    def get_mastered_problems(self) -> List[Problem]:
        mastered = [p for p in self.store.list_problems() if is_mastered(p.stage)]
        return sorted(mastered, key=lambda p: p.last_review_time or 0, reverse=True)

    def get_recent_activity(self) -> List[Problem]:
        """Problems created or reviewed within the recent window, newest first."""
        threshold = self.clock() - self.recent_days * MS_PER_DAY

        def touched(problem: Problem) -> int:
            return max(problem.last_review_time or 0, problem.first_accepted_time or 0)

        recent = [p for p in self.store.list_problems() if touched(p) >= threshold]
        return sorted(recent, key=touched, reverse=True)

    def search_problems(self, query: Optional[str] = None, tags: Optional[Iterable[str]] = None) -> List[Problem]:
        return filter_problems(self.refresh_priorities(), query, tags)

    def get_all_tags(self) -> List[str]:
        return collect_tags(p.tags for p in self.store.list_problems())

    def get_activity_log(self) -> Dict[str, int]:
        return self.store.get_activity_log()

    def get_settings(self) -> Settings:
        return self.store.get_settings()

    def get_stages_info(self) -> List[Dict]:
        return stages_info()

    def get_due_info(self, slug: str) -> Dict[str, Any]:
        problem = self.get_problem(slug)
        now = self.clock()
        return {
            "slug": slug,
            "stage": problem.stage,
            "label": stage_label(problem.stage),
            "next_review_time": next_review_time(problem.stage, problem.last_review_time),
            "due": describe_due(problem.stage, problem.last_review_time, now),
        }

    def get_stats(self) -> Stats:
        problems = self.refresh_priorities()
        activity_log = self.store.get_activity_log()
        today = local_datetime(self.clock()).date()
        by_difficulty = {d.value: 0 for d in Difficulty}
        by_stage = [0] * len(REVIEW_STAGES)
        for problem in problems:
            by_difficulty[problem.difficulty] = by_difficulty.get(problem.difficulty, 0) + 1
            by_stage[problem.stage] += 1
        due = [p for p in problems if is_due(p)]
        mastered = by_stage[-1]
        return Stats(
            total=len(problems),
            due=len(due),
            mastered=mastered,
            mastered_percent=mastery_percent(mastered, len(problems)),
            by_difficulty=by_difficulty,
            by_stage=by_stage,
            current_streak=current_streak(activity_log, today),
            longest_streak=longest_streak(activity_log),
            urgent=build_review_queue(due)[:URGENT_LIMIT],
        )

    # Mutations

    def update_note(self, slug: str, note: Optional[str] = None, code: Optional[str] = None) -> Problem:
        with self._lock:
            problem = self.get_problem(slug)
            if note is not None:
                problem.note = note
            if code is not None:
                problem.code = code
            self.store.put_problem(slug, problem)
        self._notify_backup()
        return problem

    def delete_problem(self, slug: str) -> bool:
        with self._lock:
            deleted = self.store.delete_problem(slug)
        if deleted:
            logger.info("Deleted %s", slug)
            self._notify_backup()
        return deleted

    def reset_problem(self, slug: str) -> Problem:
        with self._lock:
            problem = self.store.reset_problem(
                slug, self.clock(), self.interval_mode, self.day_boundary_hour
            )
        logger.info("Reset %s to stage 0", slug)
        self._notify_backup()
        return problem

    def save_settings(self, settings: Settings) -> Settings:
        """Persist tag weights and re-score every problem against them."""
        with self._lock:
            self.store.put_settings(settings)
            self.refresh_priorities()
        self._notify_backup()
        return settings

    def clear_all(self) -> None:
        """Drop every problem, the tag weights and the activity log."""
        with self._lock:
            self.store.replace_all({}, Settings(), {})
        logger.warning("All data cleared")
        self._notify_backup(allow_empty=True)

    # Export / import

    def export_data(self) -> Dict[str, Any]:
        with self._lock:
            self.refresh_priorities()
            snapshot = self.store.snapshot()
        return self._snapshot_payload(snapshot)

    def import_data(self, data: Any) -> int:
        """Replace stored data with a snapshot; nothing is written unless it all validates."""
        if not isinstance(data, dict) or not isinstance(data.get("problems"), dict):
            raise InvalidInputError("Snapshot is missing the 'problems' collection")
        try:
            snapshot = Snapshot.model_validate(data)
        except ValidationError as exc:
            raise InvalidInputError(f"Invalid snapshot: {exc.error_count()} validation error(s)") from exc
        for key, problem in snapshot.problems.items():
            if key != problem.slug:
                raise InvalidInputError(f"Snapshot key '{key}' does not match slug '{problem.slug}'")

        with self._lock:
            settings = snapshot.settings or self.store.get_settings()
            now = self.clock()
            for problem in snapshot.problems.values():
                problem.priority_score = self._score(problem, settings.tag_weights, now)
            self.store.replace_all(snapshot.problems, snapshot.settings, snapshot.activity_log)
        logger.info("Imported %d problems", len(snapshot.problems))
        self._notify_backup()
        return len(snapshot.problems)

    def restore_if_empty(self, snapshot: Optional[Dict[str, Any]]) -> bool:
        """Import a backup snapshot only when the store has no problems yet."""
        if not snapshot or not snapshot.get("problems"):
            return False
        if self.store.count_problems() > 0:
            return False
        count = self.import_data(snapshot)
        logger.info("Restored %d problems from backup", count)
        return True


def build_engine(
    config: Dict[str, Any],
    db_path: Optional[Path] = None,
    backup: Optional[BackupNotifier] = None,
    clock: Callable[[], int] = now_ms,
) -> ReviewEngine:
    schedule = config.get("schedule", {})
    return ReviewEngine(
        ScheduleStore(db_path),
        clock=clock,
        cooldown_minutes=schedule.get("cooldown_minutes", DEFAULT_COOLDOWN_MINUTES),
        interval_mode=schedule.get("interval_mode", INTERVAL_MODE_ELAPSED),
        day_boundary_hour=schedule.get("day_boundary_hour", 2),
        recent_days=schedule.get("recent_days", DEFAULT_RECENT_DAYS),
        backup=backup,
    )
