"""SQLite-backed schedule store.

Holds every tracked problem, the settings record (tag weights) and the daily
activity counter. Each public method runs in its own connection and commits
once, so readers never observe a partial write.
"""
from __future__ import annotations

import json
import logging
import sqlite3
from collections import defaultdict
from contextlib import contextmanager
from pathlib import Path
from typing import Dict, List, Optional

from models.problem import CodeEntry, Problem
from models.settings import Settings, Snapshot
from utils.errors import InvalidInputError, NotFoundError, StorageError
from utils.priority import INTERVAL_MODE_ELAPSED, calculate_priority
from utils.timeutil import day_key, now_ms

from .database import get_conn, init_db

logger = logging.getLogger(__name__)


def _problem_from_row(row: sqlite3.Row, history: List[int], code_history: List[CodeEntry]) -> Problem:
    return Problem(
        slug=row["slug"],
        question_id=row["question_id"],
        title=row["title"],
        difficulty=row["difficulty"],
        tags=json.loads(row["tags"] or "[]"),
        url=row["url"],
        origin=row["origin"],
        stage=int(row["stage"]),
        first_accepted_time=int(row["first_accepted_time"]),
        last_review_time=int(row["last_review_time"]),
        review_history=history,
        note=row["note"],
        code=row["code"],
        code_history=code_history,
        priority_score=float(row["priority_score"]),
    )


class ScheduleStore:
    def __init__(self, db_path: Optional[Path] = None):
        self.db_path = init_db(db_path)

    @contextmanager
    def _connect(self):
        try:
            with get_conn(self.db_path) as conn:
                yield conn
        except sqlite3.Error as exc:
            logger.error("Schedule store operation failed: %s", exc)
            raise StorageError(f"Schedule store unavailable: {exc}") from exc

    # Problems

    def _load_problems(self, conn: sqlite3.Connection, slug: Optional[str] = None) -> List[Problem]:
        cursor = conn.cursor()
        where = " WHERE slug = ?" if slug is not None else ""
        params = (slug,) if slug is not None else ()
        cursor.execute(f"SELECT * FROM problems{where} ORDER BY rowid", params)
        rows = cursor.fetchall()
        if not rows:
            return []
        history: Dict[str, List[int]] = defaultdict(list)
        cursor.execute(f"SELECT slug, ts FROM review_history{where} ORDER BY id", params)
        for entry in cursor.fetchall():
            history[entry["slug"]].append(int(entry["ts"]))
        code_history: Dict[str, List[CodeEntry]] = defaultdict(list)
        cursor.execute(f"SELECT slug, code, lang, time FROM code_history{where} ORDER BY id", params)
        for entry in cursor.fetchall():
            code_history[entry["slug"]].append(
                CodeEntry(code=entry["code"], lang=entry["lang"], time=int(entry["time"]))
            )
        return [
            _problem_from_row(row, history[row["slug"]], code_history[row["slug"]])
            for row in rows
        ]

    def _write_problem(self, conn: sqlite3.Connection, problem: Problem) -> None:
        cursor = conn.cursor()
        cursor.execute(
            """
            INSERT INTO problems (
                slug, question_id, title, difficulty, tags, url, origin, stage,
                first_accepted_time, last_review_time, note, code, priority_score
            )
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(slug) DO UPDATE SET
                question_id = excluded.question_id,
                title = excluded.title,
                difficulty = excluded.difficulty,
                tags = excluded.tags,
                url = excluded.url,
                origin = excluded.origin,
                stage = excluded.stage,
                first_accepted_time = excluded.first_accepted_time,
                last_review_time = excluded.last_review_time,
                note = excluded.note,
                code = excluded.code,
                priority_score = excluded.priority_score
            """,
            (
                problem.slug,
                problem.question_id,
                problem.title,
                problem.difficulty,
                json.dumps(problem.tags, ensure_ascii=False),
                problem.url,
                problem.origin,
                problem.stage,
                problem.first_accepted_time,
                problem.last_review_time,
                problem.note,
                problem.code,
                problem.priority_score,
            ),
        )
        cursor.execute("DELETE FROM review_history WHERE slug = ?", (problem.slug,))
        cursor.executemany(
            "INSERT INTO review_history (slug, ts) VALUES (?, ?)",
            [(problem.slug, ts) for ts in problem.review_history],
        )
        cursor.execute("DELETE FROM code_history WHERE slug = ?", (problem.slug,))
        cursor.executemany(
            "INSERT INTO code_history (slug, code, lang, time) VALUES (?, ?, ?, ?)",
            [(problem.slug, entry.code, entry.lang, entry.time) for entry in problem.code_history],
        )

    def get_problem(self, slug: str) -> Optional[Problem]:
        with self._connect() as conn:
            found = self._load_problems(conn, slug)
        return found[0] if found else None

    def put_problem(self, slug: str, problem: Problem) -> None:
        """Full upsert of one record."""
        if slug != problem.slug:
            raise InvalidInputError(f"Slug mismatch: '{slug}' != '{problem.slug}'")
        with self._connect() as conn:
            self._write_problem(conn, problem)
            conn.commit()

    def delete_problem(self, slug: str) -> bool:
        """Remove a problem; deleting an unknown slug is not an error."""
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute("DELETE FROM review_history WHERE slug = ?", (slug,))
            cursor.execute("DELETE FROM code_history WHERE slug = ?", (slug,))
            cursor.execute("DELETE FROM problems WHERE slug = ?", (slug,))
            deleted = cursor.rowcount > 0
            conn.commit()
        return deleted

    def list_problems(self) -> List[Problem]:
        with self._connect() as conn:
            return self._load_problems(conn)

    def count_problems(self) -> int:
        with self._connect() as conn:
            row = conn.execute("SELECT COUNT(*) FROM problems").fetchone()
        return int(row[0]) if row else 0

    def update_priorities(self, scores: Dict[str, float]) -> None:
        """Write cached priority scores back in one transaction."""
        if not scores:
            return
        with self._connect() as conn:
            conn.executemany(
                "UPDATE problems SET priority_score = ? WHERE slug = ?",
                [(score, slug) for slug, score in scores.items()],
            )
            conn.commit()

    def reset_problem(
        self,
        slug: str,
        now: Optional[int] = None,
        mode: str = INTERVAL_MODE_ELAPSED,
        boundary_hour: int = 2,
    ) -> Problem:
        """Send a problem back to stage 0; history, note and code are untouched."""
        reset_at = now if now is not None else now_ms()
        with self._connect() as conn:
            found = self._load_problems(conn, slug)
            if not found:
                raise NotFoundError(f"Problem '{slug}' not found")
            problem = found[0]
            problem.stage = 0
            problem.last_review_time = reset_at
            settings = self._read_settings(conn)
            problem.priority_score = calculate_priority(
                problem, settings.tag_weights, reset_at, mode, boundary_hour
            )
            conn.execute(
                "UPDATE problems SET stage = ?, last_review_time = ?, priority_score = ? WHERE slug = ?",
                (problem.stage, problem.last_review_time, problem.priority_score, slug),
            )
            conn.commit()
        return problem

    # Settings

    def _read_settings(self, conn: sqlite3.Connection) -> Settings:
        rows = conn.execute("SELECT tag, weight FROM tag_weights ORDER BY tag").fetchall()
        return Settings(tag_weights={row["tag"]: float(row["weight"]) for row in rows})

    def _write_settings(self, conn: sqlite3.Connection, settings: Settings) -> None:
        conn.execute("DELETE FROM tag_weights")
        conn.executemany(
            "INSERT INTO tag_weights (tag, weight) VALUES (?, ?)",
            list(settings.tag_weights.items()),
        )

    def get_settings(self) -> Settings:
        with self._connect() as conn:
            return self._read_settings(conn)

    def put_settings(self, settings: Settings) -> None:
        with self._connect() as conn:
            self._write_settings(conn, settings)
            conn.commit()

    # Activity log

    def _read_activity_log(self, conn: sqlite3.Connection) -> Dict[str, int]:
        rows = conn.execute("SELECT day, count FROM activity_log ORDER BY day").fetchall()
        return {row["day"]: int(row["count"]) for row in rows}

    def _write_activity_log(self, conn: sqlite3.Connection, activity_log: Dict[str, int]) -> None:
        conn.execute("DELETE FROM activity_log")
        conn.executemany(
            "INSERT INTO activity_log (day, count) VALUES (?, ?)",
            list(activity_log.items()),
        )

    def get_activity_log(self) -> Dict[str, int]:
        with self._connect() as conn:
            return self._read_activity_log(conn)

    def increment_today(self, now: Optional[int] = None) -> str:
        """Bump the counter for the local calendar day of now; returns the day key."""
        day = day_key(now if now is not None else now_ms())
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO activity_log (day, count) VALUES (?, 1)
                ON CONFLICT(day) DO UPDATE SET count = count + 1
                """,
                (day,),
            )
            conn.commit()
        return day

    # Whole-store snapshots

    def snapshot(self) -> Snapshot:
        with self._connect() as conn:
            problems = self._load_problems(conn)
            settings = self._read_settings(conn)
            activity_log = self._read_activity_log(conn)
        return Snapshot(
            problems={problem.slug: problem for problem in problems},
            settings=settings,
            activity_log=activity_log,
        )

    def replace_all(
        self,
        problems: Dict[str, Problem],
        settings: Optional[Settings] = None,
        activity_log: Optional[Dict[str, int]] = None,
    ) -> None:
        """Replace problems (and settings/activity when given) in one transaction."""
        with self._connect() as conn:
            try:
                conn.execute("DELETE FROM review_history")
                conn.execute("DELETE FROM code_history")
                conn.execute("DELETE FROM problems")
                for problem in problems.values():
                    self._write_problem(conn, problem)
                if settings is not None:
                    self._write_settings(conn, settings)
                if activity_log is not None:
                    self._write_activity_log(conn, activity_log)
                conn.commit()
            except sqlite3.Error:
                conn.rollback()
                raise
