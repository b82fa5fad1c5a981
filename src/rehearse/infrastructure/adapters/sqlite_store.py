"""
SQLite Review Store — Infrastructure adapter for a local SQLite database.

Implements ReviewStore with two tables (problems, review_plans). Instants are
stored as fixed-width UTC ISO-8601 strings so that lexical order in SQL
matches chronological order.
"""

import json
import logging
import sqlite3
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path

from rehearse.domain.errors import StorageReadFailed, StorageWriteFailed, UnknownEntity
from rehearse.domain.models import Problem, ReviewPlan, ReviewStatus
from rehearse.domain.ports import ASCENDING, PlanFilter, PlanSort, ReviewStore

logger = logging.getLogger(__name__)

_SCHEMA = (
    """
    CREATE TABLE IF NOT EXISTS problems (
        id TEXT PRIMARY KEY,
        title TEXT NOT NULL,
        source TEXT,
        tags TEXT NOT NULL DEFAULT '[]',
        mastery INTEGER NOT NULL DEFAULT 0,
        last_practiced_at TEXT,
        average_score REAL NOT NULL DEFAULT 0.0,
        total_reviews INTEGER NOT NULL DEFAULT 0,
        streak_count INTEGER NOT NULL DEFAULT 0,
        created_at TEXT,
        updated_at TEXT
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS review_plans (
        id TEXT PRIMARY KEY,
        problem_id TEXT NOT NULL,
        scheduled_at TEXT NOT NULL,
        status TEXT NOT NULL,
        level INTEGER NOT NULL,
        score INTEGER,
        confidence INTEGER,
        completed_at TEXT,
        time_spent REAL NOT NULL DEFAULT 0.0,
        FOREIGN KEY(problem_id) REFERENCES problems(id) ON DELETE CASCADE
    );
    """,
    "CREATE INDEX IF NOT EXISTS idx_plans_scheduled_at ON review_plans(scheduled_at);",
    "CREATE INDEX IF NOT EXISTS idx_plans_problem_status ON review_plans(problem_id, status);",
)

_PROBLEM_COLUMNS = (
    "id",
    "title",
    "source",
    "tags",
    "mastery",
    "last_practiced_at",
    "average_score",
    "total_reviews",
    "streak_count",
    "created_at",
    "updated_at",
)

_PLAN_COLUMNS = (
    "id",
    "problem_id",
    "scheduled_at",
    "status",
    "level",
    "score",
    "confidence",
    "completed_at",
    "time_spent",
)


def to_db_time(value: datetime | None) -> str | None:
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat(timespec="microseconds")


def from_db_time(value: str | None) -> datetime | None:
    return datetime.fromisoformat(value) if value else None


class SqliteReviewStore(ReviewStore):
    """
    SQLite-backed store.

    - one connection per store, shared across threads behind a lock
    - WAL journal; foreign keys enforced
    - transactions use BEGIN IMMEDIATE so concurrent writers serialize
    """

    def __init__(self, db_path: str | Path):
        self.db_path = Path(db_path)
        self._lock = threading.RLock()
        self._depth = 0
        self._ensure_dirs()
        self._conn = self._connect()
        self._init_db()

    # --- low-level helpers ---
    def _connect(self) -> sqlite3.Connection:
        try:
            conn = sqlite3.connect(
                self.db_path, timeout=10.0, isolation_level=None, check_same_thread=False
            )
            conn.row_factory = sqlite3.Row
            conn.execute("PRAGMA journal_mode=WAL;")
            conn.execute("PRAGMA foreign_keys=ON;")
        except sqlite3.Error as e:
            raise StorageWriteFailed(f"Cannot open database {self.db_path}: {e}") from e
        return conn

    def _ensure_dirs(self) -> None:
        if self.db_path.parent and not self.db_path.parent.exists():
            self.db_path.parent.mkdir(parents=True, exist_ok=True)

    def _init_db(self) -> None:
        with self.transaction():
            for statement in _SCHEMA:
                self._write(statement)

    def close(self) -> None:
        with self._lock:
            self._conn.close()

    def _write(self, sql: str, params: tuple = ()) -> sqlite3.Cursor:
        try:
            return self._conn.execute(sql, params)
        except sqlite3.Error as e:
            raise StorageWriteFailed(f"Write failed: {e}") from e

    def _read(self, sql: str, params: tuple = ()) -> list[sqlite3.Row]:
        try:
            return self._conn.execute(sql, params).fetchall()
        except sqlite3.Error as e:
            raise StorageReadFailed(f"Read failed: {e}") from e

    # --- ReviewStore ---
    def insert(self, entity: Problem | ReviewPlan) -> None:
        table, columns, values = self._row_for(entity)
        placeholders = ", ".join("?" for _ in columns)
        with self._lock:
            self._write(
                f"INSERT INTO {table} ({', '.join(columns)}) VALUES ({placeholders})",
                values,
            )

    def update(self, entity: Problem | ReviewPlan) -> None:
        table, columns, values = self._row_for(entity)
        assignments = ", ".join(f"{c} = ?" for c in columns[1:])
        with self._lock:
            cursor = self._write(
                f"UPDATE {table} SET {assignments} WHERE id = ?",
                values[1:] + (entity.id,),
            )
            if cursor.rowcount == 0:
                kind = "problem" if isinstance(entity, Problem) else "review plan"
                raise UnknownEntity(kind, entity.id)

    def get_problem(self, problem_id: str) -> Problem | None:
        with self._lock:
            rows = self._read("SELECT * FROM problems WHERE id = ?", (problem_id,))
        return _problem_from_row(rows[0]) if rows else None

    def get_plan(self, plan_id: str) -> ReviewPlan | None:
        with self._lock:
            rows = self._read("SELECT * FROM review_plans WHERE id = ?", (plan_id,))
        return _plan_from_row(rows[0]) if rows else None

    def query(self, predicate: PlanFilter, sort: PlanSort = ASCENDING) -> list[ReviewPlan]:
        clauses: list[str] = []
        params: list = []

        if predicate.problem_id is not None:
            clauses.append("problem_id = ?")
            params.append(predicate.problem_id)
        if predicate.statuses is not None:
            if not predicate.statuses:
                return []
            statuses = sorted(s.value for s in predicate.statuses)
            clauses.append(f"status IN ({', '.join('?' for _ in statuses)})")
            params.extend(statuses)
        if predicate.scheduled_from is not None:
            clauses.append("scheduled_at >= ?")
            params.append(to_db_time(predicate.scheduled_from))
        if predicate.scheduled_before is not None:
            clauses.append("scheduled_at < ?")
            params.append(to_db_time(predicate.scheduled_before))
        if predicate.scheduled_until is not None:
            clauses.append("scheduled_at <= ?")
            params.append(to_db_time(predicate.scheduled_until))
        if predicate.exclude_id is not None:
            clauses.append("id != ?")
            params.append(predicate.exclude_id)

        sql = "SELECT * FROM review_plans"
        if clauses:
            sql += " WHERE " + " AND ".join(clauses)
        direction = "DESC" if sort.descending else "ASC"
        sql += f" ORDER BY scheduled_at {direction}, id {direction}"
        if sort.limit is not None:
            sql += " LIMIT ?"
            params.append(sort.limit)

        with self._lock:
            rows = self._read(sql, tuple(params))
        return [_plan_from_row(r) for r in rows]

    @contextmanager
    def transaction(self) -> Iterator[None]:
        with self._lock:
            if self._depth > 0:
                # Nested: join the outer unit of work
                self._depth += 1
                try:
                    yield
                finally:
                    self._depth -= 1
                return

            self._write("BEGIN IMMEDIATE")
            self._depth = 1
            try:
                yield
            except BaseException:
                self._rollback()
                raise
            else:
                try:
                    self._conn.execute("COMMIT")
                except sqlite3.Error as e:
                    self._rollback()
                    raise StorageWriteFailed(f"Commit failed: {e}") from e
            finally:
                self._depth = 0

    def _rollback(self) -> None:
        try:
            self._conn.execute("ROLLBACK")
            logger.debug("Rolled back SQLite transaction")
        except sqlite3.Error as e:
            # No transaction left to roll back (SQLite already aborted it)
            logger.warning(f"Rollback failed: {e}")

    # --- mapping ---
    @staticmethod
    def _row_for(entity: Problem | ReviewPlan) -> tuple[str, tuple[str, ...], tuple]:
        if isinstance(entity, Problem):
            return (
                "problems",
                _PROBLEM_COLUMNS,
                (
                    entity.id,
                    entity.title,
                    entity.source,
                    json.dumps(entity.tags),
                    entity.mastery,
                    to_db_time(entity.last_practiced_at),
                    entity.average_score,
                    entity.total_reviews,
                    entity.streak_count,
                    to_db_time(entity.created_at),
                    to_db_time(entity.updated_at),
                ),
            )
        if isinstance(entity, ReviewPlan):
            return (
                "review_plans",
                _PLAN_COLUMNS,
                (
                    entity.id,
                    entity.problem_id,
                    to_db_time(entity.scheduled_at),
                    entity.status.value,
                    entity.level,
                    entity.score,
                    entity.confidence,
                    to_db_time(entity.completed_at),
                    entity.time_spent,
                ),
            )
        raise TypeError(f"Unsupported entity type: {type(entity).__name__}")


def _problem_from_row(row: sqlite3.Row) -> Problem:
    return Problem(
        id=row["id"],
        title=row["title"],
        source=row["source"],
        tags=json.loads(row["tags"] or "[]"),
        mastery=row["mastery"],
        last_practiced_at=from_db_time(row["last_practiced_at"]),
        average_score=row["average_score"],
        total_reviews=row["total_reviews"],
        streak_count=row["streak_count"],
        created_at=from_db_time(row["created_at"]),
        updated_at=from_db_time(row["updated_at"]),
    )


def _plan_from_row(row: sqlite3.Row) -> ReviewPlan:
    return ReviewPlan(
        id=row["id"],
        problem_id=row["problem_id"],
        scheduled_at=from_db_time(row["scheduled_at"]),
        status=ReviewStatus(row["status"]),
        level=row["level"],
        score=row["score"],
        confidence=row["confidence"],
        completed_at=from_db_time(row["completed_at"]),
        time_spent=row["time_spent"],
    )
