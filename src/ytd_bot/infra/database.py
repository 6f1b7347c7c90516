"""SQLite persistence for users, activity, and feedback.

Nothing in the selection flow depends on this store: every query
catches :class:`sqlite3.Error`, logs it, and returns a neutral value
(``False``, ``None``, an empty list, or zero counts) so a broken
database never breaks a download.

Timestamps are stored as UTC ``YYYY-MM-DD HH:MM:SS`` strings, the format
SQLite's own ``datetime()`` produces, so range filters compare like with
like.
"""

from __future__ import annotations

import logging
import sqlite3
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path

logger = logging.getLogger(__name__)

SCHEMA = """
CREATE TABLE IF NOT EXISTS users (
    id INTEGER PRIMARY KEY,
    first_name TEXT,
    username TEXT,
    joined_date TEXT,
    last_active TEXT
);

CREATE TABLE IF NOT EXISTS user_activity (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id INTEGER,
    activity_type TEXT,
    search_query TEXT,
    timestamp TEXT,
    FOREIGN KEY (user_id) REFERENCES users (id)
);

CREATE TABLE IF NOT EXISTS feedback (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id INTEGER,
    message TEXT,
    timestamp TEXT,
    status TEXT DEFAULT 'pending',
    FOREIGN KEY (user_id) REFERENCES users (id)
);

CREATE TABLE IF NOT EXISTS feedback_replies (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    feedback_id INTEGER,
    reply TEXT,
    timestamp TEXT,
    FOREIGN KEY (feedback_id) REFERENCES feedback (id)
);

CREATE INDEX IF NOT EXISTS idx_activity_timestamp ON user_activity (timestamp);
CREATE INDEX IF NOT EXISTS idx_feedback_status ON feedback (status);
"""

_TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


def _utc_now() -> str:
    return datetime.now(timezone.utc).strftime(_TIMESTAMP_FORMAT)


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class UserStats:
    total_users: int = 0
    active_today: int = 0
    active_week: int = 0
    popular_searches: tuple[tuple[str, int], ...] = field(default_factory=tuple)


@dataclass(frozen=True, slots=True)
class FeedbackRecord:
    id: int
    user_id: int
    message: str
    timestamp: str | None = None
    status: str = "pending"
    first_name: str | None = None
    username: str | None = None


# ---------------------------------------------------------------------------
# Connection
# ---------------------------------------------------------------------------

class Database:
    """Owns the single SQLite connection shared by the repositories.

    The connection is opened with ``check_same_thread=False`` because the
    chat layer runs on one event-loop thread while yt-dlp work happens in
    worker threads; only the loop thread touches the database.
    """

    def __init__(self, path: Path | str) -> None:
        self.path = str(path)
        if self.path != ":memory:":
            Path(self.path).parent.mkdir(parents=True, exist_ok=True)
        self.conn = sqlite3.connect(self.path, check_same_thread=False)
        self.conn.row_factory = sqlite3.Row
        self.conn.executescript(SCHEMA)
        self.conn.commit()
        logger.info("Database ready at %s", self.path)

    def close(self) -> None:
        try:
            self.conn.close()
        except sqlite3.Error:
            logger.exception("Error closing database %s", self.path)
        else:
            logger.info("Database %s closed", self.path)


# ---------------------------------------------------------------------------
# Users and activity
# ---------------------------------------------------------------------------

class UserRepository:
    """User directory plus the activity log; satisfies ``ActivityLog``."""

    def __init__(self, db: Database, *, clock: Callable[[], str] = _utc_now) -> None:
        self._conn = db.conn
        self._clock = clock

    def track_user(self, user_id: int, first_name: str | None, username: str | None) -> bool:
        """Insert the user if new and bump ``last_active``."""
        now = self._clock()
        try:
            with self._conn:
                self._conn.execute(
                    """
                    INSERT OR IGNORE INTO users (id, first_name, username, joined_date, last_active)
                    VALUES (?, ?, ?, ?, ?)
                    """,
                    (user_id, first_name or "", username or "", now, now),
                )
                self._conn.execute(
                    "UPDATE users SET last_active = ?, first_name = ?, username = ? WHERE id = ?",
                    (now, first_name or "", username or "", user_id),
                )
        except sqlite3.Error:
            logger.exception("Error tracking user %s", user_id)
            return False
        return True

    def record(self, user_id: int, activity_type: str, detail: str = "") -> bool:
        try:
            with self._conn:
                self._conn.execute(
                    """
                    INSERT INTO user_activity (user_id, activity_type, search_query, timestamp)
                    VALUES (?, ?, ?, ?)
                    """,
                    (user_id, activity_type, detail, self._clock()),
                )
        except sqlite3.Error:
            logger.exception("Error logging %s activity for user %s", activity_type, user_id)
            return False
        return True

    def all_user_ids(self) -> list[int]:
        try:
            rows = self._conn.execute("SELECT id FROM users ORDER BY id").fetchall()
        except sqlite3.Error:
            logger.exception("Error listing users")
            return []
        return [int(row["id"]) for row in rows]

    def stats(self) -> UserStats:
        """Aggregate counts for the admin ``/stats`` command."""
        try:
            total = self._conn.execute("SELECT COUNT(*) AS count FROM users").fetchone()
            today = self._conn.execute(
                """
                SELECT COUNT(DISTINCT user_id) AS count FROM user_activity
                WHERE timestamp > datetime('now', '-1 day')
                """
            ).fetchone()
            week = self._conn.execute(
                """
                SELECT COUNT(DISTINCT user_id) AS count FROM user_activity
                WHERE timestamp > datetime('now', '-7 day')
                """
            ).fetchone()
            popular = self._conn.execute(
                """
                SELECT search_query, COUNT(*) AS count
                FROM user_activity
                WHERE activity_type = 'search'
                  AND search_query != '' AND search_query NOT LIKE '/%'
                GROUP BY search_query
                ORDER BY count DESC, search_query ASC
                LIMIT 5
                """
            ).fetchall()
        except sqlite3.Error:
            logger.exception("Error computing user stats")
            return UserStats()
        return UserStats(
            total_users=int(total["count"]),
            active_today=int(today["count"]),
            active_week=int(week["count"]),
            popular_searches=tuple((row["search_query"], int(row["count"])) for row in popular),
        )


# ---------------------------------------------------------------------------
# Feedback
# ---------------------------------------------------------------------------

class FeedbackRepository:
    """User feedback and the admin's replies to it."""

    def __init__(self, db: Database, *, clock: Callable[[], str] = _utc_now) -> None:
        self._conn = db.conn
        self._clock = clock

    def save(self, user_id: int, message: str) -> int | None:
        """Store *message* as pending feedback; return its id."""
        try:
            with self._conn:
                cur = self._conn.execute(
                    "INSERT INTO feedback (user_id, message, timestamp) VALUES (?, ?, ?)",
                    (user_id, message, self._clock()),
                )
        except sqlite3.Error:
            logger.exception("Error saving feedback from user %s", user_id)
            return None
        return cur.lastrowid

    def pending(self, limit: int = 10) -> list[FeedbackRecord]:
        """Newest pending feedback first, joined with the sender's names."""
        try:
            rows = self._conn.execute(
                """
                SELECT f.id, f.user_id, f.message, f.timestamp, f.status,
                       u.first_name, u.username
                FROM feedback f
                LEFT JOIN users u ON f.user_id = u.id
                WHERE f.status = 'pending'
                ORDER BY f.timestamp DESC, f.id DESC
                LIMIT ?
                """,
                (limit,),
            ).fetchall()
        except sqlite3.Error:
            logger.exception("Error listing pending feedback")
            return []
        return [
            FeedbackRecord(
                id=int(row["id"]),
                user_id=int(row["user_id"]),
                message=row["message"],
                timestamp=row["timestamp"],
                status=row["status"],
                first_name=row["first_name"] or None,
                username=row["username"] or None,
            )
            for row in rows
        ]

    def get(self, feedback_id: int) -> FeedbackRecord | None:
        try:
            row = self._conn.execute(
                "SELECT id, user_id, message, timestamp, status FROM feedback WHERE id = ?",
                (feedback_id,),
            ).fetchone()
        except sqlite3.Error:
            logger.exception("Error loading feedback #%s", feedback_id)
            return None
        if row is None:
            return None
        return FeedbackRecord(
            id=int(row["id"]),
            user_id=int(row["user_id"]),
            message=row["message"],
            timestamp=row["timestamp"],
            status=row["status"],
        )

    def save_reply(self, feedback_id: int, reply: str) -> bool:
        """Store the admin's reply and mark the feedback ``replied``."""
        try:
            with self._conn:
                self._conn.execute(
                    "INSERT INTO feedback_replies (feedback_id, reply, timestamp) VALUES (?, ?, ?)",
                    (feedback_id, reply, self._clock()),
                )
                self._conn.execute(
                    "UPDATE feedback SET status = 'replied' WHERE id = ?",
                    (feedback_id,),
                )
        except sqlite3.Error:
            logger.exception("Error saving reply to feedback #%s", feedback_id)
            return False
        return True

    def pending_count(self) -> int:
        try:
            row = self._conn.execute(
                "SELECT COUNT(*) AS count FROM feedback WHERE status = 'pending'"
            ).fetchone()
        except sqlite3.Error:
            logger.exception("Error counting pending feedback")
            return 0
        return int(row["count"])
