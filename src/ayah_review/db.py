"""Database initialization, settings and scheduler state storage."""
import json
import os
import sqlite3
from pathlib import Path

from ayah_review.clock import Clock
from ayah_review.logging_config import logger
from ayah_review.scheduler import Scheduler, StateError

DEFAULT_DB_PATH = str(Path.home() / ".ayah_review" / "review.db")
DEFAULT_CONTENT_PATH = str(Path.home() / ".ayah_review" / "content.json")

SCHEMA = """
CREATE TABLE IF NOT EXISTS review_records (
    item_id TEXT PRIMARY KEY,
    next_review_at TEXT NOT NULL,
    interval_days INTEGER NOT NULL DEFAULT 1,
    ease_factor REAL NOT NULL DEFAULT 2.5,
    repetitions INTEGER NOT NULL DEFAULT 0,
    last_reviewed_at TEXT
);

CREATE TABLE IF NOT EXISTS study_sessions (
    id TEXT PRIMARY KEY,
    position INTEGER NOT NULL,
    start_time TEXT NOT NULL,
    end_time TEXT,
    item_ids TEXT NOT NULL DEFAULT '[]',
    correct_count INTEGER NOT NULL DEFAULT 0,
    total_count INTEGER NOT NULL DEFAULT 0
);

CREATE TABLE IF NOT EXISTS user_settings (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    key TEXT NOT NULL UNIQUE,
    value TEXT
);
"""

# user_settings keys holding scheduler state
STATE_KEYS = ("streak", "total_reviews", "goals")


def resolve_db_path() -> str:
    return os.environ.get("AYAH_REVIEW_DB", DEFAULT_DB_PATH)


def get_connection(db_path: str = DEFAULT_DB_PATH) -> sqlite3.Connection:
    """Return a SQLite connection with row factory enabled."""
    conn = sqlite3.connect(db_path)
    conn.row_factory = sqlite3.Row
    return conn


def init_db(db_path: str = DEFAULT_DB_PATH) -> None:
    """Initialize the database, creating all tables if they don't exist."""
    Path(db_path).parent.mkdir(parents=True, exist_ok=True)
    conn = get_connection(db_path)
    conn.executescript(SCHEMA)
    conn.commit()
    conn.close()


def get_setting(db_path: str, key: str, default: str = None) -> str | None:
    conn = get_connection(db_path)
    row = conn.execute("SELECT value FROM user_settings WHERE key = ?", (key,)).fetchone()
    conn.close()
    return row["value"] if row else default


def _upsert_setting(conn: sqlite3.Connection, key: str, value: str) -> None:
    conn.execute(
        "INSERT INTO user_settings (key, value) VALUES (?, ?) ON CONFLICT(key) DO UPDATE SET value=?",
        (key, value, value),
    )


def set_setting(db_path: str, key: str, value: str) -> None:
    conn = get_connection(db_path)
    _upsert_setting(conn, key, value)
    conn.commit()
    conn.close()


def save_state(db_path: str, scheduler: Scheduler) -> None:
    """Replace the stored state with the scheduler's current closed state."""
    state = scheduler.to_dict()
    conn = get_connection(db_path)
    try:
        with conn:
            conn.execute("DELETE FROM review_records")
            conn.executemany(
                """INSERT INTO review_records
                (item_id, next_review_at, interval_days, ease_factor, repetitions, last_reviewed_at)
                VALUES (?, ?, ?, ?, ?, ?)""",
                [
                    (item_id, r["nextReviewAt"], r["intervalDays"], r["easeFactor"],
                     r["repetitions"], r["lastReviewedAt"])
                    for item_id, r in state["reviewRecords"].items()
                ],
            )
            conn.execute("DELETE FROM study_sessions")
            conn.executemany(
                """INSERT INTO study_sessions
                (id, position, start_time, end_time, item_ids, correct_count, total_count)
                VALUES (?, ?, ?, ?, ?, ?, ?)""",
                [
                    (s["id"], i, s["startTime"], s["endTime"], json.dumps(s["itemIds"]),
                     s["correctCount"], s["totalCount"])
                    for i, s in enumerate(state["sessions"])
                ],
            )
            _upsert_setting(conn, "streak", json.dumps(state["streak"]))
            _upsert_setting(conn, "total_reviews", str(state["totalReviews"]))
            _upsert_setting(conn, "goals", json.dumps(state["goals"]))
    finally:
        conn.close()
    logger.info(
        "state_saved",
        db_path=db_path,
        records=len(state["reviewRecords"]),
        sessions=len(state["sessions"]),
    )


def load_state(db_path: str, clock: Clock | None = None) -> Scheduler:
    """Build a scheduler from the stored state. An empty database gives a fresh one."""
    conn = get_connection(db_path)
    try:
        records = conn.execute("SELECT * FROM review_records").fetchall()
        sessions = conn.execute("SELECT * FROM study_sessions ORDER BY position").fetchall()
        settings = {
            row["key"]: row["value"]
            for row in conn.execute(
                f"SELECT key, value FROM user_settings WHERE key IN ({','.join('?' * len(STATE_KEYS))})",
                STATE_KEYS,
            ).fetchall()
        }
    finally:
        conn.close()

    data = {
        "reviewRecords": {
            r["item_id"]: {
                "nextReviewAt": r["next_review_at"],
                "intervalDays": r["interval_days"],
                "easeFactor": r["ease_factor"],
                "repetitions": r["repetitions"],
                "lastReviewedAt": r["last_reviewed_at"],
            }
            for r in records
        },
        "sessions": [
            {
                "id": s["id"],
                "startTime": s["start_time"],
                "endTime": s["end_time"],
                "itemIds": json.loads(s["item_ids"]),
                "correctCount": s["correct_count"],
                "totalCount": s["total_count"],
            }
            for s in sessions
        ],
        "totalReviews": settings.get("total_reviews", "0"),
    }
    try:
        if "streak" in settings:
            data["streak"] = json.loads(settings["streak"])
        if "goals" in settings:
            data["goals"] = json.loads(settings["goals"])
    except json.JSONDecodeError as e:
        raise StateError(f"malformed stored setting: {e}") from e

    scheduler = Scheduler.from_dict(data, clock=clock)
    logger.info("state_loaded", db_path=db_path, records=len(records), sessions=len(sessions))
    return scheduler
