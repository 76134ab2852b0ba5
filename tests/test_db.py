"""Tests for database initialization, settings and state storage."""
import pytest

from ayah_review.scheduler import StateError
from ayah_review.db import (
    get_connection, get_setting, init_db, load_state, resolve_db_path, save_state, set_setting,
)


def test_init_db_creates_tables(tmp_db):
    init_db(tmp_db)
    conn = get_connection(tmp_db)
    cursor = conn.execute(
        "SELECT name FROM sqlite_master WHERE type='table' ORDER BY name"
    )
    tables = {row[0] for row in cursor.fetchall()}
    assert {"review_records", "study_sessions", "user_settings"}.issubset(tables)
    conn.close()


def test_init_db_is_idempotent(tmp_db):
    init_db(tmp_db)
    init_db(tmp_db)  # should not raise
    conn = get_connection(tmp_db)
    cursor = conn.execute("SELECT name FROM sqlite_master WHERE type='table'")
    assert len(cursor.fetchall()) > 0
    conn.close()


def test_get_set_setting(tmp_db):
    """Settings can be stored and retrieved."""
    init_db(tmp_db)
    assert get_setting(tmp_db, "test_key") is None
    assert get_setting(tmp_db, "test_key", "default") == "default"
    set_setting(tmp_db, "test_key", "value1")
    assert get_setting(tmp_db, "test_key") == "value1"
    set_setting(tmp_db, "test_key", "value2")  # upsert
    assert get_setting(tmp_db, "test_key") == "value2"


def test_load_state_empty_db(tmp_db, clock):
    init_db(tmp_db)
    scheduler = load_state(tmp_db, clock=clock)
    assert scheduler.records == {}
    assert scheduler.total_reviews == 0
    assert scheduler.streak.streak_count == 0


def test_save_and_load_state(tmp_db, scheduler, clock):
    init_db(tmp_db)
    scheduler.register("1:1")
    scheduler.start_session()
    for item_id, quality in (("2:255", 5), ("112:1", 1), ("2:255", 4)):
        scheduler.review(item_id, quality)
        scheduler.record_review(item_id, quality >= 3)
    scheduler.end_session()
    scheduler.set_goal_target("daily", 35)

    save_state(tmp_db, scheduler)
    restored = load_state(tmp_db, clock=clock)

    assert restored.to_dict() == scheduler.to_dict()
    assert {g.type: g.target for g in restored.goals}["daily"] == 35


def test_save_state_replaces_previous(tmp_db, scheduler, clock):
    init_db(tmp_db)
    scheduler.review("1:1", 4)
    save_state(tmp_db, scheduler)
    scheduler.review("1:1", 4)
    save_state(tmp_db, scheduler)
    conn = get_connection(tmp_db)
    assert conn.execute("SELECT COUNT(*) FROM review_records").fetchone()[0] == 1
    row = conn.execute("SELECT * FROM review_records WHERE item_id = '1:1'").fetchone()
    assert row["repetitions"] == 2
    assert row["interval_days"] == 6
    conn.close()
    assert get_setting(tmp_db, "total_reviews") == "2"


def test_session_order_preserved(tmp_db, scheduler, clock):
    init_db(tmp_db)
    for _ in range(3):
        scheduler.start_session()
        clock.advance(minutes=1)
        scheduler.end_session()
    save_state(tmp_db, scheduler)
    restored = load_state(tmp_db, clock=clock)
    assert [s.id for s in restored.sessions] == [s.id for s in scheduler.sessions]


def test_save_state_keeps_other_settings(tmp_db, scheduler):
    init_db(tmp_db)
    set_setting(tmp_db, "content_path", "/tmp/content.json")
    save_state(tmp_db, scheduler)
    assert get_setting(tmp_db, "content_path") == "/tmp/content.json"


def test_resolve_db_path_env_override(monkeypatch):
    monkeypatch.setenv("AYAH_REVIEW_DB", "/tmp/elsewhere.db")
    assert resolve_db_path() == "/tmp/elsewhere.db"
    monkeypatch.delenv("AYAH_REVIEW_DB")
    assert resolve_db_path().endswith("review.db")


def test_load_state_corrupt_total_reviews(tmp_db, clock):
    init_db(tmp_db)
    set_setting(tmp_db, "total_reviews", "not-a-number")
    with pytest.raises(StateError):
        load_state(tmp_db, clock=clock)


def test_load_state_corrupt_goals_json(tmp_db, clock):
    init_db(tmp_db)
    set_setting(tmp_db, "goals", "{broken")
    with pytest.raises(StateError):
        load_state(tmp_db, clock=clock)
