# tests/test_dashboard.py
from datetime import date, timedelta
from unittest.mock import patch

from ayah_review.dashboard import get_accuracy, get_goal_progress, get_study_stats, get_weekly_activity


def _session(scheduler, results):
    scheduler.start_session()
    for item_id, quality in results:
        scheduler.review(item_id, quality)
        scheduler.record_review(item_id, quality >= 3)
    scheduler.end_session()


def test_accuracy_no_sessions(scheduler):
    assert get_accuracy(scheduler) == 0


def test_accuracy_across_sessions(scheduler):
    _session(scheduler, [("1:1", 5), ("1:2", 1), ("1:3", 4)])
    _session(scheduler, [("1:4", 0)])
    assert get_accuracy(scheduler) == 50


def test_accuracy_ignores_empty_sessions(scheduler):
    scheduler.start_session()
    scheduler.end_session()
    assert get_accuracy(scheduler) == 0


def test_weekly_activity(scheduler, clock):
    _session(scheduler, [("1:1", 5), ("1:2", 4)])
    clock.advance(days=2)
    _session(scheduler, [("1:3", 3)])
    _session(scheduler, [("1:4", 3)])

    activity = get_weekly_activity(scheduler)
    assert len(activity) == 7
    assert activity[-1]["date"] == clock.today()
    assert activity[0]["date"] == clock.today() - timedelta(days=6)
    by_day = {d["date"]: d["reviews"] for d in activity}
    assert by_day[date(2024, 3, 13)] == 2
    assert by_day[date(2024, 3, 14)] == 0
    assert by_day[date(2024, 3, 15)] == 2
    assert activity[-1]["label"] == "Fri"


def test_weekly_activity_excludes_older_sessions(scheduler, clock):
    _session(scheduler, [("1:1", 5)])
    clock.advance(days=7)
    activity = get_weekly_activity(scheduler)
    assert sum(d["reviews"] for d in activity) == 0


def test_goal_progress_capped(scheduler):
    scheduler.set_goal_target("daily", 2)
    for i in range(3):
        scheduler.review(f"1:{i}", 4)
    progress = {g["type"]: g for g in get_goal_progress(scheduler)}
    assert progress["daily"]["current"] == 3
    assert progress["daily"]["percent"] == 100.0
    assert progress["weekly"]["percent"] == 3.0


def test_get_study_stats(scheduler, clock):
    scheduler.register("9:9")
    _session(scheduler, [("1:1", 5), ("1:2", 2)])
    stats = get_study_stats(scheduler)
    assert stats == {
        "streak": 1,
        "total_reviews": 2,
        "accuracy": 50,
        "sessions_completed": 1,
        "items_tracked": 3,
        "items_due": 1,
    }


def test_get_study_stats_reads_state_once(scheduler):
    """All figures come from one snapshot of the scheduler."""
    _session(scheduler, [("1:1", 4)])
    with patch.object(scheduler, "to_dict", wraps=scheduler.to_dict) as to_dict:
        stats = get_study_stats(scheduler)
    to_dict.assert_called_once()
    assert stats["total_reviews"] == 1
    assert stats["sessions_completed"] == 1
