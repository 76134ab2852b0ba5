"""Study statistics: streak, accuracy, weekly activity and goal progress."""
from datetime import date, timedelta

from ayah_review.scheduler import Scheduler


def get_accuracy(scheduler: Scheduler) -> int:
    sessions = scheduler.sessions
    total = sum(s.total_count for s in sessions)
    if not total:
        return 0
    correct = sum(s.correct_count for s in sessions)
    return round(correct / total * 100)


def get_weekly_activity(scheduler: Scheduler, today: date | None = None) -> list[dict]:
    """Reviews logged per day over the last 7 days, oldest first."""
    if today is None:
        today = scheduler.clock.today()
    per_day: dict[date, int] = {}
    for s in scheduler.sessions:
        day = s.start_time.date()
        per_day[day] = per_day.get(day, 0) + s.total_count
    days = [today - timedelta(days=6 - i) for i in range(7)]
    return [
        {"date": d, "label": d.strftime("%a"), "reviews": per_day.get(d, 0)}
        for d in days
    ]


def get_goal_progress(scheduler: Scheduler) -> list[dict]:
    return [
        {
            "type": g.type,
            "current": g.current,
            "target": g.target,
            "percent": min(round(g.current / g.target * 100, 1), 100.0),
        }
        for g in scheduler.goals
    ]


def get_study_stats(scheduler: Scheduler) -> dict:
    # one locked read, so every figure comes from the same state
    snapshot = Scheduler.from_dict(scheduler.to_dict(), clock=scheduler.clock)
    return {
        "streak": snapshot.streak.streak_count,
        "total_reviews": snapshot.total_reviews,
        "accuracy": get_accuracy(snapshot),
        "sessions_completed": len(snapshot.sessions),
        "items_tracked": len(snapshot.records),
        "items_due": len(snapshot.due_items()),
    }
