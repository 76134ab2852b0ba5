"""Data classes for the review domain model."""
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Optional

from ayah_review.sm2 import DEFAULT_EASE_FACTOR

GOAL_TYPES = ("daily", "weekly", "monthly")
DEFAULT_GOAL_TARGETS = {"daily": 20, "weekly": 100, "monthly": 400}


@dataclass
class ReviewRecord:
    item_id: str
    next_review_at: datetime
    interval_days: int = 1
    ease_factor: float = DEFAULT_EASE_FACTOR
    repetitions: int = 0
    last_reviewed_at: Optional[datetime] = None

    def is_due(self, now: datetime) -> bool:
        return self.next_review_at <= now


@dataclass
class StreakState:
    streak_count: int = 0
    last_review_date: Optional[date] = None


@dataclass
class StudySession:
    id: str
    start_time: datetime
    end_time: Optional[datetime] = None
    item_ids: list[str] = field(default_factory=list)
    correct_count: int = 0
    total_count: int = 0

    @property
    def is_open(self) -> bool:
        return self.end_time is None


@dataclass
class StudyGoal:
    type: str
    target: int
    current: int = 0
    period: str = ""


def goal_period(goal_type: str, day: date) -> str:
    """Return the period key a review on ``day`` counts towards."""
    if goal_type == "daily":
        return day.isoformat()
    if goal_type == "weekly":
        year, week, _ = day.isocalendar()
        return f"{year}-W{week:02d}"
    if goal_type == "monthly":
        return day.strftime("%Y-%m")
    raise ValueError(f"unknown goal type: {goal_type!r}")


def default_goals(today: date) -> list[StudyGoal]:
    return [
        StudyGoal(type=t, target=DEFAULT_GOAL_TARGETS[t], period=goal_period(t, today))
        for t in GOAL_TYPES
    ]
