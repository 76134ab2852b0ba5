"""Review scheduling: per-item SM-2 records, streaks, sessions and goals."""
import math
import threading
from dataclasses import replace
from datetime import date, datetime, timedelta
from typing import Optional

from ayah_review.clock import Clock, SystemClock
from ayah_review.logging_config import logger
from ayah_review.models import (
    DEFAULT_GOAL_TARGETS, GOAL_TYPES, ReviewRecord, StreakState, StudyGoal, StudySession,
    default_goals, goal_period,
)
from ayah_review.sm2 import MIN_EASE_FACTOR, sm2_update, validate_quality
from ayah_review.streak import update_streak


class StateError(ValueError):
    """Raised when serialized scheduler state is malformed."""


def _copy_session(session: StudySession) -> StudySession:
    return replace(session, item_ids=list(session.item_ids))


class Scheduler:
    """Owns the review records, streak, session log and study goals.

    All mutating operations and snapshot queries are serialized under one
    lock per instance, so a review's record, streak, counter and goal
    updates are observed together.
    """

    def __init__(self, clock: Optional[Clock] = None, goal_targets: Optional[dict] = None):
        self.clock = clock or SystemClock()
        self._lock = threading.RLock()
        self._records: dict[str, ReviewRecord] = {}
        self._streak = StreakState()
        self._total_reviews = 0
        self._sessions: list[StudySession] = []
        self._current_session: Optional[StudySession] = None
        self._goals = {g.type: g for g in default_goals(self.clock.today())}
        for goal_type, target in (goal_targets or {}).items():
            self.set_goal_target(goal_type, target)

    # --- review records ---

    def register(self, item_id: str) -> ReviewRecord:
        with self._lock:
            return replace(self._register(item_id))

    def _register(self, item_id: str) -> ReviewRecord:
        record = self._records.get(item_id)
        if record is None:
            record = ReviewRecord(item_id=item_id, next_review_at=self.clock.now())
            self._records[item_id] = record
            logger.debug("item_registered", item_id=item_id)
        return record

    def review(self, item_id: str, quality: int) -> ReviewRecord:
        """Apply a quality rating to an item and return its updated record.

        Unregistered items are registered first. Raises InvalidQuality
        without touching any state when quality is not an integer in 0-5.
        """
        validate_quality(quality)
        with self._lock:
            record = self._register(item_id)
            updated = sm2_update(
                quality=quality,
                repetitions=record.repetitions,
                ease_factor=record.ease_factor,
                interval=record.interval_days,
            )
            now = self.clock.now()
            record.repetitions = updated["repetitions"]
            record.interval_days = updated["interval"]
            record.ease_factor = updated["ease_factor"]
            record.next_review_at = now + timedelta(days=record.interval_days)
            record.last_reviewed_at = now

            self._update_streak(self.clock.today())
            self._total_reviews += 1
            for goal_type in GOAL_TYPES:
                self._advance_goal(goal_type, 1)

            logger.info(
                "item_reviewed",
                item_id=item_id,
                quality=quality,
                interval_days=record.interval_days,
                repetitions=record.repetitions,
                ease_factor=round(record.ease_factor, 4),
            )
            return replace(record)

    def due_items(self, now: Optional[datetime] = None) -> list[ReviewRecord]:
        """Records whose next review is at or before ``now``, soonest first."""
        if now is None:
            now = self.clock.now()
        with self._lock:
            due = [replace(r) for r in self._records.values() if r.is_due(now)]
        due.sort(key=lambda r: (r.next_review_at, r.item_id))
        return due

    def get(self, item_id: str) -> Optional[ReviewRecord]:
        with self._lock:
            record = self._records.get(item_id)
            return replace(record) if record else None

    @property
    def records(self) -> dict[str, ReviewRecord]:
        with self._lock:
            return {k: replace(v) for k, v in self._records.items()}

    # --- streak / counters ---

    def _update_streak(self, today: date) -> None:
        previous = self._streak.streak_count
        self._streak = update_streak(self._streak, today)
        if self._streak.streak_count != previous:
            logger.debug("streak_updated", streak=self._streak.streak_count, today=today.isoformat())

    @property
    def streak(self) -> StreakState:
        with self._lock:
            return replace(self._streak)

    @property
    def total_reviews(self) -> int:
        with self._lock:
            return self._total_reviews

    # --- sessions ---

    def start_session(self) -> StudySession:
        """Open a study session, or return the one already open."""
        with self._lock:
            if self._current_session is not None:
                logger.warning("session_misuse", action="start", session_id=self._current_session.id)
                return _copy_session(self._current_session)
            start = self.clock.now()
            self._current_session = StudySession(id=self._new_session_id(start), start_time=start)
            logger.info("session_started", session_id=self._current_session.id)
            return _copy_session(self._current_session)

    def _new_session_id(self, start: datetime) -> str:
        base = str(int(start.timestamp() * 1000))
        taken = {s.id for s in self._sessions}
        session_id, n = base, 1
        while session_id in taken:
            session_id = f"{base}-{n}"
            n += 1
        return session_id

    def record_review(self, item_id: str, correct: bool) -> Optional[StudySession]:
        """Log a review in the open session. No-op when none is open."""
        with self._lock:
            session = self._current_session
            if session is None:
                logger.warning("session_misuse", action="record_review", item_id=item_id)
                return None
            session.item_ids.append(item_id)
            session.total_count += 1
            if correct:
                session.correct_count += 1
            return _copy_session(session)

    def end_session(self) -> Optional[StudySession]:
        """Close the open session and append it to the log. No-op when none is open."""
        with self._lock:
            session = self._current_session
            if session is None:
                logger.warning("session_misuse", action="end")
                return None
            session.end_time = self.clock.now()
            self._sessions.append(session)
            self._current_session = None
            logger.info(
                "session_ended",
                session_id=session.id,
                correct=session.correct_count,
                total=session.total_count,
            )
            return _copy_session(session)

    @property
    def current_session(self) -> Optional[StudySession]:
        with self._lock:
            return _copy_session(self._current_session) if self._current_session else None

    @property
    def sessions(self) -> list[StudySession]:
        with self._lock:
            return [_copy_session(s) for s in self._sessions]

    # --- goals ---

    def _goal(self, goal_type: str) -> StudyGoal:
        if goal_type not in self._goals:
            raise ValueError(f"unknown goal type: {goal_type!r}")
        return self._goals[goal_type]

    def _advance_goal(self, goal_type: str, progress: int) -> StudyGoal:
        goal = self._goal(goal_type)
        period = goal_period(goal_type, self.clock.today())
        if goal.period != period:
            goal.period = period
            goal.current = 0
        goal.current += progress
        return goal

    def update_goal(self, goal_type: str, progress: int) -> StudyGoal:
        with self._lock:
            return replace(self._advance_goal(goal_type, progress))

    def set_goal_target(self, goal_type: str, target: int) -> StudyGoal:
        if isinstance(target, bool) or not isinstance(target, int) or target < 1:
            raise ValueError(f"goal target must be a positive integer, got {target!r}")
        with self._lock:
            goal = self._goal(goal_type)
            goal.target = target
            return replace(goal)

    @property
    def goals(self) -> list[StudyGoal]:
        """Goals as of today; counts from an earlier period read as zero."""
        today = self.clock.today()
        with self._lock:
            result = []
            for goal_type in GOAL_TYPES:
                goal = self._goals[goal_type]
                period = goal_period(goal_type, today)
                if goal.period == period:
                    result.append(replace(goal))
                else:
                    result.append(replace(goal, current=0, period=period))
            return result

    # --- serialization ---

    def to_dict(self) -> dict:
        """Serialize closed state. An open session is not included."""
        with self._lock:
            return {
                "reviewRecords": {
                    item_id: {
                        "nextReviewAt": r.next_review_at.isoformat(),
                        "intervalDays": r.interval_days,
                        "easeFactor": r.ease_factor,
                        "repetitions": r.repetitions,
                        "lastReviewedAt": r.last_reviewed_at.isoformat() if r.last_reviewed_at else None,
                    }
                    for item_id, r in self._records.items()
                },
                "streak": {
                    "streakCount": self._streak.streak_count,
                    "lastReviewDate": (
                        self._streak.last_review_date.isoformat() if self._streak.last_review_date else None
                    ),
                },
                "sessions": [
                    {
                        "id": s.id,
                        "startTime": s.start_time.isoformat(),
                        "endTime": s.end_time.isoformat() if s.end_time else None,
                        "itemIds": list(s.item_ids),
                        "correctCount": s.correct_count,
                        "totalCount": s.total_count,
                    }
                    for s in self._sessions
                ],
                "totalReviews": self._total_reviews,
                "goals": [
                    {"type": g.type, "target": g.target, "current": g.current, "period": g.period}
                    for g in self._goals.values()
                ],
            }

    @classmethod
    def from_dict(cls, data: dict, clock: Optional[Clock] = None) -> "Scheduler":
        """Rebuild a scheduler from ``to_dict`` output.

        Raises StateError when a field is missing or breaks a record invariant,
        or when a timestamp's timezone awareness differs from the clock's.
        """
        scheduler = cls(clock=clock)
        aware = scheduler.clock.now().tzinfo is not None
        try:
            for item_id, raw in data.get("reviewRecords", {}).items():
                scheduler._records[item_id] = _record_from_dict(item_id, raw, aware)

            streak = data.get("streak") or {}
            last = streak.get("lastReviewDate")
            scheduler._streak = StreakState(
                streak_count=int(streak.get("streakCount", 0)),
                last_review_date=date.fromisoformat(last) if last else None,
            )

            for raw in data.get("sessions", []):
                end = raw["endTime"]
                scheduler._sessions.append(StudySession(
                    id=str(raw["id"]),
                    start_time=_parse_timestamp(raw["startTime"], aware),
                    end_time=_parse_timestamp(end, aware) if end else None,
                    item_ids=[str(i) for i in raw["itemIds"]],
                    correct_count=int(raw["correctCount"]),
                    total_count=int(raw["totalCount"]),
                ))

            scheduler._total_reviews = int(data.get("totalReviews", 0))

            for raw in data.get("goals", []):
                goal = scheduler._goal(raw["type"])
                scheduler.set_goal_target(goal.type, raw.get("target", DEFAULT_GOAL_TARGETS[goal.type]))
                goal.current = int(raw.get("current", 0))
                goal.period = str(raw.get("period", ""))
        except StateError:
            raise
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise StateError(f"malformed scheduler state: {e}") from e

        if scheduler._streak.streak_count < 0 or scheduler._total_reviews < 0:
            raise StateError("streak and total review counts must be non-negative")
        return scheduler


def _parse_timestamp(value: str, aware: bool) -> datetime:
    moment = datetime.fromisoformat(value)
    if (moment.tzinfo is not None) != aware:
        kind = "timezone-aware" if aware else "naive"
        raise StateError(f"timestamp {value!r} must be {kind} to match the clock")
    return moment


def _record_from_dict(item_id: str, raw: dict, aware: bool) -> ReviewRecord:
    last = raw["lastReviewedAt"]
    record = ReviewRecord(
        item_id=item_id,
        next_review_at=_parse_timestamp(raw["nextReviewAt"], aware),
        interval_days=int(raw["intervalDays"]),
        ease_factor=float(raw["easeFactor"]),
        repetitions=int(raw["repetitions"]),
        last_reviewed_at=_parse_timestamp(last, aware) if last else None,
    )
    if not math.isfinite(record.ease_factor) or record.ease_factor < MIN_EASE_FACTOR:
        raise StateError(f"{item_id}: easeFactor must be a finite number of at least {MIN_EASE_FACTOR}")
    if record.interval_days < 1:
        raise StateError(f"{item_id}: intervalDays must be at least 1")
    if record.repetitions < 0:
        raise StateError(f"{item_id}: repetitions must be non-negative")
    return record
