"""Daily engagement streak tracking."""
from datetime import date, timedelta

from ayah_review.models import StreakState


def update_streak(state: StreakState, today: date) -> StreakState:
    """Return the streak after a review on ``today``.

    Dates are compared as calendar days, so two reviews a few minutes
    apart across midnight count as consecutive days while two reviews
    twenty hours apart on the same date count once.
    """
    if state.last_review_date == today:
        return StreakState(state.streak_count, state.last_review_date)
    if state.last_review_date == today - timedelta(days=1):
        return StreakState(state.streak_count + 1, today)
    return StreakState(1, today)
