"""SM-2 spaced repetition algorithm."""

MIN_EASE_FACTOR = 1.3
DEFAULT_EASE_FACTOR = 2.5
PASSING_QUALITY = 3


class InvalidQuality(ValueError):
    """Raised when a quality rating falls outside 0-5."""

    def __init__(self, quality):
        super().__init__(f"quality must be an integer between 0 and 5, got {quality!r}")
        self.quality = quality


def validate_quality(quality) -> int:
    # bool is an int subclass; True/False are not ratings
    if isinstance(quality, bool) or not isinstance(quality, int) or not 0 <= quality <= 5:
        raise InvalidQuality(quality)
    return quality


def is_passing(quality: int) -> bool:
    return quality >= PASSING_QUALITY


def sm2_update(
    quality: int,
    repetitions: int,
    ease_factor: float,
    interval: int,
) -> dict:
    """Calculate next review parameters using SM-2.

    Args:
        quality: Rating 0-5 (0=complete blackout, 5=perfect)
        repetitions: Number of consecutive correct reviews
        ease_factor: Current ease factor (minimum 1.3)
        interval: Current interval in days

    Returns:
        Dict with updated interval, repetitions, ease_factor.

    Raises:
        InvalidQuality: quality is not an integer in 0-5.
    """
    validate_quality(quality)

    if not is_passing(quality):
        # Lapse: start over, ease factor untouched
        return {
            "interval": 1,
            "repetitions": 0,
            "ease_factor": ease_factor,
        }

    new_repetitions = repetitions + 1
    if new_repetitions == 1:
        new_interval = 1
    elif new_repetitions == 2:
        new_interval = 6
    else:
        new_interval = max(1, round(interval * ease_factor))

    new_ef = ease_factor + (0.1 - (5 - quality) * (0.08 + (5 - quality) * 0.02))
    new_ef = max(MIN_EASE_FACTOR, new_ef)

    return {
        "interval": new_interval,
        "repetitions": new_repetitions,
        "ease_factor": new_ef,
    }
