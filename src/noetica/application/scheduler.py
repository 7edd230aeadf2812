"""
Review scheduler: maps (card state, review quality) to the next card state.

This is a pure computation module with no I/O.
"""

from dataclasses import replace
from datetime import datetime, timedelta

from noetica.domain.constants import (
    INITIAL_INTERVAL,
    MAX_QUALITY_SCORE,
    MIN_EASINESS,
    SECOND_INTERVAL,
)
from noetica.domain.errors import InvalidQuality
from noetica.domain.models import CardSchedulingState, ReviewQuality


def schedule(
    state: CardSchedulingState, quality: ReviewQuality, now: datetime
) -> CardSchedulingState:
    """
    Compute the state a card moves to after being reviewed at `now`.

    Only EASY advances the repetition ladder (1 day, 6 days, then
    interval * easiness). Every other grade collapses the ladder back to a
    one-day interval, although GOOD still extends the correct streak.

    Args:
        state: The card's current scheduling state.
        quality: The user's grade for this review.
        now: Review timestamp; becomes last_review_date.

    Returns:
        A new CardSchedulingState; the input is left untouched.
    """
    q = int(quality)

    easiness = _next_easiness(state.easiness_factor, q)
    repetitions, interval = _next_interval(state.repetitions, state.interval, easiness, q)

    return replace(
        state,
        easiness_factor=easiness,
        repetitions=repetitions,
        interval=interval,
        review_count=state.review_count + 1,
        correct_streak=state.correct_streak + 1 if q >= ReviewQuality.GOOD else 0,
        difficulty_rating=MAX_QUALITY_SCORE - q,
        last_review_date=now,
        next_review_date=now + timedelta(days=interval),
    )


def _next_easiness(easiness: float, q: int) -> float:
    # Operation order matters: two clients must agree to the last bit.
    quality_factor = float(MAX_QUALITY_SCORE - q)
    inner = 0.08 + quality_factor * 0.02
    outer = quality_factor * inner
    change = 0.1 - outer
    easiness = easiness + change

    if easiness < MIN_EASINESS:
        easiness = MIN_EASINESS
    return easiness


def _next_interval(
    repetitions: int, previous_interval: int, easiness: float, q: int
) -> tuple[int, int]:
    if q < ReviewQuality.EASY:
        return 0, INITIAL_INTERVAL

    repetitions += 1
    if repetitions == 1:
        interval = INITIAL_INTERVAL
    elif repetitions == 2:
        interval = SECOND_INTERVAL
    else:
        interval = int(previous_interval * easiness)
    return repetitions, interval


def parse_quality(value: "ReviewQuality | int | str") -> ReviewQuality:
    """
    Validate a raw grade from an outer boundary (CLI, HTTP).

    Accepts ReviewQuality members, integers 0-3, digit strings and
    case-insensitive names. Raises InvalidQuality for anything else.
    """
    if isinstance(value, ReviewQuality):
        return value

    # bool is an int subclass; True is not a grade.
    if isinstance(value, bool):
        raise InvalidQuality(value)

    if isinstance(value, str):
        text = value.strip()
        if text.lstrip("-").isdigit():
            value = int(text)
        else:
            try:
                return ReviewQuality[text.upper()]
            except KeyError:
                raise InvalidQuality(value) from None

    if isinstance(value, int):
        try:
            return ReviewQuality(value)
        except ValueError:
            raise InvalidQuality(value) from None

    raise InvalidQuality(value)
