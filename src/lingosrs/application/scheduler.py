"""
SM-2 scheduler for grammar and vocabulary cards.

This is a pure computation module with no I/O. Given a card's current
ReviewState and the quality of the latest review, it returns the next state:

1. A lapse (quality < 3) resets the streak and makes the card due again now.
2. A success steps the interval 1 -> 6 -> interval * ease.
3. Ease moves by the SM-2 delta in both cases and never drops below 1.3.
"""

import logging
import math
from dataclasses import replace
from datetime import datetime, timedelta

from lingosrs.domain.constants import (
    DEFAULT_EASE_FACTOR,
    FIRST_INTERVAL,
    MAX_QUALITY,
    MIN_EASE_FACTOR,
    MIN_QUALITY,
    PASSING_QUALITY,
    SECOND_INTERVAL,
)
from lingosrs.domain.errors import InvalidQuality, InvalidState
from lingosrs.domain.review.models import ReviewState

logger = logging.getLogger(__name__)


def round_half_up(value: float) -> int:
    """Round to the nearest integer, ties away from zero for positive values."""
    return math.floor(value + 0.5)


def ease_delta(quality: int) -> float:
    """SM-2 ease adjustment: +0.1 for a perfect recall, -0.8 for a blackout."""
    miss = MAX_QUALITY - quality
    return 0.1 - miss * (0.08 + miss * 0.02)


def validate_quality(quality: int) -> None:
    # bool is an int subclass; True/False are never valid grades
    if isinstance(quality, bool) or not isinstance(quality, int):
        raise InvalidQuality(quality)
    if not MIN_QUALITY <= quality <= MAX_QUALITY:
        raise InvalidQuality(quality)


def validate_state(state: ReviewState) -> None:
    # NaN fails every comparison, so test the invariant itself
    if not state.ease_factor >= MIN_EASE_FACTOR:
        raise InvalidState("ease_factor", state.ease_factor, f"below {MIN_EASE_FACTOR}")
    if state.interval < 0:
        raise InvalidState("interval", state.interval, "negative")
    if state.repetitions < 0:
        raise InvalidState("repetitions", state.repetitions, "negative")


class Sm2Scheduler:
    """
    Stateless SM-2 scheduler.

    Holds no static or global state, so instances can be created freely and
    shared between concurrent callers.
    """

    def new_state(self, now: datetime) -> ReviewState:
        """State of an item the learner has just encountered: due immediately."""
        return ReviewState(next_review_at=now)

    def schedule(self, state: ReviewState, quality: int, now: datetime) -> ReviewState:
        """
        Compute the state that follows a review of the given quality.

        Args:
            state: Current state. Must satisfy the ReviewState invariants.
            quality: Recall grade, integer 0-5.
            now: Review time; the next review is scheduled relative to it.

        Returns:
            A new ReviewState. The input is left untouched.

        Raises:
            InvalidQuality: if quality is not an integer in [0, 5].
            InvalidState: if state violates its invariants.
        """
        validate_quality(quality)
        validate_state(state)

        if quality < PASSING_QUALITY:
            interval = 0
            repetitions = 0
        else:
            if state.repetitions == 0:
                interval = FIRST_INTERVAL
            elif state.repetitions == 1:
                interval = SECOND_INTERVAL
            else:
                interval = round_half_up(state.interval * state.ease_factor)
            repetitions = state.repetitions + 1

        ease_factor = max(MIN_EASE_FACTOR, state.ease_factor + ease_delta(quality))

        logger.debug(
            f"q={quality}: interval {state.interval} -> {interval}, "
            f"reps {state.repetitions} -> {repetitions}, "
            f"ease {state.ease_factor:.3f} -> {ease_factor:.3f}"
        )

        try:
            next_review_at = now + timedelta(days=interval)
        except OverflowError as e:
            raise InvalidState("interval", interval, "next review beyond the calendar") from e

        return replace(
            state,
            ease_factor=ease_factor,
            interval=interval,
            repetitions=repetitions,
            next_review_at=next_review_at,
            last_reviewed_at=now,
        )

    def reset(self, state: ReviewState, now: datetime) -> ReviewState:
        """Restart an item's schedule: default ease, no streak, due now."""
        validate_state(state)
        return replace(
            state,
            ease_factor=DEFAULT_EASE_FACTOR,
            interval=0,
            repetitions=0,
            next_review_at=now,
            last_reviewed_at=now,
        )


_default = Sm2Scheduler()


def new_state(now: datetime) -> ReviewState:
    return _default.new_state(now)


def schedule(state: ReviewState, quality: int, now: datetime) -> ReviewState:
    return _default.schedule(state, quality, now)


def reset(state: ReviewState, now: datetime) -> ReviewState:
    return _default.reset(state, now)
