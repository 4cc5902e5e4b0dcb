"""
Domain models for review scheduling.

These are pure data structures with no I/O or external dependencies.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from lingosrs.domain.constants import DEFAULT_EASE_FACTOR


class ItemKind(str, Enum):
    """What a card teaches. Both kinds share one scheduling algorithm."""

    GRAMMAR = "grammar"
    VOCABULARY = "vocabulary"


@dataclass(frozen=True)
class ReviewState:
    """
    Repetition state for one (user, learning item) pair.

    Attributes:
        ease_factor: Difficulty multiplier; lower means harder. Never below 1.3.
        interval: Days to wait before the next review.
        repetitions: Consecutive successful reviews since the last lapse.
        next_review_at: When the item becomes due again.
        last_reviewed_at: Time of the last scheduling call, if any.
    """

    next_review_at: datetime
    ease_factor: float = DEFAULT_EASE_FACTOR
    interval: int = 0
    repetitions: int = 0
    last_reviewed_at: datetime | None = None

    def is_due(self, now: datetime) -> bool:
        return self.next_review_at <= now


@dataclass(frozen=True)
class CardRecord:
    """
    A stored card: the review state plus the keys the store indexes it by.

    `version` is the optimistic concurrency token. Stores bump it on every
    successful write and reject writes made against a stale version.
    """

    id: str
    user_id: str
    item_id: str
    kind: ItemKind
    language: str
    state: ReviewState
    created_at: datetime
    version: int = 1
