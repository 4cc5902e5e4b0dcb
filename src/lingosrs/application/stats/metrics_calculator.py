"""
Metrics calculator for deriving learner progress from card records.

This is a pure computation module with no I/O.
"""

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime

from lingosrs.domain.constants import MATURE_INTERVAL
from lingosrs.domain.review.models import CardRecord

SECONDS_PER_DAY = 86400


@dataclass
class EnrichedReview:
    """
    Card record flattened and enriched with computed metrics.
    """

    item_id: str
    kind: str
    language: str
    ease_factor: float
    interval: int
    repetitions: int
    next_review_at: datetime
    last_reviewed_at: datetime | None

    # Computed metrics
    days_overdue: int  # Negative if not yet due
    is_due: bool
    is_learned: bool  # At least one success since the last lapse
    is_mature: bool  # Interval long enough to count as known


@dataclass
class ProgressSummary:
    total: int
    learned: int
    due: int
    mature: int
    new: int  # Never reviewed
    average_ease: float | None


class MetricsCalculator:
    """
    Computes derived metrics from CardRecord objects.

    Stateless and side-effect free.
    """

    def enrich(self, record: CardRecord, now: datetime) -> EnrichedReview:
        state = record.state
        return EnrichedReview(
            item_id=record.item_id,
            kind=record.kind.value,
            language=record.language,
            ease_factor=state.ease_factor,
            interval=state.interval,
            repetitions=state.repetitions,
            next_review_at=state.next_review_at,
            last_reviewed_at=state.last_reviewed_at,
            days_overdue=self._compute_days_overdue(record, now),
            is_due=state.is_due(now),
            is_learned=state.repetitions > 0,
            is_mature=state.interval >= MATURE_INTERVAL,
        )

    def summarize(self, records: Iterable[CardRecord], now: datetime) -> ProgressSummary:
        enriched = [self.enrich(r, now) for r in records]
        total = len(enriched)
        average_ease = (
            sum(e.ease_factor for e in enriched) / total if total else None
        )
        return ProgressSummary(
            total=total,
            learned=sum(1 for e in enriched if e.is_learned),
            due=sum(1 for e in enriched if e.is_due),
            mature=sum(1 for e in enriched if e.is_mature),
            new=sum(1 for e in enriched if e.last_reviewed_at is None),
            average_ease=average_ease,
        )

    def _compute_days_overdue(self, record: CardRecord, now: datetime) -> int:
        """
        Whole days since the card fell due (negative if not yet due).

        Truncates toward zero, so a card due in 12 hours reports 0.
        """
        delta = now - record.state.next_review_at
        return int(delta.total_seconds() / SECONDS_PER_DAY)


@dataclass
class SessionTally:
    """Running count and average quality of the reviews in one session."""

    reviewed: int = 0
    average_quality: float = 0.0

    def add(self, quality: int) -> None:
        self.average_quality = (
            self.average_quality * self.reviewed + quality
        ) / (self.reviewed + 1)
        self.reviewed += 1
