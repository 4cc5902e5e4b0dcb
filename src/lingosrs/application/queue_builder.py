"""
Queue builder for review sessions.

Builds today's study queue by:
1. Filtering the user's cards down to those whose next review has elapsed
2. Ordering them earliest-overdue first (stable for ties)
3. Topping the session up with a few items the user has not enrolled yet
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime

from lingosrs.domain.constants import NEW_CARDS_PER_SESSION
from lingosrs.domain.review.models import CardRecord, ReviewState

logger = logging.getLogger(__name__)


@dataclass
class SessionPlan:
    """Result of session building."""

    due_queue: list[str]  # Enrolled items to review, most overdue first
    new_items: list[str]  # Not-yet-enrolled items to introduce
    deferred: list[str] = field(default_factory=list)  # Due, but over max_reviews

    @property
    def total(self) -> int:
        return len(self.due_queue) + len(self.new_items)


def filter_due(
    items: Iterable[tuple[str, ReviewState]],
    now: datetime,
) -> list[tuple[str, ReviewState]]:
    """
    Return the (item_id, state) pairs that are due, most overdue first.

    An item is due when `next_review_at <= now`. `sorted` is stable, so items
    sharing a `next_review_at` keep their input order.
    """
    due = [(item_id, state) for item_id, state in items if state.next_review_at <= now]
    return sorted(due, key=lambda pair: pair[1].next_review_at)


def build_session(
    records: Iterable[CardRecord],
    now: datetime,
    candidate_item_ids: Iterable[str] = (),
    new_limit: int = NEW_CARDS_PER_SESSION,
    max_reviews: int | None = None,
) -> SessionPlan:
    """
    Build a review session from a user's stored cards.

    Args:
        records: The user's card records (already scoped by language/kind).
        now: Session start time.
        candidate_item_ids: Catalogue items that could be introduced, in
            preferred order. Items already enrolled are skipped.
        new_limit: Maximum number of new items to introduce.
        max_reviews: Optional cap on due reviews; overflow goes to `deferred`.

    Returns:
        SessionPlan with the ordered queues.
    """
    if new_limit < 0:
        raise ValueError(f"new_limit must be >= 0, got {new_limit}")
    if max_reviews is not None and max_reviews < 0:
        raise ValueError(f"max_reviews must be >= 0, got {max_reviews}")

    records = list(records)
    due = [item_id for item_id, _ in filter_due(((r.item_id, r.state) for r in records), now)]

    deferred: list[str] = []
    if max_reviews is not None and len(due) > max_reviews:
        due, deferred = due[:max_reviews], due[max_reviews:]

    enrolled = {r.item_id for r in records}
    new_items: list[str] = []
    for item_id in candidate_item_ids:
        if len(new_items) >= new_limit:
            break
        if item_id in enrolled or item_id in new_items:
            continue
        new_items.append(item_id)

    logger.debug(
        f"Session: {len(due)} due, {len(deferred)} deferred, {len(new_items)} new"
    )

    return SessionPlan(due_queue=due, new_items=new_items, deferred=deferred)
