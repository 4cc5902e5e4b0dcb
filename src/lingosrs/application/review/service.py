"""
Review Service — Application layer orchestrator.

Implements the two handlers the app calls around the scheduler:
"complete review" (read, classify, schedule, write back) and
"build today's session" (read all, filter due, order).
"""

import logging
from collections.abc import Callable, Iterable
from dataclasses import replace
from datetime import datetime, timezone

from ulid import ULID

from lingosrs.application.quality import quality_from_answer
from lingosrs.application.queue_builder import SessionPlan, build_session
from lingosrs.application.scheduler import Sm2Scheduler
from lingosrs.application.stats.metrics_calculator import (
    MetricsCalculator,
    ProgressSummary,
)
from lingosrs.domain.constants import MAX_WRITE_RETRIES, NEW_CARDS_PER_SESSION
from lingosrs.domain.errors import ItemNotFound, VersionConflict
from lingosrs.domain.review.models import CardRecord, ItemKind, ReviewState
from lingosrs.domain.review.ports import CardStore

logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def generate_record_id() -> str:
    """Generate a stable record ID using ULID."""
    return str(ULID())


class ReviewService:
    """
    Application service for enrolling, reviewing and queueing cards.

    Follows Dependency Inversion: depends on the CardStore abstraction,
    not concrete adapter implementations.
    """

    def __init__(
        self,
        store: CardStore,
        scheduler: Sm2Scheduler | None = None,
        clock: Callable[[], datetime] | None = None,
        max_write_retries: int = MAX_WRITE_RETRIES,
        calculator: MetricsCalculator | None = None,
    ):
        """
        Args:
            store: The repository (port) holding card records.
            scheduler: Optional custom scheduler; uses default if not provided.
            clock: Source of the current time; defaults to UTC wall clock.
            max_write_retries: Extra attempts after a version conflict.
            calculator: Optional custom metrics calculator.
        """
        self._store = store
        self._scheduler = scheduler or Sm2Scheduler()
        self._clock = clock or utc_now
        self._max_write_retries = max_write_retries
        self._calc = calculator or MetricsCalculator()

    async def enroll(
        self,
        user_id: str,
        item_id: str,
        kind: ItemKind = ItemKind.VOCABULARY,
        language: str = "fr",
    ) -> CardRecord:
        """
        Start tracking an item for a user. Returns the existing record if the
        item is already enrolled.
        """
        language = language.lower()
        existing = await self._store.get(user_id, item_id)
        if existing:
            return existing

        now = self._clock()
        record = CardRecord(
            id=generate_record_id(),
            user_id=user_id,
            item_id=item_id,
            kind=kind,
            language=language,
            state=self._scheduler.new_state(now),
            created_at=now,
        )
        logger.info(f"Enrolled {kind.value} '{item_id}' ({language}) for {user_id}")
        return await self._store.add(record)

    async def complete_review(self, user_id: str, item_id: str, quality: int) -> CardRecord:
        """
        Apply a review of the given quality and persist the new state.

        Raises:
            ItemNotFound: if the user never enrolled the item.
            InvalidQuality / InvalidState: on caller bugs or corrupt stored state.
            VersionConflict: if concurrent writers win every retry.
        """
        return await self._update(
            user_id,
            item_id,
            lambda state, now: self._scheduler.schedule(state, quality, now),
            action=f"review q={quality}",
        )

    async def complete_review_auto(self, user_id: str, item_id: str, correct: bool) -> CardRecord:
        """Schedule from a correct/incorrect outcome (4 or 0)."""
        return await self.complete_review(user_id, item_id, quality_from_answer(correct))

    async def enroll_and_review(
        self,
        user_id: str,
        item_id: str,
        correct: bool,
        kind: ItemKind = ItemKind.VOCABULARY,
        language: str = "fr",
    ) -> CardRecord:
        """Enroll an item met for the first time and grade that first encounter."""
        await self.enroll(user_id, item_id, kind=kind, language=language)
        return await self.complete_review_auto(user_id, item_id, correct)

    async def reset_item(self, user_id: str, item_id: str) -> CardRecord:
        """Restart an item's schedule from scratch."""
        return await self._update(user_id, item_id, self._scheduler.reset, action="reset")

    async def get(self, user_id: str, item_id: str) -> CardRecord:
        record = await self._store.get(user_id, item_id)
        if record is None:
            raise ItemNotFound(user_id, item_id)
        return record

    async def remove(self, user_id: str, item_id: str) -> bool:
        return await self._store.delete(user_id, item_id)

    async def build_session(
        self,
        user_id: str,
        language: str | None = None,
        kind: ItemKind | None = None,
        candidate_item_ids: Iterable[str] = (),
        new_limit: int = NEW_CARDS_PER_SESSION,
        max_reviews: int | None = None,
    ) -> SessionPlan:
        """
        Build today's session: due items (most overdue first) plus a few new ones.
        """
        if language is not None:
            language = language.lower()
        records = await self._store.list(user_id, language=language, kind=kind)
        return build_session(
            records,
            self._clock(),
            candidate_item_ids=candidate_item_ids,
            new_limit=new_limit,
            max_reviews=max_reviews,
        )

    async def progress(
        self,
        user_id: str,
        language: str | None = None,
        kind: ItemKind | None = None,
    ) -> ProgressSummary:
        if language is not None:
            language = language.lower()
        records = await self._store.list(user_id, language=language, kind=kind)
        return self._calc.summarize(records, self._clock())

    async def _update(
        self,
        user_id: str,
        item_id: str,
        transform: Callable[[ReviewState, datetime], ReviewState],
        action: str,
    ) -> CardRecord:
        """
        Read-modify-write with optimistic retries.

        Each attempt re-reads the record, so the transform always sees the
        freshest stored state.
        """
        attempt = 0
        while True:
            record = await self._store.get(user_id, item_id)
            if record is None:
                raise ItemNotFound(user_id, item_id)

            now = self._clock()
            updated = replace(record, state=transform(record.state, now))
            try:
                saved = await self._store.save(updated, expected_version=record.version)
            except VersionConflict as e:
                if attempt >= self._max_write_retries:
                    logger.error(f"Giving up on {action} for '{item_id}': {e}")
                    raise
                attempt += 1
                logger.warning(
                    f"{e}; retrying {action} ({attempt}/{self._max_write_retries})"
                )
                continue

            logger.debug(
                f"{action} '{item_id}' for {user_id}: interval={saved.state.interval} "
                f"reps={saved.state.repetitions} next={saved.state.next_review_at.isoformat()}"
            )
            return saved
