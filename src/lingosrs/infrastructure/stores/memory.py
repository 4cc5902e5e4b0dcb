"""
In-memory card store.

Keeps records in a dict keyed by (user_id, item_id). Writes are serialised
with an asyncio.Lock so version checks and updates happen atomically.
"""

import asyncio
import logging
from dataclasses import replace

from lingosrs.domain.errors import DuplicateItem, ItemNotFound, VersionConflict
from lingosrs.domain.review.models import CardRecord, ItemKind
from lingosrs.domain.review.ports import CardStore

logger = logging.getLogger(__name__)


class InMemoryCardStore(CardStore):
    def __init__(self, records: list[CardRecord] | None = None):
        self._records: dict[tuple[str, str], CardRecord] = {}
        self._lock = asyncio.Lock()
        for record in records or []:
            self._records[(record.user_id, record.item_id)] = record

    async def get(self, user_id: str, item_id: str) -> CardRecord | None:
        return self._records.get((user_id, item_id))

    async def list(
        self,
        user_id: str,
        language: str | None = None,
        kind: ItemKind | None = None,
    ) -> list[CardRecord]:
        return [
            r
            for (uid, _), r in self._records.items()
            if uid == user_id
            and (language is None or r.language == language)
            and (kind is None or r.kind == kind)
        ]

    async def add(self, record: CardRecord) -> CardRecord:
        key = (record.user_id, record.item_id)
        async with self._lock:
            if key in self._records:
                raise DuplicateItem(record.user_id, record.item_id)
            self._records[key] = record
        return record

    async def save(self, record: CardRecord, expected_version: int) -> CardRecord:
        key = (record.user_id, record.item_id)
        async with self._lock:
            current = self._records.get(key)
            if current is None:
                raise ItemNotFound(record.user_id, record.item_id)
            if current.version != expected_version:
                raise VersionConflict(record.item_id, expected_version, current.version)
            stored = replace(record, version=expected_version + 1)
            self._records[key] = stored
        return stored

    async def delete(self, user_id: str, item_id: str) -> bool:
        async with self._lock:
            return self._records.pop((user_id, item_id), None) is not None
