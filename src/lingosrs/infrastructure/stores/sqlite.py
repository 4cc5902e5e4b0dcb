"""
SQLite Card Store — Infrastructure adapter for a local SQLite file.

Implements CardStore with one table. Optimistic concurrency is enforced with a
conditional UPDATE on the version column, so two writers holding the same
snapshot cannot both succeed.
"""

import logging
import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import replace
from datetime import datetime
from pathlib import Path

from lingosrs.domain.errors import DuplicateItem, ItemNotFound, VersionConflict
from lingosrs.domain.review.models import CardRecord, ItemKind, ReviewState
from lingosrs.domain.review.ports import CardStore

logger = logging.getLogger(__name__)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS cards (
    id TEXT PRIMARY KEY,
    user_id TEXT NOT NULL,
    item_id TEXT NOT NULL,
    kind TEXT NOT NULL,
    language TEXT NOT NULL,
    ease_factor REAL NOT NULL,
    interval INTEGER NOT NULL,
    repetitions INTEGER NOT NULL,
    next_review_at TEXT NOT NULL,
    last_reviewed_at TEXT,
    created_at TEXT NOT NULL,
    version INTEGER NOT NULL,
    UNIQUE (user_id, item_id)
)
"""

_COLUMNS = (
    "id, user_id, item_id, kind, language, ease_factor, interval, repetitions, "
    "next_review_at, last_reviewed_at, created_at, version"
)


def _to_row(record: CardRecord) -> tuple:
    state = record.state
    return (
        record.id,
        record.user_id,
        record.item_id,
        record.kind.value,
        record.language,
        state.ease_factor,
        state.interval,
        state.repetitions,
        state.next_review_at.isoformat(),
        state.last_reviewed_at.isoformat() if state.last_reviewed_at else None,
        record.created_at.isoformat(),
        record.version,
    )


def _from_row(row: sqlite3.Row) -> CardRecord:
    last_reviewed = row["last_reviewed_at"]
    return CardRecord(
        id=row["id"],
        user_id=row["user_id"],
        item_id=row["item_id"],
        kind=ItemKind(row["kind"]),
        language=row["language"],
        state=ReviewState(
            ease_factor=row["ease_factor"],
            interval=row["interval"],
            repetitions=row["repetitions"],
            next_review_at=datetime.fromisoformat(row["next_review_at"]),
            last_reviewed_at=datetime.fromisoformat(last_reviewed) if last_reviewed else None,
        ),
        created_at=datetime.fromisoformat(row["created_at"]),
        version=row["version"],
    )


class SqliteCardStore(CardStore):
    """
    Stores card records in a single SQLite database file.

    The table is created on first use. Each call opens its own connection,
    which keeps the store safe to share across threads.
    """

    def __init__(self, path: Path):
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self._connect() as conn:
            conn.execute(_SCHEMA)

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        conn = sqlite3.connect(self.path)
        conn.row_factory = sqlite3.Row
        try:
            with conn:  # commit on success, rollback on error
                yield conn
        finally:
            conn.close()

    async def get(self, user_id: str, item_id: str) -> CardRecord | None:
        with self._connect() as conn:
            row = conn.execute(
                f"SELECT {_COLUMNS} FROM cards WHERE user_id = ? AND item_id = ?",
                (user_id, item_id),
            ).fetchone()
        return _from_row(row) if row else None

    async def list(
        self,
        user_id: str,
        language: str | None = None,
        kind: ItemKind | None = None,
    ) -> list[CardRecord]:
        query = f"SELECT {_COLUMNS} FROM cards WHERE user_id = ?"
        params: list = [user_id]
        if language is not None:
            query += " AND language = ?"
            params.append(language)
        if kind is not None:
            query += " AND kind = ?"
            params.append(kind.value)
        query += " ORDER BY rowid ASC"

        with self._connect() as conn:
            rows = conn.execute(query, params).fetchall()
        return [_from_row(row) for row in rows]

    async def add(self, record: CardRecord) -> CardRecord:
        try:
            with self._connect() as conn:
                conn.execute(
                    f"INSERT INTO cards ({_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
                    _to_row(record),
                )
        except sqlite3.IntegrityError as e:
            raise DuplicateItem(record.user_id, record.item_id) from e
        logger.debug(f"Added {record.item_id} for {record.user_id}")
        return record

    async def save(self, record: CardRecord, expected_version: int) -> CardRecord:
        state = record.state
        new_version = expected_version + 1
        with self._connect() as conn:
            cursor = conn.execute(
                "UPDATE cards SET ease_factor = ?, interval = ?, repetitions = ?, "
                "next_review_at = ?, last_reviewed_at = ?, version = ? "
                "WHERE user_id = ? AND item_id = ? AND version = ?",
                (
                    state.ease_factor,
                    state.interval,
                    state.repetitions,
                    state.next_review_at.isoformat(),
                    state.last_reviewed_at.isoformat() if state.last_reviewed_at else None,
                    new_version,
                    record.user_id,
                    record.item_id,
                    expected_version,
                ),
            )
            if cursor.rowcount == 0:
                row = conn.execute(
                    "SELECT version FROM cards WHERE user_id = ? AND item_id = ?",
                    (record.user_id, record.item_id),
                ).fetchone()
                if row is None:
                    raise ItemNotFound(record.user_id, record.item_id)
                raise VersionConflict(record.item_id, expected_version, row["version"])

        return replace(record, version=new_version)

    async def delete(self, user_id: str, item_id: str) -> bool:
        with self._connect() as conn:
            cursor = conn.execute(
                "DELETE FROM cards WHERE user_id = ? AND item_id = ?",
                (user_id, item_id),
            )
            deleted = cursor.rowcount > 0
        return deleted
