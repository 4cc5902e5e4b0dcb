"""
Ports (interfaces) for card persistence.

These define the contract that infrastructure adapters must implement.
Application services depend on these abstractions, not concrete implementations.
"""

from abc import ABC, abstractmethod

from .models import CardRecord, ItemKind


class CardStore(ABC):
    """
    Port for reading and writing card records.

    Implementations:
        - InMemoryCardStore: Process-local dict, used for tests and one-off runs.
        - SqliteCardStore: A single SQLite file.

    Writes are read-modify-write atomic per item: `save` must reject a record
    whose `expected_version` no longer matches what is stored.
    """

    @abstractmethod
    async def get(self, user_id: str, item_id: str) -> CardRecord | None:
        """Return the user's record for `item_id`, or None if not enrolled."""
        pass

    @abstractmethod
    async def list(
        self,
        user_id: str,
        language: str | None = None,
        kind: ItemKind | None = None,
    ) -> list[CardRecord]:
        """
        Return every record for the user, optionally scoped.

        Records come back in insertion order so that downstream stable sorts
        stay deterministic.
        """
        pass

    @abstractmethod
    async def add(self, record: CardRecord) -> CardRecord:
        """
        Insert a new record.

        Raises:
            DuplicateItem: if the user already has a record for the item.
        """
        pass

    @abstractmethod
    async def save(self, record: CardRecord, expected_version: int) -> CardRecord:
        """
        Overwrite an existing record if its stored version equals `expected_version`.

        Returns:
            The stored record, with `version` incremented.

        Raises:
            ItemNotFound: if there is no record to overwrite.
            VersionConflict: if another writer got there first.
        """
        pass

    @abstractmethod
    async def delete(self, user_id: str, item_id: str) -> bool:
        """Remove a record. Returns False if nothing was stored."""
        pass
