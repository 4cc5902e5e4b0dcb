# Infrastructure Store Adapters Package
from .memory import InMemoryCardStore
from .sqlite import SqliteCardStore

__all__ = ["InMemoryCardStore", "SqliteCardStore"]
