"""
Exception hierarchy for lingosrs.

Scheduling errors signal caller bugs (bad quality, corrupt state) and are
never repaired silently. Store errors belong to the persistence collaborator.
"""

from typing import Any


class LingoSrsError(Exception):
    """Base class for every error raised by lingosrs."""


# ---------- Scheduling ----------


class SchedulingError(LingoSrsError):
    """Raised when the scheduler is called with invariant-violating input."""


class InvalidQuality(SchedulingError):
    def __init__(self, quality: Any):
        self.quality = quality
        super().__init__(f"Quality must be an integer in [0, 5], got {quality!r}")


class InvalidState(SchedulingError):
    def __init__(self, field: str, value: Any, reason: str):
        self.field = field
        self.value = value
        super().__init__(f"Invalid review state: {field}={value!r} ({reason})")


# ---------- Store ----------


class StoreError(LingoSrsError):
    """Raised by card store adapters."""


class ItemNotFound(StoreError):
    def __init__(self, user_id: str, item_id: str):
        self.user_id = user_id
        self.item_id = item_id
        super().__init__(f"No card '{item_id}' for user '{user_id}'")


class DuplicateItem(StoreError):
    def __init__(self, user_id: str, item_id: str):
        self.user_id = user_id
        self.item_id = item_id
        super().__init__(f"Card '{item_id}' already exists for user '{user_id}'")


class VersionConflict(StoreError):
    """The stored record changed between read and write."""

    def __init__(self, item_id: str, expected: int, actual: int | None):
        self.item_id = item_id
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Version conflict on '{item_id}': expected {expected}, found {actual}"
        )
