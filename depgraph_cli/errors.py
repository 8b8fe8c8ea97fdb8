"""Exceptions raised by the extraction engine and the change coordinator."""

from __future__ import annotations


class DepGraphError(Exception):
    """Base class for every error surfaced to callers."""


class InputError(DepGraphError):
    """The requested root is missing, unreadable, or not a directory."""


class CapacityError(DepGraphError):
    """The scan saw more files than the configured maximum."""

    def __init__(self, limit: int) -> None:
        self.limit = limit
        super().__init__(
            f"File limit exceeded ({limit}). Adjust the max files setting to continue."
        )


class WatchError(DepGraphError):
    """The underlying watch primitive failed for one root."""

    def __init__(self, root: str, reason: str) -> None:
        self.root = root
        super().__init__(f"Watching '{root}' failed: {reason}")
