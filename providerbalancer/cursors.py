"""Per-group round-robin cursors.

A CursorTable maps a group key to the index last handed out for that
group. Each group has its own lock, so advancing one group's cursor is a
single atomic read-modify-write and unrelated groups never wait on each
other. The table lock is only held to create or discard a group entry.
"""

from __future__ import annotations

import logging
import threading

logger = logging.getLogger(__name__)


class _Cursor:
    __slots__ = ("index", "lock")

    def __init__(self) -> None:
        self.index: int | None = None
        self.lock = threading.Lock()


class CursorTable:
    """Thread-safe mapping of group key to last selected index."""

    def __init__(self) -> None:
        self._cursors: dict[str, _Cursor] = {}
        self._lock = threading.Lock()

    def _entry(self, group: str) -> _Cursor:
        with self._lock:
            cursor = self._cursors.get(group)
            if cursor is None:
                cursor = _Cursor()
                self._cursors[group] = cursor
            return cursor

    def advance(self, group: str, size: int) -> int:
        """Move the group's cursor one step and return the new index.

        The first call for a group returns 0; later calls return
        ``(previous + 1) % size``.

        Args:
            group: Group key.
            size: Number of positions currently in rotation. Must be >= 1.
        """
        if size < 1:
            raise ValueError(f"size must be >= 1, got {size}")
        cursor = self._entry(group)
        with cursor.lock:
            if cursor.index is None:
                cursor.index = 0
                logger.debug("Started cursor for group %r", group)
            else:
                cursor.index = (cursor.index + 1) % size
            return cursor.index

    def discard(self, group: str) -> bool:
        """Forget a group's cursor. Returns True if one was tracked."""
        with self._lock:
            removed = self._cursors.pop(group, None) is not None
        if removed:
            logger.debug("Discarded cursor for group %r", group)
        return removed

    def get(self, group: str) -> int | None:
        """Current index for group, or None if the group is not tracked."""
        with self._lock:
            cursor = self._cursors.get(group)
        if cursor is None:
            return None
        with cursor.lock:
            return cursor.index

    def clear(self) -> None:
        with self._lock:
            self._cursors.clear()

    def __contains__(self, group: object) -> bool:
        with self._lock:
            return group in self._cursors

    def __len__(self) -> int:
        with self._lock:
            return len(self._cursors)
