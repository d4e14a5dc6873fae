"""Exceptions raised by selection strategies.

All errors subclass ``ValueError`` so callers that already guard strategy
calls with ``except ValueError`` keep working.

Hierarchy:
- InvalidInputError: the call cannot produce a provider (empty candidate
  list, no positive weight, routing key the hash function rejects)
- MisconfiguredWeightError: a candidate carries a negative weight
- StaleCursorError: a tracked round-robin group was handed an empty list;
  its cursor has been discarded
"""

from __future__ import annotations


class InvalidInputError(ValueError):
    """Raised when a selection cannot be made from the given input."""


class MisconfiguredWeightError(InvalidInputError):
    """Raised when a candidate has a negative weight."""

    def __init__(self, address: str, weight: int):
        super().__init__(f"Provider {address} has negative weight {weight}")
        self.address = address
        self.weight = weight


class StaleCursorError(InvalidInputError):
    """Raised when a tracked round-robin group has no candidates left."""

    def __init__(self, group: str):
        super().__init__(f"Group {group!r} has no candidates; cursor discarded")
        self.group = group
