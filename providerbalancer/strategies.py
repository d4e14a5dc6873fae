"""Selection strategies for choosing one provider per request.

Every strategy implements the SelectionStrategy protocol: given the current
candidate list and an optional routing key, return exactly one candidate.
Strategies never mutate the candidates and never keep a reference to the
list past the call.

Available strategies:
- Random: uniform choice
- WeightedRandom: choice proportional to Provider.weight
- RoundRobin: per-group rotation in input order
- WeightedRoundRobin: per-group rotation over the weight-expanded list
- LeastLoaded: lowest Provider.observed_latency, first on ties
- ConsistentHash: routing-key affinity over a virtual-node hash ring
  (see providerbalancer.consistent_hash)
"""

from __future__ import annotations

import bisect
import logging
import random
from collections.abc import Sequence
from typing import Protocol, runtime_checkable

from providerbalancer.cursors import CursorTable
from providerbalancer.errors import (
    InvalidInputError,
    MisconfiguredWeightError,
    StaleCursorError,
)
from providerbalancer.provider import Provider

logger = logging.getLogger(__name__)


@runtime_checkable
class SelectionStrategy(Protocol):
    """Protocol for provider selection algorithms."""

    def select(
        self,
        candidates: Sequence[Provider],
        routing_key: str | None = None,
    ) -> Provider:
        """Choose one provider.

        Args:
            candidates: Non-empty list of providers to choose from.
            routing_key: Affinity key. Only consistent hashing uses it.

        Returns:
            One element of candidates.

        Raises:
            InvalidInputError: If candidates is empty or no candidate is
                eligible.
        """
        ...


def require_candidates(candidates: Sequence[Provider]) -> None:
    """Raise InvalidInputError if there is nothing to choose from."""
    if not candidates:
        raise InvalidInputError("No candidates to select from")


def cumulative_weights(candidates: Sequence[Provider]) -> list[int]:
    """Running totals of candidate weights.

    Position ``p`` of the conceptual weight-expanded list (each candidate
    repeated ``weight`` times) belongs to ``bisect_right(totals, p)``.

    Raises:
        MisconfiguredWeightError: If any weight is negative.
    """
    totals = []
    running = 0
    for provider in candidates:
        if provider.weight < 0:
            raise MisconfiguredWeightError(provider.address, provider.weight)
        running += provider.weight
        totals.append(running)
    return totals


class Random:
    """Uniform random selection.

    Args:
        seed: Seed for a private random generator. If None, the generator
            is seeded from system entropy.
    """

    def __init__(self, seed: int | None = None):
        self._rng = random.Random(seed)

    def select(
        self,
        candidates: Sequence[Provider],
        routing_key: str | None = None,
    ) -> Provider:
        require_candidates(candidates)
        return candidates[self._rng.randrange(len(candidates))]


class WeightedRandom:
    """Random selection with probability proportional to weight.

    Equivalent to a uniform draw from the list where each provider appears
    ``weight`` times, without building that list. Weight 0 providers are
    never chosen.

    Args:
        seed: Seed for a private random generator.
    """

    def __init__(self, seed: int | None = None):
        self._rng = random.Random(seed)

    def select(
        self,
        candidates: Sequence[Provider],
        routing_key: str | None = None,
    ) -> Provider:
        require_candidates(candidates)
        totals = cumulative_weights(candidates)
        if totals[-1] == 0:
            raise InvalidInputError("All candidates have weight 0")
        point = self._rng.randrange(totals[-1])
        return candidates[bisect.bisect_right(totals, point)]


class RoundRobin:
    """Rotate through candidates, one cursor per group.

    The group is the first candidate's ``interface_name`` unless ``group`` is
    passed explicitly. Callers must hand in each group's providers in a
    stable order; a reordered or partial list moves the rotation
    unpredictably.

    Example:
        rr = RoundRobin()
        rr.select([p0, p1, p2])  # p0
        rr.select([p0, p1, p2])  # p1
    """

    def __init__(self):
        self._cursors = CursorTable()

    def select(
        self,
        candidates: Sequence[Provider],
        routing_key: str | None = None,
        *,
        group: str | None = None,
    ) -> Provider:
        if not candidates:
            self._fail_empty(group)
        key = candidates[0].interface_name if group is None else group
        index = self._cursors.advance(key, len(candidates))
        return candidates[index]

    def _fail_empty(self, group: str | None) -> None:
        if group is not None and self._cursors.discard(group):
            raise StaleCursorError(group)
        raise InvalidInputError("No candidates to select from")

    def cursor(self, group: str) -> int | None:
        """Index last returned for group, or None if untracked."""
        return self._cursors.get(group)

    def reset(self, group: str | None = None) -> None:
        """Forget one group's cursor, or every cursor if group is None."""
        if group is None:
            self._cursors.clear()
        else:
            self._cursors.discard(group)


class WeightedRoundRobin(RoundRobin):
    """Round-robin over the weight-expanded candidate list.

    A provider with weight 3 occupies three consecutive positions of the
    rotation. The expansion is recomputed on every call and the cursor
    wraps at its current length, so changing weights or membership between
    calls can skip or repeat a position.
    """

    def select(
        self,
        candidates: Sequence[Provider],
        routing_key: str | None = None,
        *,
        group: str | None = None,
    ) -> Provider:
        if not candidates:
            self._fail_empty(group)
        key = candidates[0].interface_name if group is None else group
        totals = cumulative_weights(candidates)
        if totals[-1] == 0:
            if self._cursors.discard(key):
                raise StaleCursorError(key)
            raise InvalidInputError("All candidates have weight 0")
        position = self._cursors.advance(key, totals[-1])
        return candidates[bisect.bisect_right(totals, position)]


class LeastLoaded:
    """Pick the provider with the lowest observed latency.

    Ties go to the earliest provider in input order. ``observed_latency`` is
    maintained by the caller; this strategy only reads it.
    """

    def select(
        self,
        candidates: Sequence[Provider],
        routing_key: str | None = None,
    ) -> Provider:
        require_candidates(candidates)
        # min() keeps the first of equal keys
        return min(candidates, key=lambda p: p.observed_latency)
