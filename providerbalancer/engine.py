"""Engine facade: the single entry point callers use to pick a provider.

The engine holds one strategy and forwards every selection to it. The
strategy can be swapped at any time; callers only ever talk to the engine.

Example:
    from providerbalancer import ConsistentHash, Provider, SelectionEngine

    engine = SelectionEngine(ConsistentHash(virtual_nodes=5))
    provider = engine.select(providers, routing_key="user-17")
"""

from __future__ import annotations

import logging
import threading
from collections import Counter
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from providerbalancer.errors import InvalidInputError
from providerbalancer.provider import Provider
from providerbalancer.strategies import RoundRobin, SelectionStrategy

if TYPE_CHECKING:
    from providerbalancer.config import EngineConfig

logger = logging.getLogger(__name__)


@dataclass
class EngineStats:
    """Counters kept by SelectionEngine.

    Attributes:
        selections: Successful selections.
        failures: Selections that raised InvalidInputError.
        per_provider: Successful selections keyed by provider address.
    """

    selections: int = 0
    failures: int = 0
    per_provider: Counter[str] = field(default_factory=Counter)


class SelectionEngine:
    """Holds a selection strategy and delegates to it.

    Args:
        strategy: Any object implementing SelectionStrategy.
    """

    def __init__(self, strategy: SelectionStrategy):
        self._strategy = self._check(strategy)
        self._stats = EngineStats()
        self._stats_lock = threading.Lock()

    @classmethod
    def from_config(cls, config: EngineConfig) -> SelectionEngine:
        """Build an engine whose strategy is described by config."""
        from providerbalancer.config import build_strategy

        return cls(build_strategy(config))

    @staticmethod
    def _check(strategy: SelectionStrategy) -> SelectionStrategy:
        if not isinstance(strategy, SelectionStrategy):
            raise TypeError(f"{type(strategy).__name__} does not implement select()")
        return strategy

    @property
    def strategy(self) -> SelectionStrategy:
        return self._strategy

    @strategy.setter
    def strategy(self, strategy: SelectionStrategy) -> None:
        self._strategy = self._check(strategy)
        logger.info("Switched strategy to %s", type(strategy).__name__)

    @property
    def stats(self) -> EngineStats:
        """Snapshot of the engine counters."""
        with self._stats_lock:
            return EngineStats(
                selections=self._stats.selections,
                failures=self._stats.failures,
                per_provider=Counter(self._stats.per_provider),
            )

    def select(
        self,
        candidates: Sequence[Provider],
        routing_key: str | None = None,
        *,
        group: str | None = None,
    ) -> Provider:
        """Choose one provider with the current strategy.

        Args:
            candidates: Providers to choose from.
            routing_key: Affinity key, used by consistent hashing.
            group: Cursor group for the round-robin strategies. Needed to
                discard a group's cursor when its list becomes empty;
                ignored by every other strategy.

        Raises:
            InvalidInputError: Propagated from the strategy.
            StaleCursorError: If group is tracked and candidates is empty.
        """
        strategy = self._strategy
        try:
            if group is not None and isinstance(strategy, RoundRobin):
                provider = strategy.select(candidates, routing_key, group=group)
            else:
                provider = strategy.select(candidates, routing_key)
        except InvalidInputError as exc:
            with self._stats_lock:
                self._stats.failures += 1
            logger.debug("%s failed: %s", type(strategy).__name__, exc)
            raise
        with self._stats_lock:
            self._stats.selections += 1
            self._stats.per_provider[provider.address] += 1
        logger.debug(
            "%s selected %s from %d candidates",
            type(strategy).__name__,
            provider.address,
            len(candidates),
        )
        return provider

    def reset_stats(self) -> None:
        with self._stats_lock:
            self._stats = EngineStats()
