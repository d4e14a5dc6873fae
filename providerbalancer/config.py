"""Engine configuration and the strategy registry.

Strategies can be built by name, either directly with create_strategy() or
from an EngineConfig, which can itself be read from the environment.

Environment variables:
    PB_STRATEGY: Strategy name (default "round_robin")
    PB_VIRTUAL_NODES: Virtual nodes per provider for consistent_hash
    PB_HASH_FUNCTION: Hash function name for consistent_hash
    PB_SEED: Integer seed for the random strategies

Example:
    engine = SelectionEngine.from_config(EngineConfig.from_env())
"""

from __future__ import annotations

import logging
import os
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any

from providerbalancer.consistent_hash import DEFAULT_VIRTUAL_NODES, ConsistentHash
from providerbalancer.hashing import HASH_FUNCTIONS, get_hash_function
from providerbalancer.strategies import (
    LeastLoaded,
    Random,
    RoundRobin,
    SelectionStrategy,
    WeightedRandom,
    WeightedRoundRobin,
)

logger = logging.getLogger(__name__)

STRATEGIES: dict[str, Callable[..., SelectionStrategy]] = {
    "random": Random,
    "weighted_random": WeightedRandom,
    "round_robin": RoundRobin,
    "weighted_round_robin": WeightedRoundRobin,
    "least_loaded": LeastLoaded,
    "consistent_hash": ConsistentHash,
}


@dataclass(frozen=True)
class EngineConfig:
    """Which strategy to build and how.

    Attributes:
        strategy: Registry name, see STRATEGIES.
        virtual_nodes: Virtual nodes per provider (consistent_hash only).
        hash_function: Registry name from hashing.HASH_FUNCTIONS
            (consistent_hash only).
        seed: Seed for strategies that draw random numbers.
    """

    strategy: str = "round_robin"
    virtual_nodes: int = DEFAULT_VIRTUAL_NODES
    hash_function: str = "fnv1a_mixed"
    seed: int | None = None

    def __post_init__(self) -> None:
        if self.strategy not in STRATEGIES:
            known = ", ".join(sorted(STRATEGIES))
            raise ValueError(f"Unknown strategy {self.strategy!r}; expected one of: {known}")
        if self.virtual_nodes < 1:
            raise ValueError(f"virtual_nodes must be >= 1, got {self.virtual_nodes}")
        if self.hash_function.lower() not in HASH_FUNCTIONS:
            known = ", ".join(sorted(HASH_FUNCTIONS))
            raise ValueError(
                f"Unknown hash function {self.hash_function!r}; expected one of: {known}"
            )

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> EngineConfig:
        """Read PB_* variables, falling back to defaults for unset ones.

        Raises:
            ValueError: If a variable holds an invalid value.
        """
        env = os.environ if environ is None else environ
        kwargs: dict[str, Any] = {}
        if env.get("PB_STRATEGY"):
            kwargs["strategy"] = env["PB_STRATEGY"].strip().lower()
        if env.get("PB_VIRTUAL_NODES"):
            kwargs["virtual_nodes"] = _parse_int("PB_VIRTUAL_NODES", env["PB_VIRTUAL_NODES"])
        if env.get("PB_HASH_FUNCTION"):
            kwargs["hash_function"] = env["PB_HASH_FUNCTION"].strip().lower()
        if env.get("PB_SEED"):
            kwargs["seed"] = _parse_int("PB_SEED", env["PB_SEED"])
        return cls(**kwargs)


def _parse_int(name: str, raw: str) -> int:
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None


def create_strategy(name: str, **options: Any) -> SelectionStrategy:
    """Instantiate a registered strategy.

    Args:
        name: Registry name, e.g. "weighted_random".
        **options: Passed to the strategy constructor.

    Raises:
        ValueError: If name is not registered.
    """
    try:
        factory = STRATEGIES[name]
    except KeyError:
        known = ", ".join(sorted(STRATEGIES))
        raise ValueError(f"Unknown strategy {name!r}; expected one of: {known}") from None
    return factory(**options)


def build_strategy(config: EngineConfig) -> SelectionStrategy:
    """Instantiate the strategy config describes."""
    if config.strategy == "consistent_hash":
        options: dict[str, Any] = {
            "virtual_nodes": config.virtual_nodes,
            "hash_function": get_hash_function(config.hash_function),
            "seed": config.seed,
        }
    elif config.strategy in ("random", "weighted_random"):
        options = {"seed": config.seed}
    else:
        options = {}
    logger.info("Building %s strategy", config.strategy)
    return create_strategy(config.strategy, **options)
