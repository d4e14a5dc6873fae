"""Provider selection strategies for request routers and RPC clients.

Pick one backend per request with a swappable strategy:

    from providerbalancer import Provider, RoundRobin, SelectionEngine

    providers = [Provider("10.0.0.1", 8080, "orders"), Provider("10.0.0.2", 8080, "orders")]
    engine = SelectionEngine(RoundRobin())
    engine.select(providers)
"""

import logging

from providerbalancer.config import STRATEGIES, EngineConfig, build_strategy, create_strategy
from providerbalancer.consistent_hash import ConsistentHash, HashRing
from providerbalancer.engine import EngineStats, SelectionEngine
from providerbalancer.errors import (
    InvalidInputError,
    MisconfiguredWeightError,
    StaleCursorError,
)
from providerbalancer.logging_config import (
    configure_from_env,
    disable_logging,
    enable_console_logging,
    enable_file_logging,
    enable_json_logging,
    set_level,
    set_module_level,
)
from providerbalancer.provider import Provider
from providerbalancer.strategies import (
    LeastLoaded,
    Random,
    RoundRobin,
    SelectionStrategy,
    WeightedRandom,
    WeightedRoundRobin,
)

logging.getLogger(__name__).addHandler(logging.NullHandler())

__version__ = "0.1.0"

__all__ = [
    "STRATEGIES",
    "ConsistentHash",
    "EngineConfig",
    "EngineStats",
    "HashRing",
    "InvalidInputError",
    "LeastLoaded",
    "MisconfiguredWeightError",
    "Provider",
    "Random",
    "RoundRobin",
    "SelectionEngine",
    "SelectionStrategy",
    "StaleCursorError",
    "WeightedRandom",
    "WeightedRoundRobin",
    "build_strategy",
    "configure_from_env",
    "create_strategy",
    "disable_logging",
    "enable_console_logging",
    "enable_file_logging",
    "enable_json_logging",
    "set_level",
    "set_module_level",
]
