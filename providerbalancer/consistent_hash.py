"""Consistent hashing with virtual nodes.

Each provider is placed on a ring of 31-bit positions several times (its
virtual nodes). A routing key is hashed onto the same ring and served by
the first provider at or after that position, wrapping to the lowest
position past the top. Removing a provider only moves the keys that
landed on its own virtual nodes; every other key keeps its provider.

The ring is rebuilt from the candidate list on every call, so it always
reflects the live membership and no ring state is shared between callers.

Example:
    ch = ConsistentHash(virtual_nodes=5)
    ch.select(providers, routing_key="session-42")

    ring = ch.build_ring(providers)
    ring.locate(123456)
"""

from __future__ import annotations

import bisect
import logging
import random
from collections.abc import Iterator, Sequence

from providerbalancer.errors import InvalidInputError
from providerbalancer.hashing import HashFunction, fnv1a_mixed, normalize
from providerbalancer.provider import Provider
from providerbalancer.strategies import require_candidates

logger = logging.getLogger(__name__)

DEFAULT_VIRTUAL_NODES = 5


def virtual_node_key(provider: Provider, replica: int) -> str:
    """Ring label of one virtual node, e.g. ``10.0.0.1:8080&&node3``."""
    return f"{provider.host}:{provider.port}&&node{replica}"


class HashRing:
    """Immutable sorted ring of ``(position, provider)`` entries.

    Positions that collide keep the provider inserted last.
    """

    __slots__ = ("_keys", "_owners")

    def __init__(self, entries: dict[int, Provider]):
        self._keys = sorted(entries)
        self._owners = [entries[k] for k in self._keys]

    @property
    def keys(self) -> list[int]:
        return list(self._keys)

    def locate(self, position: int) -> Provider:
        """Provider owning the first ring position >= position.

        Wraps to the lowest position when position is past the last one.
        """
        if not self._keys:
            raise InvalidInputError("Hash ring is empty")
        index = bisect.bisect_left(self._keys, position)
        if index == len(self._keys):
            index = 0
        return self._owners[index]

    def entry(self, index: int) -> tuple[int, Provider]:
        return self._keys[index], self._owners[index]

    def providers(self) -> set[Provider]:
        return set(self._owners)

    def __len__(self) -> int:
        return len(self._keys)

    def __iter__(self) -> Iterator[tuple[int, Provider]]:
        return iter(zip(self._keys, self._owners, strict=True))


class ConsistentHash:
    """Route equal keys to the same provider across membership changes.

    Args:
        virtual_nodes: Ring positions per provider. More positions smooth
            the key distribution at the cost of a larger ring.
        hash_function: Maps a string to an int in ``[0, 2**31 - 1]``.
            Values outside that range are masked into it.
        seed: Seed for the generator used when no routing key is given.

    Raises:
        ValueError: If virtual_nodes < 1.
    """

    def __init__(
        self,
        virtual_nodes: int = DEFAULT_VIRTUAL_NODES,
        hash_function: HashFunction = fnv1a_mixed,
        seed: int | None = None,
    ):
        if virtual_nodes < 1:
            raise ValueError(f"virtual_nodes must be >= 1, got {virtual_nodes}")
        self._virtual_nodes = virtual_nodes
        self._hash = hash_function
        self._rng = random.Random(seed)

    @property
    def virtual_nodes(self) -> int:
        return self._virtual_nodes

    @property
    def hash_function(self) -> HashFunction:
        return self._hash

    def hash_key(self, key: str) -> int:
        """Ring position of key.

        Raises:
            InvalidInputError: If the hash function fails on key, whatever
                it raises.
        """
        try:
            return normalize(self._hash(key))
        except InvalidInputError:
            raise
        except Exception as exc:
            raise InvalidInputError(f"Cannot hash key {key!r:.80}: {exc}") from exc

    def build_ring(self, candidates: Sequence[Provider]) -> HashRing:
        """Place every candidate's virtual nodes on a fresh ring."""
        require_candidates(candidates)
        entries: dict[int, Provider] = {}
        for provider in candidates:
            for replica in range(self._virtual_nodes):
                entries[self.hash_key(virtual_node_key(provider, replica))] = provider
        return HashRing(entries)

    def select(
        self,
        candidates: Sequence[Provider],
        routing_key: str | None = None,
    ) -> Provider:
        ring = self.build_ring(candidates)
        if routing_key is None:
            # No affinity requested: any ring entry will do
            _, provider = ring.entry(self._rng.randrange(len(ring)))
            logger.debug("No routing key; picked %s at random", provider.address)
            return provider
        position = self.hash_key(routing_key)
        provider = ring.locate(position)
        logger.debug(
            "Routing key hash %d -> %s (ring size %d)", position, provider.address, len(ring)
        )
        return provider
