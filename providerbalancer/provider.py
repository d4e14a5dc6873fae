"""Provider model: one candidate backend as seen by a selection strategy."""

from __future__ import annotations

from dataclasses import dataclass, field

from providerbalancer.errors import InvalidInputError


@dataclass(frozen=True, slots=True)
class Provider:
    """Snapshot of a candidate backend.

    Providers are supplied fresh by the caller on every selection and are
    never mutated by a strategy. Routing identity is ``(host, port)``;
    ``interface_name`` groups providers of the same logical service and keys
    the round-robin cursors.

    Attributes:
        host: Host name or IP address.
        port: TCP port.
        interface_name: Logical service the provider belongs to.
        methods: Method names the provider exposes.
        application: Owning application name.
        weight: Relative share for weighted strategies, a plain int. Zero
            means the provider is never picked by a weighted strategy;
            negative values are rejected when a weighted strategy reads them.
        observed_latency: Latest call-time measurement, refreshed by the
            caller. Read by LeastLoaded.
    """

    host: str
    port: int
    interface_name: str = ""
    methods: frozenset[str] = field(default_factory=frozenset)
    application: str = ""
    weight: int = 1
    observed_latency: int = 0

    def __post_init__(self) -> None:
        for name in ("port", "weight", "observed_latency"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise InvalidInputError(f"{name} must be an int, got {value!r}")
        if self.observed_latency < 0:
            raise InvalidInputError(
                f"observed_latency must be >= 0, got {self.observed_latency}"
            )
        if not isinstance(self.methods, frozenset):
            object.__setattr__(self, "methods", frozenset(self.methods))

    @property
    def address(self) -> str:
        """Routing identity formatted as ``host:port``."""
        return f"{self.host}:{self.port}"
