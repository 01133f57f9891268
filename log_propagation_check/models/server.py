"""Models for provisioned servers in a deployment."""

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Literal

ServerState = Literal["unprovisioned", "launching", "operational", "failed"]

Transport = Literal["udp", "tcp", "relp", "relp-secured"]


@dataclass(frozen=True, kw_only=True)
class ServerHandle:
    """Snapshot of one server as last reported by the deployment provider.

    A handle is never refreshed in place: the lifecycle re-queries the
    provider and works with the returned snapshot instead.
    """

    id: str
    name: str
    state: ServerState = "unprovisioned"
    private_address: str | None = None
    reachable_address: str | None = None
    inputs: Mapping[str, str] = field(default_factory=dict)
    href: str | None = None

    @property
    def forwarding_address(self) -> str | None:
        """Address other servers should use to reach this one."""
        return self.private_address or self.reachable_address
