"""Abstract base class for deployment platform providers."""

from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass

from log_propagation_check.models.server import ServerHandle


@dataclass(frozen=True, kw_only=True)
class DeploymentProvider(ABC):
    """Abstract base for platforms that host the servers under test.

    The provider owns server state. Callers hold snapshots and ask the
    provider again whenever they need the current state.
    """

    @abstractmethod
    async def list_servers(self, deployment_id: str) -> Sequence[ServerHandle]:
        """Return every server currently in the deployment.

        Args:
            deployment_id: Platform identifier of the deployment

        Returns:
            Server snapshots in the platform's own order

        """

    @abstractmethod
    async def get_server(self, handle: ServerHandle) -> ServerHandle:
        """Return a fresh snapshot of the given server."""

    @abstractmethod
    async def set_input(self, handle: ServerHandle, key: str, value: str) -> None:
        """Set a configuration input used by the server's next launch.

        Args:
            handle: Server to configure, must not be launched yet
            key: Input name (e.g., "logging/protocol")
            value: Plain input value, the provider applies any type prefix

        """

    @abstractmethod
    async def launch(self, handle: ServerHandle) -> None:
        """Request a server launch without waiting for it to boot."""

    @abstractmethod
    async def terminate(self, handle: ServerHandle) -> None:
        """Request a server termination without waiting for it."""

    @abstractmethod
    async def check_monitoring(self, handle: ServerHandle) -> None:
        """Assert the server reports monitoring data.

        Raises:
            MonitoringCheckError: If no monitoring data is available

        """


@dataclass(frozen=True, kw_only=True)
class DeploymentContext:
    """The deployment a check runs against."""

    provider: DeploymentProvider
    deployment_id: str
