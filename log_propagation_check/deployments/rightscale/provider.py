"""RightScale provider implementation."""

import logging
from collections.abc import AsyncGenerator, Mapping, Sequence
from contextlib import asynccontextmanager
from dataclasses import dataclass, field, replace

import aiohttp
from pydantic import SecretStr

from log_propagation_check.deployments.base import DeploymentProvider
from log_propagation_check.deployments.rightscale.config import RightScaleConfig
from log_propagation_check.deployments.rightscale.models import (
    AccessToken,
    MonitoringMetric,
    Server,
)
from log_propagation_check.errors import DeploymentApiError, MonitoringCheckError
from log_propagation_check.models.server import ServerHandle, ServerState

log = logging.getLogger(__name__)

STATE_TO_LIFECYCLE: Mapping[str, ServerState] = {
    "inactive": "unprovisioned",
    "terminated": "unprovisioned",
    "stopped": "unprovisioned",
    "queued": "launching",
    "pending": "launching",
    "provisioned": "launching",
    "booting": "launching",
    "decommissioning": "launching",
    "terminating": "launching",
    "shutting-down": "launching",
    "operational": "operational",
    "stranded": "failed",
    "stranded in booting": "failed",
}

# servers reporting these after a launch request died while booting
DIED_AFTER_LAUNCH = frozenset(["terminated", "stopped"])

SUCCESS_STATUSES = frozenset([200, 201, 202, 204])


async def fetch_access_token(
    session: aiohttp.ClientSession, config: RightScaleConfig
) -> SecretStr:
    """Exchange the refresh token for a short-lived access token."""
    payload = {
        "grant_type": "refresh_token",
        "refresh_token": config.refresh_token.get_secret_value(),
    }
    async with session.post("/api/oauth2", data=payload) as response:
        if response.status != 200:
            text = await response.text()
            raise DeploymentApiError(
                f"Failed to authenticate: {response.status} {text}"
            )
        data = await response.json()

    token = AccessToken.model_validate(data)
    log.info("Authenticated against %s", config.api_base_url)
    return SecretStr(token.access_token)


def to_handle(server: Server, launched: bool = False) -> ServerHandle:
    """Convert an API server resource into a lifecycle snapshot.

    Args:
        server: Server resource with instance details
        launched: Whether a launch was requested and not yet terminated

    """
    state = STATE_TO_LIFECYCLE.get(server.state)
    if state is None:
        log.warning("Unknown server state %r, treating as launching", server.state)
        state = "launching"
    if launched and server.state in DIED_AFTER_LAUNCH:
        state = "failed"

    instance = server.current_instance
    private_address = None
    reachable_address = None
    if instance is not None:
        if instance.private_ip_addresses:
            private_address = instance.private_ip_addresses[0]
        if instance.public_ip_addresses:
            reachable_address = instance.public_ip_addresses[0]
        elif private_address:
            reachable_address = private_address

    return ServerHandle(
        id=server.server_id,
        name=server.name,
        state=state,
        private_address=private_address,
        reachable_address=reachable_address,
        href=server.link("self"),
    )


@dataclass(frozen=True, kw_only=True)
class RightScaleProvider(DeploymentProvider):
    """RightScale deployment provider.

    Server inputs are applied to the next instance, so they must be set
    before the server is launched.
    """

    config: RightScaleConfig
    session: aiohttp.ClientSession = field(repr=False)
    access_token: SecretStr = field(repr=False)
    _launched: set[str] = field(default_factory=set, repr=False)

    @classmethod
    @asynccontextmanager
    async def from_config(
        cls, config: RightScaleConfig
    ) -> AsyncGenerator["RightScaleProvider", None]:
        """Create provider with managed session lifecycle."""
        headers = {
            "X-API-Version": config.api_version,
            "X-Account": config.account_id,
        }
        async with aiohttp.ClientSession(
            base_url=config.api_base_url,
            headers=headers,
        ) as session:
            access_token = await fetch_access_token(session, config)
            yield cls(config=config, session=session, access_token=access_token)

    @property
    def auth_headers(self) -> Mapping[str, str]:
        """Authorization header for API calls."""
        return {"Authorization": f"Bearer {self.access_token.get_secret_value()}"}

    async def list_servers(self, deployment_id: str) -> Sequence[ServerHandle]:
        """List servers in a deployment with their instance details."""
        url = f"/api/deployments/{deployment_id}/servers"
        params = {"view": "instance_detail"}

        async with self.session.get(
            url, params=params, headers=self.auth_headers
        ) as response:
            if response.status != 200:
                text = await response.text()
                raise DeploymentApiError(
                    f"Failed to list servers: {response.status} {text}"
                )
            data = await response.json()

        servers = [Server.model_validate(item) for item in data]
        log.info(
            "Deployment %s has %d server(s): %s",
            deployment_id,
            len(servers),
            ", ".join(server.name for server in servers),
        )
        return [
            to_handle(server, launched=server.server_id in self._launched)
            for server in servers
        ]

    async def get_server(self, handle: ServerHandle) -> ServerHandle:
        """Fetch the current state of a server."""
        server = await self.fetch_server(handle.id)
        snapshot = to_handle(server, launched=handle.id in self._launched)
        return replace(snapshot, inputs=handle.inputs)

    async def fetch_server(self, server_id: str) -> Server:
        """Get a server resource by ID."""
        url = f"/api/servers/{server_id}"
        params = {"view": "instance_detail"}

        async with self.session.get(
            url, params=params, headers=self.auth_headers
        ) as response:
            if response.status != 200:
                text = await response.text()
                raise DeploymentApiError(
                    f"Failed to get server {server_id}: {response.status} {text}"
                )
            data = await response.json()

        return Server.model_validate(data)

    async def set_input(self, handle: ServerHandle, key: str, value: str) -> None:
        """Set a text input on the server's next instance."""
        server = await self.fetch_server(handle.id)
        next_instance = server.link("next_instance")
        if next_instance is None:
            raise DeploymentApiError(f"Server {handle.id} has no next instance")

        url = f"{next_instance}/inputs/multi_update"
        payload = {f"inputs[{key}]": f"text:{value}"}

        log.info("Setting input %s=%s on server %s", key, value, handle.name)
        async with self.session.put(
            url, data=payload, headers=self.auth_headers
        ) as response:
            if response.status not in SUCCESS_STATUSES:
                text = await response.text()
                raise DeploymentApiError(
                    f"Failed to set input {key} on server {handle.id}: "
                    f"{response.status} {text}"
                )

    async def launch(self, handle: ServerHandle) -> None:
        """Launch a server."""
        await self.server_action(handle, "launch")
        self._launched.add(handle.id)

    async def terminate(self, handle: ServerHandle) -> None:
        """Terminate a server."""
        self._launched.discard(handle.id)
        await self.server_action(handle, "terminate")

    async def server_action(self, handle: ServerHandle, action: str) -> None:
        """Post a lifecycle action for a server."""
        url = f"/api/servers/{handle.id}/{action}"

        async with self.session.post(url, headers=self.auth_headers) as response:
            if response.status not in SUCCESS_STATUSES:
                text = await response.text()
                raise DeploymentApiError(
                    f"Failed to {action} server {handle.id}: {response.status} {text}"
                )

        log.info("Requested %s of server %s (%s)", action, handle.name, handle.id)

    async def check_monitoring(self, handle: ServerHandle) -> None:
        """Assert the server's current instance exposes monitoring metrics."""
        server = await self.fetch_server(handle.id)
        instance = server.link("current_instance")
        if instance is None:
            raise MonitoringCheckError(handle.id, "server has no running instance")

        url = f"{instance}/monitoring_metrics"
        async with self.session.get(url, headers=self.auth_headers) as response:
            if response.status != 200:
                text = await response.text()
                raise MonitoringCheckError(
                    handle.id, f"metrics request failed: {response.status} {text}"
                )
            data = await response.json()

        metrics = [MonitoringMetric.model_validate(item) for item in data]
        if not metrics:
            raise MonitoringCheckError(handle.id, "no monitoring metrics reported")

        log.info("Server %s reports %d monitoring metric(s)", handle.name, len(metrics))
