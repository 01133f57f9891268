"""Server launch and state convergence."""

import asyncio
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field, replace

from log_propagation_check.deployments.base import DeploymentProvider
from log_propagation_check.errors import LaunchFailureError, StateTimeoutError
from log_propagation_check.models.server import ServerHandle, ServerState

log = logging.getLogger(__name__)

LAUNCH_TARGETS: frozenset[ServerState] = frozenset(["launching", "operational"])


@dataclass(frozen=True, kw_only=True)
class ServerLifecycle:
    """Drives servers through unprovisioned -> launching -> operational.

    One lifecycle covers one scenario run: it launches each server at most
    once and refuses to reconfigure a server it already launched.
    """

    provider: DeploymentProvider
    _launched: set[str] = field(default_factory=set, repr=False)

    async def configure(
        self, handle: ServerHandle, inputs: Mapping[str, str]
    ) -> ServerHandle:
        """Set inputs for the next launch and return the updated snapshot."""
        if handle.id in self._launched:
            raise ValueError(f"Server {handle.id} is already launched")

        for key, value in inputs.items():
            await self.provider.set_input(handle, key, value)

        return replace(handle, inputs={**handle.inputs, **inputs})

    async def launch(self, handle: ServerHandle) -> None:
        """Request a launch without waiting for the server to boot."""
        if handle.id in self._launched:
            raise ValueError(f"Server {handle.id} is already launched")

        self._launched.add(handle.id)
        log.info("Launching server %s (%s)", handle.name, handle.id)
        await self.provider.launch(handle)

    async def stop(self, handle: ServerHandle) -> None:
        """Request termination of a server that is not already stopped."""
        if handle.state == "unprovisioned":
            return

        log.info("Stopping server %s (%s)", handle.name, handle.id)
        await self.provider.terminate(handle)

    async def await_state(
        self,
        handle: ServerHandle,
        target: ServerState,
        timeout: float = 1800,
        poll_interval: float = 30,
    ) -> ServerHandle:
        """Wait until the server reports the target state.

        Args:
            handle: Server to watch
            target: State to wait for
            timeout: Maximum wait time in seconds (default: 30 minutes)
            poll_interval: Seconds between polls (default: 30)

        Returns:
            The first snapshot observed in the target state

        Raises:
            LaunchFailureError: If the server lands in the failed state while
                waiting for it to come up
            StateTimeoutError: If the state is not reached within timeout

        """
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout

        while True:
            snapshot = await self.provider.get_server(handle)
            now = loop.time()

            if snapshot.state == target and now <= deadline:
                log.info("Server %s is %s", snapshot.name, target)
                return snapshot

            # failed is terminal only while coming up
            if snapshot.state == "failed" and target in LAUNCH_TARGETS:
                raise LaunchFailureError(snapshot.id, snapshot.state)

            if now >= deadline:
                raise StateTimeoutError(snapshot.id, target, snapshot.state, timeout)

            log.info(
                "Server %s in state=%s, waiting for %s",
                snapshot.name,
                snapshot.state,
                target,
            )
            await asyncio.sleep(min(poll_interval, deadline - now))
