"""End-to-end check that log messages reach the Logging server."""

import asyncio
import logging
import re
import secrets
import shlex
from collections.abc import Sequence
from dataclasses import dataclass, field

from log_propagation_check.config import LogPathRule, VerifierConfig
from log_propagation_check.deployments.base import DeploymentContext
from log_propagation_check.errors import (
    EmptyRoleSetError,
    LaunchFailureError,
    MissingLogMessageError,
    ProbeCommandError,
)
from log_propagation_check.lifecycle import ServerLifecycle
from log_propagation_check.models.probe import ProbeResult
from log_propagation_check.models.result import VerificationReport
from log_propagation_check.models.server import ServerHandle, Transport
from log_propagation_check.probes.base import RemoteProbe
from log_propagation_check.resolver import ServerRoleResolver

log = logging.getLogger(__name__)

PLATFORM_COMMAND = "lsb_release -a | grep -i description"

DEFAULT_LOG_PATH = "/var/log/messages"

BUILTIN_LOG_PATHS: Sequence[LogPathRule] = (
    LogPathRule(pattern=r"ubuntu.*12", path="/var/log/syslog"),
)

TAG_BYTES = 20


def generate_tag() -> str:
    """Return a random token identifying one emitted message."""
    return secrets.token_hex(TAG_BYTES)


def select_log_path(platform: str, extra_rules: Sequence[LogPathRule] = ()) -> str:
    """Pick the syslog file for a platform description.

    Configured rules are checked before the builtin ones; the first match
    wins and unknown platforms fall back to the default path.
    """
    for rule in (*extra_rules, *BUILTIN_LOG_PATHS):
        if re.search(rule.pattern, platform, re.IGNORECASE):
            return rule.path
    return DEFAULT_LOG_PATH


def check_command(result: ProbeResult) -> ProbeResult:
    """Raise if the probed command exited with a failure status."""
    if not result.succeeded:
        raise ProbeCommandError(
            result.target, result.command, result.exit_status, result.output
        )
    return result


@dataclass(frozen=True, kw_only=True)
class LogPropagationVerifier:
    """Proves a message logged on a client reaches the Logging server.

    The only observation channel is remote command execution, so delivery
    is checked by searching the receiver's log file until the message shows
    up or the delivery timeout runs out.
    """

    context: DeploymentContext
    probe: RemoteProbe
    config: VerifierConfig = field(default_factory=VerifierConfig)

    async def verify(self, transport: Transport) -> VerificationReport:
        """Run the whole check for one transport.

        Args:
            transport: Protocol value written to the servers' protocol input
                (e.g., "udp", "relp", "relp-secured")

        Returns:
            Report describing where the tagged message was found

        Raises:
            LogPropagationError: One of the typed failures, see errors module

        """
        resolver = ServerRoleResolver(context=self.context)
        lifecycle = ServerLifecycle(provider=self.context.provider)

        receivers = await resolver.resolve(self.config.receiver_role)
        senders = await resolver.resolve(self.config.sender_role)
        receiver = receivers[0]
        sender = self.pick_sender(senders, receiver)

        if self.config.reset_deployment:
            await self.reset(lifecycle, [receiver, sender])

        receiver = await self.start_receiver(lifecycle, receiver, transport)
        sender = await self.start_sender(lifecycle, sender, receiver, transport)

        tag = generate_tag()
        message = f"Checking remote logging: {sender.reachable_address} {tag}"
        await self.emit(sender, message)

        log_path, attempts = await self.await_delivery(
            receiver, message, tag, transport
        )

        log.info(
            "Message %s delivered from %s to %s over %s after %d search(es)",
            tag,
            sender.name,
            receiver.name,
            transport,
            attempts,
        )
        return VerificationReport(
            transport=transport,
            tag=tag,
            sender_id=sender.id,
            receiver_id=receiver.id,
            log_path=log_path,
            attempts=attempts,
        )

    def pick_sender(
        self, senders: Sequence[ServerHandle], receiver: ServerHandle
    ) -> ServerHandle:
        """Pick the first client that is not also the Logging server."""
        for sender in senders:
            if sender.id != receiver.id:
                return sender
        raise EmptyRoleSetError(self.config.sender_role, self.context.deployment_id)

    async def reset(
        self, lifecycle: ServerLifecycle, servers: Sequence[ServerHandle]
    ) -> None:
        """Stop the given servers and wait until they are unprovisioned."""
        running = [server for server in servers if server.state != "unprovisioned"]
        for server in running:
            await lifecycle.stop(server)
        for server in running:
            await lifecycle.await_state(
                server,
                "unprovisioned",
                timeout=self.config.launch_timeout,
                poll_interval=self.config.state_poll_interval,
            )

    async def start_receiver(
        self,
        lifecycle: ServerLifecycle,
        receiver: ServerHandle,
        transport: Transport,
    ) -> ServerHandle:
        """Configure and launch the Logging server, then check its monitoring."""
        receiver = await lifecycle.configure(
            receiver, {self.config.protocol_input: transport}
        )
        await lifecycle.launch(receiver)
        receiver = await lifecycle.await_state(
            receiver,
            "operational",
            timeout=self.config.launch_timeout,
            poll_interval=self.config.state_poll_interval,
        )
        await self.context.provider.check_monitoring(receiver)
        return receiver

    async def start_sender(
        self,
        lifecycle: ServerLifecycle,
        sender: ServerHandle,
        receiver: ServerHandle,
        transport: Transport,
    ) -> ServerHandle:
        """Point the client at the Logging server and launch it."""
        address = receiver.forwarding_address
        if address is None:
            raise LaunchFailureError(
                receiver.id, receiver.state, reason="server reports no address"
            )

        sender = await lifecycle.configure(
            sender,
            {
                self.config.remote_server_input: address,
                self.config.protocol_input: transport,
            },
        )
        await lifecycle.launch(sender)
        return await lifecycle.await_state(
            sender,
            "operational",
            timeout=self.config.launch_timeout,
            poll_interval=self.config.state_poll_interval,
        )

    async def emit(self, sender: ServerHandle, message: str) -> None:
        """Write the tagged message to the client's syslog."""
        check_command(await self.probe.run(sender, f"logger {shlex.quote(message)}"))
        log.info("Logged test message on %s", sender.name)

    async def detect_log_path(self, receiver: ServerHandle) -> str:
        """Find which log file the Logging server writes to."""
        result = check_command(await self.probe.run(receiver, PLATFORM_COMMAND))
        log_path = select_log_path(result.output, self.config.log_paths)
        log.info("Logging server %s writes to %s", receiver.name, log_path)
        return log_path

    async def await_delivery(
        self,
        receiver: ServerHandle,
        message: str,
        tag: str,
        transport: Transport,
    ) -> tuple[str, int]:
        """Search the receiver's log until the message is found.

        Returns:
            The searched log path and the number of searches made

        Raises:
            ProbeCommandError: If the search itself fails
            MissingLogMessageError: If the delivery timeout runs out

        """
        loop = asyncio.get_running_loop()
        deadline = (
            loop.time() + self.config.settle_delay + self.config.delivery_timeout
        )

        await asyncio.sleep(self.config.settle_delay)

        log_path = await self.detect_log_path(receiver)
        command = f"grep -F {shlex.quote(message)} {shlex.quote(log_path)}"
        interval = self.config.search_interval
        attempts = 0

        while True:
            result = await self.probe.run(receiver, command)
            attempts += 1

            # grep exits 1 when nothing matched; an error with no output is
            # treated as a miss, like an empty search result
            if result.exit_status > 1 and result.output.strip():
                raise ProbeCommandError(
                    result.target, result.command, result.exit_status, result.output
                )
            if tag in result.output:
                return log_path, attempts

            now = loop.time()
            if now >= deadline:
                raise MissingLogMessageError(tag, receiver.id, transport, log_path)

            log.info(
                "Message %s not in %s yet, retrying in %.1fs", tag, log_path, interval
            )
            await asyncio.sleep(min(interval, deadline - now))
            interval = min(
                interval * self.config.search_backoff, self.config.max_search_interval
            )
