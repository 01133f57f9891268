"""SSH probe - runs commands on remote servers over SSH."""

import asyncio
import logging
import socket
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import paramiko
from paramiko.ssh_exception import AuthenticationException, SSHException

from log_propagation_check.config import SSHSettings
from log_propagation_check.errors import ProbeTransportError
from log_propagation_check.models.probe import ProbeResult
from log_propagation_check.models.server import ServerHandle
from log_propagation_check.probes.base import RemoteProbe

log = logging.getLogger(__name__)


@dataclass(frozen=True, kw_only=True)
class SSHProbe(RemoteProbe):
    """Runs commands over a fresh SSH connection per call.

    Paramiko is blocking, so every call runs in a worker thread to keep the
    event loop free while a scenario waits on the remote command.

    Example:
        >>> probe = SSHProbe(settings=SSHSettings(user="rightscale"))
        >>> result = await probe.run(server, "uptime")
    """

    settings: SSHSettings = field(default_factory=SSHSettings)
    client_factory: Callable[[], paramiko.SSHClient] = field(
        default=paramiko.SSHClient, repr=False
    )

    async def run(self, target: ServerHandle, command: str) -> ProbeResult:
        """Run a command on the target's reachable address."""
        if not target.reachable_address:
            raise ProbeTransportError(target.id, "server has no reachable address")

        log.debug("Running on %s (%s): %s", target.name, target.id, command)
        result = await asyncio.to_thread(self.run_blocking, target, command)
        log.debug("Command on %s exited with %d", target.id, result.exit_status)
        return result

    def run_blocking(self, target: ServerHandle, command: str) -> ProbeResult:
        """Connect, run the command and collect its output."""
        client = self.client_factory()
        client.set_missing_host_key_policy(paramiko.AutoAddPolicy())

        try:
            client.connect(**self.connect_kwargs(target))
        except AuthenticationException as e:
            raise ProbeTransportError(target.id, f"authentication failed: {e}") from e
        except (SSHException, OSError) as e:
            raise ProbeTransportError(target.id, f"SSH error: {e}") from e

        try:
            _, stdout, stderr = client.exec_command(
                command, timeout=self.settings.command_timeout
            )
            exit_status = stdout.channel.recv_exit_status()
            output = stdout.read().decode("utf-8", errors="replace")
            output += stderr.read().decode("utf-8", errors="replace")
        except socket.timeout as e:
            raise ProbeTransportError(
                target.id,
                f"command timed out after {self.settings.command_timeout} seconds",
            ) from e
        except SSHException as e:
            raise ProbeTransportError(target.id, f"SSH error: {e}") from e
        finally:
            client.close()

        return ProbeResult(
            target=target.id,
            command=command,
            output=output,
            exit_status=exit_status,
        )

    def connect_kwargs(self, target: ServerHandle) -> dict[str, Any]:
        """Build paramiko connect arguments, preferring key authentication."""
        kwargs: dict[str, Any] = {
            "hostname": target.reachable_address,
            "port": self.settings.port,
            "username": self.settings.user,
            "timeout": self.settings.connect_timeout,
        }

        if self.settings.key_path:
            kwargs["key_filename"] = str(Path(self.settings.key_path).expanduser())
        elif self.settings.password:
            kwargs["password"] = self.settings.password.get_secret_value()

        return kwargs
