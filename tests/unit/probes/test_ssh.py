"""Tests for the SSH probe."""

import socket
from unittest.mock import MagicMock, Mock

import pytest
from paramiko.ssh_exception import AuthenticationException, SSHException
from pydantic import SecretStr

from log_propagation_check.config import SSHSettings
from log_propagation_check.errors import ProbeTransportError
from log_propagation_check.models.server import ServerHandle
from log_propagation_check.probes.ssh import SSHProbe
from log_propagation_check.testing.factories import ServerHandleFactory


def make_client(
    stdout: bytes = b"", stderr: bytes = b"", exit_status: int = 0
) -> MagicMock:
    """Create a paramiko client mock answering one command."""
    client = MagicMock()
    stdout_file = MagicMock()
    stdout_file.read.return_value = stdout
    stdout_file.channel.recv_exit_status.return_value = exit_status
    stderr_file = MagicMock()
    stderr_file.read.return_value = stderr
    client.exec_command.return_value = (MagicMock(), stdout_file, stderr_file)
    return client


@pytest.fixture
def target() -> ServerHandle:
    """Server reachable over SSH."""
    return ServerHandleFactory.build(id="1001", reachable_address="54.0.0.5")


async def test_returns_output_and_exit_status(target: ServerHandle) -> None:
    """Captures stdout, stderr and the exit status."""
    client = make_client(stdout=b"match\n", stderr=b"warning\n", exit_status=0)
    probe = SSHProbe(client_factory=Mock(return_value=client))

    result = await probe.run(target, "grep -F tag /var/log/syslog")

    assert result.target == "1001"
    assert result.command == "grep -F tag /var/log/syslog"
    assert result.output == "match\nwarning\n"
    assert result.exit_status == 0
    assert result.succeeded
    client.close.assert_called_once()


async def test_nonzero_exit_is_a_result(target: ServerHandle) -> None:
    """A failing command is reported, not raised."""
    client = make_client(exit_status=1)
    probe = SSHProbe(client_factory=Mock(return_value=client))

    result = await probe.run(target, "grep -F missing /var/log/syslog")

    assert result.exit_status == 1
    assert not result.succeeded


async def test_connects_with_settings(target: ServerHandle) -> None:
    """Connects to the reachable address with the configured account."""
    client = make_client()
    settings = SSHSettings(
        user="rightscale", port=2222, key_path="/keys/id_rsa", connect_timeout=5
    )
    probe = SSHProbe(settings=settings, client_factory=Mock(return_value=client))

    await probe.run(target, "uptime")

    client.connect.assert_called_once_with(
        hostname="54.0.0.5",
        port=2222,
        username="rightscale",
        timeout=5,
        key_filename="/keys/id_rsa",
    )
    client.exec_command.assert_called_once_with("uptime", timeout=60)


async def test_uses_password_without_key(target: ServerHandle) -> None:
    """Falls back to password authentication."""
    client = make_client()
    settings = SSHSettings(password=SecretStr("secret"))
    probe = SSHProbe(settings=settings, client_factory=Mock(return_value=client))

    await probe.run(target, "uptime")

    assert client.connect.call_args.kwargs["password"] == "secret"


@pytest.mark.parametrize(
    "error",
    [
        AuthenticationException("bad key"),
        SSHException("banner error"),
        OSError("connection refused"),
    ],
)
async def test_connection_failure_raises_transport_error(
    target: ServerHandle, error: Exception
) -> None:
    """Channel failures raise ProbeTransportError."""
    client = make_client()
    client.connect.side_effect = error
    probe = SSHProbe(client_factory=Mock(return_value=client))

    with pytest.raises(ProbeTransportError, match="1001"):
        await probe.run(target, "uptime")


async def test_command_timeout_raises_transport_error(target: ServerHandle) -> None:
    """A command exceeding the channel timeout is a transport failure."""
    client = make_client()
    client.exec_command.side_effect = socket.timeout()
    probe = SSHProbe(client_factory=Mock(return_value=client))

    with pytest.raises(ProbeTransportError, match="timed out"):
        await probe.run(target, "sleep 600")

    client.close.assert_called_once()


async def test_requires_reachable_address() -> None:
    """Servers without an address cannot be probed."""
    factory = Mock()
    probe = SSHProbe(client_factory=factory)

    with pytest.raises(ProbeTransportError, match="no reachable address"):
        await probe.run(ServerHandleFactory.build(id="1001"), "uptime")

    factory.assert_not_called()
