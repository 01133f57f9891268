"""Error taxonomy for log propagation checks.

Every error is fatal to the scenario that raised it. The runner turns each one
into a scenario result so sibling scenarios keep running.
"""


class LogPropagationError(Exception):
    """Base class for all typed check failures."""


class EmptyRoleSetError(LogPropagationError):
    """Raised when a role pattern matches no server in the deployment."""

    def __init__(self, pattern: str, deployment_id: str) -> None:
        super().__init__(
            f"No servers matching role '{pattern}' found in deployment "
            f"{deployment_id}"
        )
        self.pattern = pattern
        self.deployment_id = deployment_id


class LaunchFailureError(LogPropagationError):
    """Raised when the platform reports a server launch as failed."""

    def __init__(self, server_id: str, state: str, reason: str | None = None):
        message = f"Server {server_id} failed to launch (state={state})"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
        self.server_id = server_id
        self.state = state
        self.reason = reason


class StateTimeoutError(LogPropagationError):
    """Raised when a server never converges on the target state in time."""

    def __init__(
        self, server_id: str, target_state: str, last_state: str, timeout: float
    ) -> None:
        super().__init__(
            f"Server {server_id} did not reach state '{target_state}' within "
            f"{timeout} seconds (last state={last_state})"
        )
        self.server_id = server_id
        self.target_state = target_state
        self.last_state = last_state
        self.timeout = timeout


class ProbeTransportError(LogPropagationError):
    """Raised when the remote execution channel cannot be established."""

    def __init__(self, target: str, reason: str) -> None:
        super().__init__(f"Cannot run command on {target}: {reason}")
        self.target = target
        self.reason = reason


class ProbeCommandError(LogPropagationError):
    """Raised when a remote command ran but exited with a failure status."""

    def __init__(self, target: str, command: str, exit_status: int, output: str):
        super().__init__(
            f"Command '{command}' failed on {target} "
            f"(exit status {exit_status}): {output.strip()}"
        )
        self.target = target
        self.command = command
        self.exit_status = exit_status
        self.output = output


class MissingLogMessageError(LogPropagationError):
    """Raised when the tagged message never shows up on the receiver."""

    def __init__(
        self, tag: str, receiver_id: str, transport: str, log_path: str
    ) -> None:
        super().__init__(
            f"Log message with tag '{tag}' not found in {log_path} on Logging "
            f"server {receiver_id} (transport={transport})"
        )
        self.tag = tag
        self.receiver_id = receiver_id
        self.transport = transport
        self.log_path = log_path


class MonitoringCheckError(LogPropagationError):
    """Raised when a server reports no monitoring data."""

    def __init__(self, server_id: str, reason: str) -> None:
        super().__init__(f"Monitoring check failed for server {server_id}: {reason}")
        self.server_id = server_id
        self.reason = reason


class DeploymentApiError(LogPropagationError):
    """Raised when the deployment platform API rejects a request."""
