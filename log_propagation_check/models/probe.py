"""Models for remote command execution."""

from dataclasses import dataclass


@dataclass(frozen=True, kw_only=True)
class ProbeResult:
    """Captured outcome of one command run on a remote server."""

    target: str
    command: str
    output: str
    exit_status: int

    @property
    def succeeded(self) -> bool:
        """Whether the remote command exited with status zero."""
        return self.exit_status == 0
