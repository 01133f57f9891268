"""Abstract base class for remote command execution."""

from abc import ABC, abstractmethod

from log_propagation_check.models.probe import ProbeResult
from log_propagation_check.models.server import ServerHandle


class RemoteProbe(ABC):
    """Runs a single command on a remote server.

    Implementations never retry and never interpret the command's output.
    A command that fails is reported through the exit status of the result;
    only a broken execution channel raises.
    """

    @abstractmethod
    async def run(self, target: ServerHandle, command: str) -> ProbeResult:
        """Run a command on the target server.

        Args:
            target: Server to run the command on
            command: Shell command line

        Returns:
            Captured output and exit status, whatever the status is

        Raises:
            ProbeTransportError: If the command could not be delivered

        """
