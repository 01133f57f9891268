"""Resolve role patterns to servers of a deployment."""

import logging
import re
from collections.abc import Sequence
from dataclasses import dataclass

from log_propagation_check.deployments.base import DeploymentContext
from log_propagation_check.errors import EmptyRoleSetError
from log_propagation_check.models.server import ServerHandle

log = logging.getLogger(__name__)


@dataclass(frozen=True, kw_only=True)
class ServerRoleResolver:
    """Finds the servers playing a role in the deployment.

    Membership is read from the provider on every call. Results are sorted
    by server ID so the same deployment always yields the same order.
    """

    context: DeploymentContext

    async def resolve(self, pattern: str) -> Sequence[ServerHandle]:
        """Return servers whose name matches the pattern, case-insensitively.

        Raises:
            EmptyRoleSetError: If no server matches

        """
        regex = re.compile(pattern, re.IGNORECASE)
        servers = await self.context.provider.list_servers(self.context.deployment_id)

        matched = sorted(
            (server for server in servers if regex.search(server.name)),
            key=lambda server: server.id,
        )
        if not matched:
            raise EmptyRoleSetError(pattern, self.context.deployment_id)

        log.info(
            "Role '%s' resolved to %d server(s): %s",
            pattern,
            len(matched),
            ", ".join(server.name for server in matched),
        )
        return matched
