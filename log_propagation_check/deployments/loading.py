"""Discovery of deployment providers registered as entry points."""

from collections.abc import Sequence
from importlib.metadata import entry_points
from typing import Any

from log_propagation_check.deployments.manifest import ProviderManifest

ENTRY_POINT_GROUP = "log_propagation_check.deployments"


class ProviderNotFoundError(Exception):
    """Raised when no provider is registered under a key."""


def available_providers() -> Sequence[str]:
    """Return the keys of all installed providers, sorted."""
    return sorted(entry.name for entry in entry_points(group=ENTRY_POINT_GROUP))


def load_provider_manifest(key: str) -> ProviderManifest[Any]:
    """Load the manifest registered under a provider key.

    Args:
        key: The provider key as registered in pyproject.toml
             (e.g., "rightscale")

    Raises:
        ProviderNotFoundError: If no provider with the given key is installed

    """
    matches = entry_points(group=ENTRY_POINT_GROUP, name=key)
    if not matches:
        raise ProviderNotFoundError(
            f"Provider '{key}' not found. "
            f"Available providers: {list(available_providers())}"
        )

    manifest: ProviderManifest[Any] = next(iter(matches)).load()
    return manifest
