"""Provider manifest definition for the plugin system."""

from collections.abc import Callable
from contextlib import AbstractAsyncContextManager
from dataclasses import dataclass
from typing import Generic, TypeVar

from pydantic import BaseModel

from log_propagation_check.deployments.base import DeploymentProvider

ConfigT = TypeVar("ConfigT", bound=BaseModel)


@dataclass(frozen=True, kw_only=True)
class ProviderManifest(Generic[ConfigT]):
    """Manifest describing a deployment provider plugin.

    The manifest contains references to the configuration class and the
    provider factory function for lazy loading of providers based on their key.
    """

    config_cls: type[ConfigT]
    provider_factory: Callable[
        [ConfigT], AbstractAsyncContextManager[DeploymentProvider]
    ]
