"""RightScale provider manifest."""

from log_propagation_check.deployments.manifest import ProviderManifest
from log_propagation_check.deployments.rightscale.config import RightScaleConfig
from log_propagation_check.deployments.rightscale.provider import RightScaleProvider

rightscale_manifest = ProviderManifest(
    config_cls=RightScaleConfig,
    provider_factory=RightScaleProvider.from_config,
)
