"""RightScale provider module."""

from log_propagation_check.deployments.rightscale.config import RightScaleConfig
from log_propagation_check.deployments.rightscale.manifest import rightscale_manifest
from log_propagation_check.deployments.rightscale.provider import RightScaleProvider

__all__ = ["RightScaleConfig", "RightScaleProvider", "rightscale_manifest"]
