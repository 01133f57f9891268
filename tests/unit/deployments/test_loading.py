"""Tests for provider loading module."""

import pytest

from log_propagation_check.deployments.loading import (
    ProviderNotFoundError,
    available_providers,
    load_provider_manifest,
)
from log_propagation_check.deployments.rightscale import (
    RightScaleConfig,
    rightscale_manifest,
)


def test_load_provider_manifest_returns_manifest() -> None:
    """Loads provider manifest by key."""
    manifest = load_provider_manifest("rightscale")

    assert manifest is rightscale_manifest
    assert manifest.config_cls is RightScaleConfig


def test_load_provider_manifest_raises_for_unknown_provider() -> None:
    """Raises ProviderNotFoundError for unknown provider key."""
    with pytest.raises(ProviderNotFoundError) as exc_info:
        load_provider_manifest("unknown-provider")

    assert "unknown-provider" in str(exc_info.value)
    assert "Available providers" in str(exc_info.value)


def test_available_providers_lists_rightscale() -> None:
    """Lists installed provider keys."""
    assert "rightscale" in available_providers()
