"""Tests for server models."""

import pytest

from log_propagation_check.models.probe import ProbeResult
from log_propagation_check.testing.factories import ServerHandleFactory


@pytest.mark.parametrize(
    ("private_address", "reachable_address", "expected"),
    [
        ("10.0.0.5", "54.0.0.5", "10.0.0.5"),
        (None, "54.0.0.5", "54.0.0.5"),
        ("", "54.0.0.5", "54.0.0.5"),
        (None, None, None),
    ],
)
def test_forwarding_address_prefers_private(
    private_address: str | None, reachable_address: str | None, expected: str | None
) -> None:
    """Uses the private address and falls back to the reachable one."""
    handle = ServerHandleFactory.build(
        private_address=private_address, reachable_address=reachable_address
    )

    assert handle.forwarding_address == expected


def test_probe_result_succeeded() -> None:
    """Only exit status zero counts as success."""
    ok = ProbeResult(target="1", command="true", output="", exit_status=0)
    failed = ProbeResult(target="1", command="false", output="", exit_status=1)

    assert ok.succeeded
    assert not failed.succeeded
