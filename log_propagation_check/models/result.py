"""Models for scenario execution results."""

from dataclasses import dataclass
from typing import Literal

from log_propagation_check.models.server import Transport

ScenarioStatus = Literal["success", "failure", "timeout", "error"]


@dataclass(frozen=True, kw_only=True)
class ScenarioResult:
    """Result of a single scenario run."""

    __test__ = False

    scenario: str
    transport: Transport
    status: ScenarioStatus
    duration: float
    message: str | None = None
    error_type: str | None = None


@dataclass(frozen=True, kw_only=True)
class VerificationReport:
    """Evidence collected by a successful propagation check."""

    transport: Transport
    tag: str
    sender_id: str
    receiver_id: str
    log_path: str
    attempts: int
