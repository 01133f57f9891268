"""Scenario runner for coordinating log propagation checks."""

import logging
import time
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Protocol

from log_propagation_check.errors import MissingLogMessageError, StateTimeoutError
from log_propagation_check.models.result import (
    ScenarioResult,
    ScenarioStatus,
    VerificationReport,
)
from log_propagation_check.models.server import Transport

log = logging.getLogger(__name__)

BUILTIN_SCENARIOS: Mapping[str, Transport] = {
    "smoke_test": "udp",
    "relp": "relp",
    "relp-secured": "relp-secured",
}


class Verifier(Protocol):
    """Anything that can check propagation for a transport."""

    async def verify(self, transport: Transport) -> VerificationReport:
        """Return a report or raise on failure."""


def classify(error: BaseException) -> ScenarioStatus:
    """Map a scenario exception to the reported status."""
    if isinstance(error, MissingLogMessageError):
        return "failure"
    if isinstance(error, StateTimeoutError):
        return "timeout"
    return "error"


@dataclass(frozen=True, kw_only=True)
class TestCaseRunner:
    """Runs named scenarios one after another against the same deployment.

    Scenarios share servers, so they never overlap. A failing scenario is
    recorded and the next one still runs.
    """

    __test__ = False

    verifier: Verifier
    scenarios: dict[str, Transport] = field(default_factory=dict)

    @classmethod
    def with_builtin_scenarios(cls, verifier: Verifier) -> "TestCaseRunner":
        """Create a runner with the smoke_test, relp and relp-secured scenarios."""
        return cls(verifier=verifier, scenarios=dict(BUILTIN_SCENARIOS))

    def register(self, name: str, transport: Transport) -> None:
        """Register a scenario checking the given transport."""
        if name in self.scenarios:
            raise ValueError(f"Scenario '{name}' is already registered")
        self.scenarios[name] = transport

    async def run(self, names: Sequence[str] | None = None) -> Sequence[ScenarioResult]:
        """Run the selected scenarios, or all of them in registration order.

        Args:
            names: Scenario names to run (default: every registered scenario)

        Returns:
            One result per scenario run

        """
        selected = list(self.scenarios) if names is None else list(names)
        unknown = [name for name in selected if name not in self.scenarios]
        if unknown:
            raise KeyError(
                f"Unknown scenario(s) {unknown}. "
                f"Available scenarios: {list(self.scenarios)}"
            )

        if not selected:
            log.info("No scenarios selected")
            return []

        log.info("Running %d scenario(s)...", len(selected))
        results = [await self.run_scenario(name) for name in selected]
        log.info("Scenario execution completed")
        return results

    async def run_scenario(self, name: str) -> ScenarioResult:
        """Run one scenario and turn its outcome into a result."""
        transport = self.scenarios[name]
        log.info("Starting scenario %s (transport=%s)", name, transport)
        started = time.monotonic()

        try:
            report = await self.verifier.verify(transport)
        except Exception as e:
            duration = time.monotonic() - started
            status = classify(e)
            log.error("Scenario %s %s: %s", name, status, e, exc_info=e)
            return ScenarioResult(
                scenario=name,
                transport=transport,
                status=status,
                duration=duration,
                message=str(e),
                error_type=type(e).__name__,
            )

        duration = time.monotonic() - started
        log.info(
            "Scenario completed: scenario=%s status=success duration=%.1fs",
            name,
            duration,
        )
        return ScenarioResult(
            scenario=name,
            transport=transport,
            status="success",
            duration=duration,
            message=f"Found tag {report.tag} in {report.log_path}",
        )
