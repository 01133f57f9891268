"""CLI entry point for remote logging checks."""

import argparse
import asyncio
import json
import logging
import sys
from collections.abc import Sequence
from typing import Any

from log_propagation_check.config import SSHSettings, VerifierConfig
from log_propagation_check.deployments.base import DeploymentContext
from log_propagation_check.deployments.loading import (
    available_providers,
    load_provider_manifest,
)
from log_propagation_check.models.result import ScenarioResult
from log_propagation_check.probes.ssh import SSHProbe
from log_propagation_check.runner import BUILTIN_SCENARIOS, TestCaseRunner
from log_propagation_check.verifier import LogPropagationVerifier

STATUS_SYMBOLS = {
    "success": "✅",
    "failure": "❌",
    "error": "❗",
    "timeout": "⏱️",
}


def log_results_summary(
    log: logging.Logger, scenario_results: Sequence[ScenarioResult]
) -> None:
    """Log a formatted summary of scenario results."""
    log.info("=" * 80)
    log.info("Scenario Results Summary:")
    log.info("=" * 80)

    for result in scenario_results:
        symbol = STATUS_SYMBOLS.get(result.status, "?")
        log.info(
            "%s %s [%s]: %s (%.2fs)",
            symbol,
            result.scenario,
            result.transport,
            result.status,
            result.duration,
        )
        if result.error_type:
            log.info("  Error: %s", result.error_type)
        if result.message:
            log.info("  Message: %s", result.message)


async def run(
    provider_key: str,
    provider_config_json: str,
    deployment_id: str,
    verifier_config_json: str = "{}",
    ssh_config_json: str = "{}",
    scenarios: Sequence[str] = (),
) -> int:
    """Run the selected scenarios and return exit code."""
    log = logging.getLogger("log_propagation_check")

    log.info("Loading provider: %s", provider_key)
    manifest = load_provider_manifest(provider_key)

    config = manifest.config_cls(**json.loads(provider_config_json))
    verifier_config = VerifierConfig.model_validate_json(verifier_config_json)
    ssh_settings = SSHSettings.model_validate_json(ssh_config_json)

    async with manifest.provider_factory(config) as provider:
        verifier = LogPropagationVerifier(
            context=DeploymentContext(provider=provider, deployment_id=deployment_id),
            probe=SSHProbe(settings=ssh_settings),
            config=verifier_config,
        )
        runner = TestCaseRunner.with_builtin_scenarios(verifier)
        scenario_results = await runner.run(list(scenarios) or None)

    log_results_summary(log, scenario_results)

    output = format_output(scenario_results)
    print(json.dumps(output, indent=2))

    return 0 if all(result.status == "success" for result in scenario_results) else 1


def format_output(scenario_results: Sequence[ScenarioResult]) -> dict[str, Any]:
    """Format scenario results for JSON output."""
    all_results = [
        {
            "scenario": result.scenario,
            "transport": result.transport,
            "status": result.status,
            "duration": result.duration,
            "message": result.message,
            "error_type": result.error_type,
        }
        for result in scenario_results
    ]

    return {
        "total": len(all_results),
        "passed": sum(1 for r in all_results if r["status"] == "success"),
        "failed": sum(1 for r in all_results if r["status"] == "failure"),
        "errors": sum(1 for r in all_results if r["status"] == "error"),
        "timeouts": sum(1 for r in all_results if r["status"] == "timeout"),
        "results": all_results,
    }


def main() -> None:
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Check that client log messages reach the Logging server"
    )
    parser.add_argument(
        "--provider",
        required=True,
        help=f"Deployment provider key ({', '.join(available_providers())})",
    )
    parser.add_argument(
        "--provider-config",
        required=True,
        help="JSON configuration for the provider",
    )
    parser.add_argument(
        "--deployment",
        required=True,
        help="Identifier of the deployment holding the Logging and Base servers",
    )
    parser.add_argument(
        "--verifier-config",
        default="{}",
        help="JSON overrides for roles, inputs and timeouts",
    )
    parser.add_argument(
        "--ssh-config",
        default="{}",
        help="JSON SSH settings used to run commands on the servers",
    )
    parser.add_argument(
        "--scenario",
        action="append",
        default=[],
        choices=list(BUILTIN_SCENARIOS),
        help="Scenario to run (default: all builtin scenarios); repeatable",
    )

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )

    exit_code = asyncio.run(
        run(
            provider_key=args.provider,
            provider_config_json=args.provider_config,
            deployment_id=args.deployment,
            verifier_config_json=args.verifier_config,
            ssh_config_json=args.ssh_config,
            scenarios=args.scenario,
        )
    )
    sys.exit(exit_code)


if __name__ == "__main__":  # pragma: no cover
    main()
