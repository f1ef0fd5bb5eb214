"""CLI entry point for running a TEAM Engine suite."""

import argparse
import asyncio
import json
import logging
import sys
import uuid
from typing import Any

from teamengine_driver.client import TeamEngineClient
from teamengine_driver.config import TeamEngineConfig
from teamengine_driver.dialects import load_dialect
from teamengine_driver.driver import TeamEngineDriver, suite_from_url
from teamengine_driver.errors import DriverError
from teamengine_driver.identity import name_uuid
from teamengine_driver.models.definition import TestObject, TestTaskDefinition
from teamengine_driver.models.result import Outcome
from teamengine_driver.reporting import RecordingCollector
from teamengine_driver.repository import InMemorySuiteRepository

OUTCOME_SYMBOLS = {
    Outcome.PASS: "✅",
    Outcome.FAIL: "❌",
    Outcome.SKIPPED: "⏭️",
    Outcome.NOT_APPLICABLE: "➖",
    Outcome.UNDEFINED: "❔",
}


def log_results_summary(log: logging.Logger, collector: RecordingCollector) -> None:
    """Log a formatted summary of the reported steps."""
    log.info("=" * 80)
    log.info("Test Results Summary:")
    log.info("=" * 80)

    if collector.error_message:
        log.info("❗ Task failed: %s", collector.error_message)
        return

    summary = collector.summary()
    for outcome, count in summary["outcomes"].items():
        symbol = OUTCOME_SYMBOLS.get(Outcome(outcome), "?")
        log.info("%s %s: %d step(s)", symbol, outcome, count)
    for message in summary["messages"]:
        log.info("  Message: %s", message)


def format_output(
    collector: RecordingCollector, suite_label: str, endpoint: str
) -> dict[str, Any]:
    """Format the recorded task for JSON output."""
    return {"suite": suite_label, "endpoint": endpoint, **collector.summary()}


async def run(
    config_json: str,
    suite_url: str,
    suite_label: str,
    endpoint: str,
    dialect_key: str = "testng",
    task_id: str | None = None,
) -> int:
    """Run one suite against an endpoint and return exit code."""
    log = logging.getLogger("teamengine_driver")

    config = TeamEngineConfig(**json.loads(config_json))
    dialect = load_dialect(dialect_key)
    driver = TeamEngineDriver(
        config=config, repository=InMemorySuiteRepository(), dialect=dialect
    )
    suite = driver.register_suite(suite_from_url(suite_url, suite_label))
    definition = TestTaskDefinition(
        id=task_id or str(uuid.uuid4()),
        suite=suite,
        test_object=TestObject(
            id=name_uuid(endpoint), label=endpoint, service_endpoint=endpoint
        ),
    )
    collector = RecordingCollector()

    async with TeamEngineClient.from_config(config) as client:
        try:
            await driver.init(client)
            task = driver.create_task(definition, collector, client)
            await task.run()
        except DriverError as e:
            log.error("Test task failed: %s", e)
            if collector.error_message is None:
                collector.internal_error(str(e), None, None)

    log_results_summary(log, collector)
    print(json.dumps(format_output(collector, suite_label, endpoint), indent=2))

    failed = collector.error_message is not None or Outcome.FAIL in collector.step_outcomes()
    return 1 if failed else 0


def main() -> None:
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Run a conformance suite on a remote TEAM Engine"
    )
    parser.add_argument(
        "--config",
        default="{}",
        help="JSON configuration (url, username, password, timeout_seconds)",
    )
    parser.add_argument(
        "--suite-url",
        required=True,
        help="Versioned URL of the suite, e.g. .../rest/suites/wfs20/1.26/",
    )
    parser.add_argument("--suite-label", required=True, help="Label of the suite")
    parser.add_argument(
        "--endpoint", required=True, help="Service endpoint to test"
    )
    parser.add_argument(
        "--dialect",
        default="testng",
        help="Report dialect (testng, testng-legacy)",
    )
    parser.add_argument("--task-id", default=None, help="Identity of the test task")

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )

    exit_code = asyncio.run(
        run(
            config_json=args.config,
            suite_url=args.suite_url,
            suite_label=args.suite_label,
            endpoint=args.endpoint,
            dialect_key=args.dialect,
            task_id=args.task_id,
        )
    )
    sys.exit(exit_code)


if __name__ == "__main__":  # pragma: no cover
    main()
