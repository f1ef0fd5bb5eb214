"""Execution of one test task on the remote TEAM Engine."""

import logging
from dataclasses import dataclass

from teamengine_driver.client import TeamEngineClient
from teamengine_driver.dialects import ReportDialect, testng_dialect
from teamengine_driver.errors import (
    InvocationTimeout,
    MalformedResponse,
    RemoteFault,
    ServerError,
    StructuralParseError,
)
from teamengine_driver.models.definition import TestTaskDefinition
from teamengine_driver.models.result import SuiteResult
from teamengine_driver.report_parser import ReportParser
from teamengine_driver.reporting import ResultCollector, emit_result
from teamengine_driver.synchronizer import StructureSynchronizer

log = logging.getLogger(__name__)


@dataclass(frozen=True, kw_only=True)
class TestTask:
    """Runs a suite against a test object and reports the transformed result.

    A task makes exactly one remote call. Faults and unparseable reports are
    reported once as an internal error and re-raised; no partial result tree
    is reported in that case.
    """

    __test__ = False

    definition: TestTaskDefinition
    client: TeamEngineClient
    synchronizer: StructureSynchronizer
    collector: ResultCollector
    dialect: ReportDialect = testng_dialect

    async def run(self) -> SuiteResult:
        """Invoke the suite, update its structure and report the result."""
        suite = self.definition.suite
        log.info(
            "Running suite %s against %s",
            suite.label,
            self.definition.test_object.service_endpoint,
        )
        try:
            document = await self.client.invoke(
                suite.remote_resource, self.definition.test_object.service_endpoint
            )
        except RemoteFault as e:
            self._report_fault(e)
            raise

        try:
            result = ReportParser(
                scope_prefix=suite.scope_prefix, dialect=self.dialect
            ).parse(document.root, document.content)
            suite, updated = self.synchronizer.update_from_result(suite, document.root)
        except StructuralParseError as e:
            log.error("Could not transform the TEAM Engine result: %s", e)
            self.collector.internal_error(str(e), document.content, "text/xml")
            raise

        if updated:
            log.info("Internal suite model updated.")

        emit_result(result, self.collector, self.definition.id)
        log.info(
            "Task %s completed: %d step(s) reported",
            self.definition.id,
            len(result.iter_steps()),
        )
        return result

    def _report_fault(self, fault: RemoteFault) -> None:
        match fault:
            case ServerError(html_body=str() as html) if fault.message:
                self.collector.internal_error(
                    f"OGC TEAM Engine returned HTTP status code: {fault.status}. "
                    f"Message: {fault.message}",
                    html.encode("utf-8"),
                    "text/html",
                )
            case ServerError():
                self.collector.internal_error(
                    "OGC TEAM Engine returned an error: "
                    f"{fault.status or ''} {fault.reason or ''}".rstrip(),
                    None,
                    None,
                )
            case InvocationTimeout():
                self.collector.internal_error(
                    fault.message, fault.message.encode("utf-8"), "text/plain"
                )
            case MalformedResponse():
                self.collector.internal_error(fault.message, None, None)
            case _:
                self.collector.internal_error(str(fault), None, None)
