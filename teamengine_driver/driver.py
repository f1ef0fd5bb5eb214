"""TEAM Engine test driver: initialization and creation of test tasks."""

import logging
from dataclasses import dataclass, field

from teamengine_driver.client import TeamEngineClient
from teamengine_driver.config import TeamEngineConfig
from teamengine_driver.dialects import ReportDialect, testng_dialect
from teamengine_driver.errors import InitializationError
from teamengine_driver.identity import suite_identity, suite_version
from teamengine_driver.models.definition import ExecutableTestSuite, TestTaskDefinition
from teamengine_driver.reporting import ResultCollector
from teamengine_driver.repository import SuiteRepository
from teamengine_driver.synchronizer import StructureSynchronizer
from teamengine_driver.task import TestTask

log = logging.getLogger(__name__)


def suite_from_url(
    suite_url: str, label: str, description: str | None = None
) -> ExecutableTestSuite:
    """Create the definition of a remote suite from its versioned URL.

    The id ignores the version, so newer versions of a suite replace older
    ones instead of being added next to them.
    """
    remote_resource = suite_url if suite_url.endswith("/") else suite_url + "/"
    return ExecutableTestSuite(
        id=suite_identity(remote_resource),
        label=label,
        remote_resource=remote_resource,
        version=suite_version(remote_resource),
        description=description,
    )


@dataclass(kw_only=True)
class TeamEngineDriver:
    """Entry point for running suites hosted on a TEAM Engine."""

    config: TeamEngineConfig
    repository: SuiteRepository
    dialect: ReportDialect = testng_dialect
    initialized: bool = field(default=False, init=False)

    async def init(self, client: TeamEngineClient) -> None:
        """Check that the remote web interface is reachable.

        Raises:
            InitializationError: If the driver was already initialized or the
                suites listing is not available

        """
        if self.initialized:
            raise InitializationError("Already initialized")
        suites_url = self.config.suites_url
        if not await client.exists(suites_url):
            raise InitializationError(
                f"TEAM Engine application web interface not available at {suites_url}"
            )
        log.info("TEAM Engine available at %s", self.config.url)
        self.initialized = True

    def register_suite(self, suite: ExecutableTestSuite) -> ExecutableTestSuite:
        """Store a suite unless a definition with the same version exists.

        Returns:
            The stored definition

        """
        if self.repository.exists(suite.id):
            stored = self.repository.get_by_id(suite.id)
            if stored.version == suite.version:
                return stored
            log.info(
                "Replacing suite %s version %s with %s",
                suite.label,
                stored.version,
                suite.version,
            )
            self.repository.replace(suite)
        else:
            log.debug("Adding suite %s", suite.label)
            self.repository.add(suite)
        return suite

    def create_task(
        self,
        definition: TestTaskDefinition,
        collector: ResultCollector,
        client: TeamEngineClient,
    ) -> TestTask:
        """Create a task for an initialized driver."""
        if not self.initialized:
            raise InitializationError("Driver is not initialized")
        if not definition.test_object.service_endpoint:
            raise ValueError("Test object has no service endpoint")
        if not definition.suite.remote_resource:
            raise ValueError(f"Suite {definition.suite.label} has no remote resource")
        return TestTask(
            definition=definition,
            client=client,
            synchronizer=StructureSynchronizer(repository=self.repository),
            collector=collector,
            dialect=self.dialect,
        )
