"""Models for executable test suites and the test tasks run against them."""

from collections.abc import Sequence

from pydantic import Field

from teamengine_driver.models.base import Model

TEST_STEP_TYPE = "TestNG Test Step"


class TestStepDefinition(Model):
    """Step of a test case, backed by one TestNG test method."""

    __test__ = False

    id: str = Field(..., description="Stable identity of the step")
    label: str = Field(..., description="Test method name")
    description: str | None = Field(default=None, description="Method description")
    type: str = Field(default=TEST_STEP_TYPE, description="Test item type label")
    statement_for_execution: str = Field(
        default="NOT_APPLICABLE",
        description="Statement executed locally (steps run remotely)",
    )


class TestCaseDefinition(Model):
    """Test case, backed by one TestNG class."""

    __test__ = False

    id: str
    label: str
    description: str | None = None
    steps: Sequence[TestStepDefinition] = Field(default_factory=list)


class TestModuleDefinition(Model):
    """Test module, backed by one TestNG test."""

    __test__ = False

    id: str
    label: str
    description: str | None = None
    cases: Sequence[TestCaseDefinition] = Field(default_factory=list)


class ExecutableTestSuite(Model):
    """Suite hosted on the remote TEAM Engine.

    The module/case/step hierarchy is empty until the first report for the
    suite has been observed.
    """

    id: str = Field(..., description="Stable identity of the suite")
    label: str = Field(..., description="Display label of the suite")
    remote_resource: str = Field(
        ..., description="Base URL of the suite on the remote service"
    )
    version: str | None = Field(default=None, description="Suite version")
    description: str | None = None
    modules: Sequence[TestModuleDefinition] = Field(default_factory=list)

    @property
    def scope_prefix(self) -> str:
        """Prefix that scopes node identities to this suite."""
        return self.id + self.label

    @property
    def lowest_level_item_size(self) -> int:
        """Number of steps in the materialized hierarchy."""
        return sum(len(case.steps) for module in self.modules for case in module.cases)


class TestObject(Model):
    """Service under test."""

    __test__ = False

    id: str
    label: str
    service_endpoint: str = Field(..., description="Endpoint handed to the remote suite")


class TestTaskDefinition(Model):
    """One execution of a suite against a test object."""

    __test__ = False

    id: str
    suite: ExecutableTestSuite
    test_object: TestObject
