"""Storage boundary for executable test suite definitions."""

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Protocol

from teamengine_driver.models.definition import ExecutableTestSuite


class SuiteNotFoundError(KeyError):
    """Raised when no suite with the requested id is stored."""


class SuiteRepository(Protocol):
    """Persistence of suite definitions.

    Concurrent writers of the same suite must be serialized by the
    implementation.
    """

    def exists(self, suite_id: str) -> bool:
        """Check whether a suite is stored."""

    def get_by_id(self, suite_id: str) -> ExecutableTestSuite:
        """Return a stored suite or raise SuiteNotFoundError."""

    def add(self, suite: ExecutableTestSuite) -> None:
        """Store a new suite."""

    def replace(self, suite: ExecutableTestSuite) -> None:
        """Replace the stored suite with the same id."""

    def delete_all_existing(self, suite_ids: Iterable[str]) -> None:
        """Delete the given suites, ignoring ids that are not stored."""


@dataclass
class InMemorySuiteRepository:
    """Suite repository backed by a dict."""

    suites: dict[str, ExecutableTestSuite] = field(default_factory=dict)

    def exists(self, suite_id: str) -> bool:
        """Check whether a suite is stored."""
        return suite_id in self.suites

    def get_by_id(self, suite_id: str) -> ExecutableTestSuite:
        """Return a stored suite or raise SuiteNotFoundError."""
        try:
            return self.suites[suite_id]
        except KeyError:
            raise SuiteNotFoundError(suite_id) from None

    def add(self, suite: ExecutableTestSuite) -> None:
        """Store a new suite."""
        if suite.id in self.suites:
            raise ValueError(f"Suite {suite.id} already exists")
        self.suites[suite.id] = suite

    def replace(self, suite: ExecutableTestSuite) -> None:
        """Replace the stored suite with the same id."""
        self.suites[suite.id] = suite

    def delete_all_existing(self, suite_ids: Iterable[str]) -> None:
        """Delete the given suites, ignoring ids that are not stored."""
        for suite_id in suite_ids:
            self.suites.pop(suite_id, None)
