"""Classification of TestNG test method statuses."""

import xml.etree.ElementTree as ET
from collections.abc import Set
from dataclasses import dataclass, field

from teamengine_driver.models.result import Outcome
from teamengine_driver.report_xml import EXCEPTION, first_child, is_config_step

ASSERTION_ERROR = "java.lang.AssertionError"
SKIP_EXCEPTION = "org.testng.SkipException"


def _names(*qualified: str) -> frozenset[str]:
    return frozenset(
        name.lower() for q in qualified for name in (q, q.rsplit(".", 1)[-1])
    )


@dataclass(frozen=True, kw_only=True)
class ClassificationTable:
    """Exception class names that change the meaning of a raw status.

    Names are matched case-insensitively, either fully qualified or by their
    simple class name.
    """

    assertion_exceptions: Set[str] = field(
        default_factory=lambda: _names(ASSERTION_ERROR)
    )
    skip_exceptions: Set[str] = field(default_factory=lambda: _names(SKIP_EXCEPTION))

    def is_assertion(self, exception_class: str | None) -> bool:
        """Check for an assertion failure exception."""
        return _matches(exception_class, self.assertion_exceptions)

    def is_skip(self, exception_class: str | None) -> bool:
        """Check for the exception TestNG raises to skip a method."""
        return _matches(exception_class, self.skip_exceptions)


def _matches(exception_class: str | None, names: Set[str]) -> bool:
    if not exception_class:
        return False
    lowered = exception_class.lower()
    return lowered in names or lowered.rsplit(".", 1)[-1] in names


DEFAULT_TABLE = ClassificationTable()


def classify(step: ET.Element, table: ClassificationTable = DEFAULT_TABLE) -> Outcome:
    """Map the raw status of a test method to an outcome.

    TEAM Engine reports "not relevant for this service" both as FAIL of a
    configuration method with an assertion error and as SKIP without a cause
    or with a SkipException. Those become NOT_APPLICABLE.
    """
    status = step.get("status")
    exception = first_child(step, EXCEPTION)
    exception_class = exception.get("class") if exception is not None else None

    match status:
        case "PASS":
            return Outcome.PASS
        case "FAIL":
            if is_config_step(step) and table.is_assertion(exception_class):
                return Outcome.NOT_APPLICABLE
            return Outcome.FAIL
        case "SKIP":
            if not exception_class or table.is_skip(exception_class):
                return Outcome.NOT_APPLICABLE
            return Outcome.SKIPPED
        case _:
            return Outcome.UNDEFINED
