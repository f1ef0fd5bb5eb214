"""Report dialects and their loading from entry points.

TEAM Engine reports have been transformed with slightly different rules over
time. A dialect bundles those rules so a single parser can serve all of them.
"""

from dataclasses import dataclass, field
from importlib.metadata import entry_points
from typing import Literal, TypeAlias

from teamengine_driver.classifier import DEFAULT_TABLE, ClassificationTable
from teamengine_driver.errors import DialectNotFoundError

ENTRY_POINT_GROUP = "teamengine_driver.dialects"
DEFAULT_DIALECT = "testng"

ConfigStepPolicy: TypeAlias = Literal["first-inapplicable", "all-non-passing"]
MessageFallback: TypeAlias = Literal["missing-or-empty", "missing-only"]


@dataclass(frozen=True, kw_only=True)
class ReportDialect:
    """Rules for suppressing configuration steps and extracting messages.

    ``config_step_policy``:
        ``first-inapplicable`` reports failed configuration steps and only the
        first skipped or not applicable one per case. ``all-non-passing``
        reports every configuration step that did not pass.
    ``message_fallback``:
        When to synthesize a message from the exception class: if the
        exception has no message or an empty one, or only if it has none.
    """

    key: str
    config_step_policy: ConfigStepPolicy = "first-inapplicable"
    message_fallback: MessageFallback = "missing-or-empty"
    classification: ClassificationTable = field(default=DEFAULT_TABLE)


testng_dialect = ReportDialect(key="testng")

testng_legacy_dialect = ReportDialect(
    key="testng-legacy",
    config_step_policy="all-non-passing",
    message_fallback="missing-only",
)


def load_dialect(key: str = DEFAULT_DIALECT) -> ReportDialect:
    """Load a report dialect by key.

    Args:
        key: The dialect key as registered in pyproject.toml
             (e.g., "testng", "testng-legacy")

    Returns:
        The report dialect instance

    Raises:
        DialectNotFoundError: If no dialect with the given key is found

    """
    entries = entry_points(group=ENTRY_POINT_GROUP)

    for entry in entries:
        if entry.name == key:
            dialect: ReportDialect = entry.load()
            return dialect

    available = [e.name for e in entries]
    raise DialectNotFoundError(
        f"Dialect '{key}' not found. Available dialects: {available}"
    )
