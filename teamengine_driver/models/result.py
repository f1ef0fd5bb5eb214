"""Models for the result tree built from a TEAM Engine report."""

from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum


class Outcome(StrEnum):
    """Classified outcome of a test step."""

    PASS = "PASS"
    FAIL = "FAIL"
    SKIPPED = "SKIPPED"
    NOT_APPLICABLE = "NOT_APPLICABLE"
    UNDEFINED = "UNDEFINED"


@dataclass(frozen=True, kw_only=True)
class Attachment:
    """Evidence attached to a step, such as the service response."""

    data: bytes | str
    label: str
    mime_type: str | None
    kind: str


@dataclass(frozen=True, kw_only=True)
class StepResult:
    """Result of a single TestNG test method."""

    identity: str
    label: str
    description: str | None
    started_at: datetime
    ended_at: datetime
    outcome: Outcome
    is_config: bool = False
    message: str | None = None
    attachments: Sequence[Attachment] = field(default_factory=tuple)


@dataclass(frozen=True, kw_only=True)
class CaseResult:
    """Result of a TestNG class, holding only the steps that are reported.

    ``started_at`` is None when the class has no test methods.
    """

    identity: str
    label: str
    description: str | None
    started_at: datetime | None
    ended_at: datetime | None
    steps: Sequence[StepResult] = field(default_factory=tuple)


@dataclass(frozen=True, kw_only=True)
class ModuleResult:
    """Result of a TestNG test."""

    identity: str
    label: str
    description: str | None
    started_at: datetime
    ended_at: datetime
    cases: Sequence[CaseResult] = field(default_factory=tuple)


@dataclass(frozen=True, kw_only=True)
class SuiteResult:
    """Parsed TEAM Engine report for one suite run."""

    label: str
    started_at: datetime
    ended_at: datetime
    passed: int
    failed: int
    modules: Sequence[ModuleResult] = field(default_factory=tuple)
    raw_report: bytes = field(default=b"", repr=False)

    def iter_steps(self) -> Sequence[StepResult]:
        """Return all reported steps in document order."""
        return [
            step
            for module in self.modules
            for case in module.cases
            for step in case.steps
        ]
