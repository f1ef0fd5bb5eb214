"""Reporting of result trees to a result collector."""

import logging
from collections import Counter
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Literal, Protocol, TypeAlias

from teamengine_driver.errors import ProtocolViolationError
from teamengine_driver.messages import TEAM_ENGINE_ERROR, render_message
from teamengine_driver.models.result import (
    Attachment,
    CaseResult,
    ModuleResult,
    Outcome,
    StepResult,
    SuiteResult,
)

log = logging.getLogger(__name__)

REPORT_ATTACHMENT_LABEL = "TEAM Engine result"
REPORT_ATTACHMENT_KIND = "JunitXml"


class ResultCollector(Protocol):
    """Receiver of the ordered start/end reports of one test task.

    Every ``start_*`` call must be closed by an ``end`` call for the same
    identity before its parent is closed.
    """

    def start_task(self, identity: str, started_at: datetime) -> None:
        """Open the test task."""

    def start_module(self, identity: str, started_at: datetime) -> None:
        """Open a test module."""

    def start_case(self, identity: str, started_at: datetime | None = None) -> None:
        """Open a test case."""

    def start_step(self, identity: str, started_at: datetime) -> None:
        """Open a test step."""

    def add_message(self, template_key: str, severity: str, text: str) -> None:
        """Add a message to the currently open item."""

    def save_attachment(
        self, data: bytes | str, label: str, mime_type: str | None, kind: str
    ) -> None:
        """Attach evidence to the currently open item."""

    def end(
        self,
        identity: str,
        ended_at: datetime | None,
        outcome: Outcome | None = None,
    ) -> None:
        """Close the item opened with ``identity``."""

    def internal_error(
        self, message: str, data: bytes | str | None, mime_type: str | None
    ) -> None:
        """Report that the task failed before a result tree could be reported."""


def emit_result(
    result: SuiteResult, collector: ResultCollector, task_id: str
) -> None:
    """Report a parsed result tree in document order."""
    log.info("Transforming results.")
    collector.start_task(task_id, result.started_at)
    if result.raw_report:
        collector.save_attachment(
            result.raw_report, REPORT_ATTACHMENT_LABEL, "text/xml", REPORT_ATTACHMENT_KIND
        )

    for module in result.modules:
        _emit_module(module, collector)

    collector.end(task_id, result.ended_at)


def _emit_module(module: ModuleResult, collector: ResultCollector) -> None:
    collector.start_module(module.identity, module.started_at)
    for case in module.cases:
        _emit_case(case, collector)
    collector.end(module.identity, module.ended_at)


def _emit_case(case: CaseResult, collector: ResultCollector) -> None:
    collector.start_case(case.identity, case.started_at)
    for step in case.steps:
        _emit_step(step, collector)

    if case.steps:
        collector.end(case.identity, case.ended_at)
    else:
        # Only passed configuration steps, all of them suppressed
        collector.end(case.identity, case.ended_at, Outcome.PASS)


def _emit_step(step: StepResult, collector: ResultCollector) -> None:
    collector.start_step(step.identity, step.started_at)
    if step.message:
        collector.add_message(TEAM_ENGINE_ERROR, "error", step.message)
    for attachment in step.attachments:
        collector.save_attachment(
            attachment.data, attachment.label, attachment.mime_type, attachment.kind
        )
    collector.end(step.identity, step.ended_at, step.outcome)


EventKind: TypeAlias = Literal[
    "start_task",
    "start_module",
    "start_case",
    "start_step",
    "message",
    "attachment",
    "end",
    "internal_error",
]

_LEVELS: Sequence[EventKind] = ("start_task", "start_module", "start_case", "start_step")


@dataclass(frozen=True, kw_only=True)
class CollectorEvent:
    """A single call received by the recording collector."""

    kind: EventKind
    identity: str | None = None
    timestamp: datetime | None = None
    outcome: Outcome | None = None
    text: str | None = None


@dataclass(kw_only=True)
class RecordedMessage:
    """Message added to an item."""

    identity: str
    template_key: str
    severity: str
    text: str

    def render(self, language: str = "en") -> str:
        """Render the message with its translation template."""
        return render_message(self.template_key, self.text, language)


@dataclass(kw_only=True)
class RecordingCollector:
    """In-memory result collector that checks the start/end nesting."""

    events: list[CollectorEvent] = field(default_factory=list)
    attachments: list[tuple[str, Attachment]] = field(default_factory=list)
    messages: list[RecordedMessage] = field(default_factory=list)
    outcomes: dict[str, Outcome | None] = field(default_factory=dict)
    error_message: str | None = None
    _open: list[str] = field(default_factory=list, repr=False)

    def start_task(self, identity: str, started_at: datetime) -> None:
        """Open the test task."""
        self._start("start_task", identity, started_at)

    def start_module(self, identity: str, started_at: datetime) -> None:
        """Open a test module."""
        self._start("start_module", identity, started_at)

    def start_case(self, identity: str, started_at: datetime | None = None) -> None:
        """Open a test case."""
        self._start("start_case", identity, started_at)

    def start_step(self, identity: str, started_at: datetime) -> None:
        """Open a test step."""
        self._start("start_step", identity, started_at)

    def add_message(self, template_key: str, severity: str, text: str) -> None:
        """Add a message to the currently open item."""
        identity = self._current("add_message")
        self.messages.append(
            RecordedMessage(
                identity=identity,
                template_key=template_key,
                severity=severity,
                text=text,
            )
        )
        self.events.append(CollectorEvent(kind="message", identity=identity, text=text))

    def save_attachment(
        self, data: bytes | str, label: str, mime_type: str | None, kind: str
    ) -> None:
        """Attach evidence to the currently open item."""
        identity = self._current("save_attachment")
        self._attach(identity, data, label, mime_type, kind)

    def end(
        self,
        identity: str,
        ended_at: datetime | None,
        outcome: Outcome | None = None,
    ) -> None:
        """Close the item opened with ``identity``."""
        if not self._open or self._open[-1] != identity:
            raise ProtocolViolationError(
                f"end({identity}) does not match the open item "
                f"{self._open[-1] if self._open else None}"
            )
        self._open.pop()
        self.outcomes[identity] = outcome
        self.events.append(
            CollectorEvent(
                kind="end", identity=identity, timestamp=ended_at, outcome=outcome
            )
        )

    def internal_error(
        self, message: str, data: bytes | str | None, mime_type: str | None
    ) -> None:
        """Record a fatal task error and its diagnostic attachment."""
        self.error_message = message
        self.events.append(CollectorEvent(kind="internal_error", text=message))
        if data is not None:
            self._attach(None, data, "Error", mime_type, "InternalError")

    def step_outcomes(self) -> Sequence[Outcome]:
        """Return the outcomes of all ended steps in reporting order."""
        started_steps = {e.identity for e in self.events if e.kind == "start_step"}
        return [
            e.outcome
            for e in self.events
            if e.kind == "end" and e.identity in started_steps and e.outcome is not None
        ]

    def summary(self) -> dict[str, Any]:
        """Return a JSON serializable summary of the recorded task."""
        counts = Counter(outcome.value for outcome in self.step_outcomes())
        return {
            "steps": sum(counts.values()),
            "outcomes": dict(sorted(counts.items())),
            "messages": [m.render() for m in self.messages],
            "attachments": [
                {"label": a.label, "mime_type": a.mime_type, "kind": a.kind}
                for _, a in self.attachments
            ],
            "error": self.error_message,
        }

    def _start(self, kind: EventKind, identity: str, started_at: datetime | None) -> None:
        depth = _LEVELS.index(kind)
        if len(self._open) != depth:
            raise ProtocolViolationError(
                f"{kind}({identity}) at nesting depth {len(self._open)}, expected {depth}"
            )
        self._open.append(identity)
        self.events.append(CollectorEvent(kind=kind, identity=identity, timestamp=started_at))

    def _current(self, operation: str) -> str:
        if not self._open:
            raise ProtocolViolationError(f"{operation} called outside of an open item")
        return self._open[-1]

    def _attach(
        self,
        identity: str | None,
        data: bytes | str,
        label: str,
        mime_type: str | None,
        kind: str,
    ) -> None:
        self.attachments.append(
            (
                identity or "",
                Attachment(data=data, label=label, mime_type=mime_type, kind=kind),
            )
        )
        self.events.append(CollectorEvent(kind="attachment", identity=identity, text=label))
