"""Transformation of a TestNG result document into a result tree."""

import logging
import xml.etree.ElementTree as ET
from collections.abc import Sequence
from dataclasses import dataclass

from teamengine_driver.classifier import classify
from teamengine_driver.dialects import ReportDialect, testng_dialect
from teamengine_driver.errors import StructuralParseError
from teamengine_driver.identity import identity_of
from teamengine_driver.models.result import (
    Attachment,
    CaseResult,
    ModuleResult,
    Outcome,
    StepResult,
    SuiteResult,
)
from teamengine_driver.report_xml import (
    CASE,
    EXCEPTION,
    MODULE,
    STEP,
    children,
    first_child,
    is_config_step,
    is_xml,
    node_text,
    parse_timestamp,
    require_attribute,
    suite_element,
)

log = logging.getLogger(__name__)

INAPPLICABLE = frozenset([Outcome.SKIPPED, Outcome.NOT_APPLICABLE])


def node_identity(scope_prefix: str, parent: ET.Element, node: ET.Element) -> str:
    """Return the identity of ``node`` from its own and its parent's name."""
    return identity_of(
        scope_prefix, require_attribute(parent, "name"), require_attribute(node, "name")
    )


def extract_attachments(step: ET.Element) -> Sequence[Attachment]:
    """Collect the request and response evidence recorded for a test method."""
    attachments: list[Attachment] = []
    for group in children(step, "attributes"):
        for attribute in children(group, "attribute"):
            name = require_attribute(attribute, "name")
            value = node_text(attribute).strip()
            match name:
                case "response":
                    attachments.append(
                        Attachment(
                            data=value,
                            label="Service Response",
                            mime_type="text/xml" if is_xml(value) else None,
                            kind="ServiceResponse",
                        )
                    )
                case "request" if is_xml(value):
                    attachments.append(
                        Attachment(
                            data=value,
                            label="Request Parameter",
                            mime_type="text/xml",
                            kind="PostData",
                        )
                    )
                case "request":
                    attachments.append(
                        Attachment(
                            data=value,
                            label="Request Parameter",
                            mime_type="text/plain",
                            kind="GetParameter",
                        )
                    )
                case _:
                    attachments.append(
                        Attachment(data=value, label=name, mime_type=None, kind=name)
                    )
    return attachments


def extract_message(step: ET.Element, dialect: ReportDialect) -> str | None:
    """Return the exception message of a test method, if there is one."""
    exception = first_child(step, EXCEPTION)
    if exception is None:
        return None

    message = first_child(exception, "message")
    if message is not None:
        if text := node_text(message).strip():
            return text
        if dialect.message_fallback == "missing-only":
            return None

    if exception_class := exception.get("class"):
        return f"No message provided. Exception class {exception_class}"
    return None


@dataclass(frozen=True, kw_only=True)
class ReportParser:
    """Builds the immutable result tree of one report.

    Configuration steps are filtered here according to the dialect, so the
    tree contains exactly the steps that will be reported.
    """

    scope_prefix: str
    dialect: ReportDialect = testng_dialect

    def parse(self, root: ET.Element, raw_report: bytes = b"") -> SuiteResult:
        """Parse a report root element.

        Raises:
            StructuralParseError: If the document is not a TestNG report or
                lacks required attributes

        """
        suite = suite_element(root)
        passed = _count(root, "passed")
        failed = _count(root, "failed")
        log.info("%d of %d assertions passed", passed, passed + failed)

        return SuiteResult(
            label=require_attribute(suite, "name"),
            started_at=parse_timestamp(suite, "started-at"),
            ended_at=parse_timestamp(suite, "finished-at"),
            passed=passed,
            failed=failed,
            modules=[self._parse_module(suite, module) for module in children(suite, MODULE)],
            raw_report=raw_report,
        )

    def _parse_module(self, suite: ET.Element, module: ET.Element) -> ModuleResult:
        return ModuleResult(
            identity=node_identity(self.scope_prefix, suite, module),
            label=require_attribute(module, "name"),
            description=module.get("description"),
            started_at=parse_timestamp(module, "started-at"),
            ended_at=parse_timestamp(module, "finished-at"),
            cases=[self._parse_case(module, case) for case in children(module, CASE)],
        )

    def _parse_case(self, module: ET.Element, case: ET.Element) -> CaseResult:
        steps = [self._parse_step(case, step) for step in children(case, STEP)]
        reported = self._select_reported(steps)

        # Configuration methods may finish after the ordinary ones
        ended_from = reported or steps
        return CaseResult(
            identity=node_identity(self.scope_prefix, module, case),
            label=require_attribute(case, "name"),
            description=case.get("description"),
            started_at=steps[0].started_at if steps else None,
            ended_at=max((s.ended_at for s in ended_from), default=None),
            steps=reported,
        )

    def _parse_step(self, case: ET.Element, step: ET.Element) -> StepResult:
        return StepResult(
            identity=node_identity(self.scope_prefix, case, step),
            label=require_attribute(step, "name"),
            description=step.get("description"),
            started_at=parse_timestamp(step, "started-at"),
            ended_at=parse_timestamp(step, "finished-at"),
            outcome=classify(step, self.dialect.classification),
            is_config=is_config_step(step),
            message=extract_message(step, self.dialect),
            attachments=extract_attachments(step),
        )

    def _select_reported(self, steps: Sequence[StepResult]) -> Sequence[StepResult]:
        reported: list[StepResult] = []
        inapplicable_config_seen = False
        for step in steps:
            if not step.is_config or step.outcome is Outcome.FAIL:
                reported.append(step)
            elif self.dialect.config_step_policy == "all-non-passing":
                if step.outcome is not Outcome.PASS:
                    reported.append(step)
            elif step.outcome in INAPPLICABLE and not inapplicable_config_seen:
                reported.append(step)
                inapplicable_config_seen = True
        return reported


def _count(root: ET.Element, name: str) -> int:
    value = root.get(name, "0")
    try:
        return int(value)
    except ValueError as e:
        raise StructuralParseError(
            f"Invalid '{name}' count in TestNG result XML: '{value}'"
        ) from e
