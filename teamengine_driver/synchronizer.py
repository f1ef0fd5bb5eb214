"""Derivation of a suite's module/case/step hierarchy from a report.

TEAM Engine does not publish the structure of its suites. It only becomes
known once a report has been received, so every report is merged into the
stored suite definition. Identities are deterministic, which makes merging
the same report again a no-op.
"""

import logging
import xml.etree.ElementTree as ET
from collections.abc import Sequence
from dataclasses import dataclass

from teamengine_driver.models.definition import (
    ExecutableTestSuite,
    TestCaseDefinition,
    TestModuleDefinition,
    TestStepDefinition,
)
from teamengine_driver.report_parser import node_identity
from teamengine_driver.report_xml import (
    CASE,
    MODULE,
    STEP,
    children,
    require_attribute,
    suite_element,
)
from teamengine_driver.repository import SuiteRepository

log = logging.getLogger(__name__)


def derive_modules(
    suite: ExecutableTestSuite, root: ET.Element
) -> list[TestModuleDefinition]:
    """Build the module/case/step definitions contained in a report."""
    prefix = suite.scope_prefix
    suite_node = suite_element(root)
    return [
        TestModuleDefinition(
            id=node_identity(prefix, suite_node, module),
            label=require_attribute(module, "name"),
            description=module.get("description"),
            cases=[
                TestCaseDefinition(
                    id=node_identity(prefix, module, case),
                    label=require_attribute(case, "name"),
                    description=case.get("description"),
                    steps=[
                        TestStepDefinition(
                            id=node_identity(prefix, case, step),
                            label=require_attribute(step, "name"),
                            description=step.get("description"),
                        )
                        for step in children(case, STEP)
                    ],
                )
                for case in children(module, CASE)
            ],
        )
        for module in children(suite_node, MODULE)
    ]


def merge_modules(
    existing: Sequence[TestModuleDefinition], derived: Sequence[TestModuleDefinition]
) -> list[TestModuleDefinition]:
    """Merge derived modules into existing ones by identity.

    Existing nodes keep their position, new nodes are appended in report
    order. Labels and descriptions are taken from the derived nodes.
    """
    merged = {module.id: module for module in existing}
    for module in derived:
        if (current := merged.get(module.id)) is not None:
            module = module.model_copy(
                update={"cases": _merge_cases(current.cases, module.cases)}
            )
        merged[module.id] = module
    return list(merged.values())


def _merge_cases(
    existing: Sequence[TestCaseDefinition], derived: Sequence[TestCaseDefinition]
) -> list[TestCaseDefinition]:
    merged = {case.id: case for case in existing}
    for case in derived:
        if (current := merged.get(case.id)) is not None:
            case = case.model_copy(
                update={"steps": _merge_steps(current.steps, case.steps)}
            )
        merged[case.id] = case
    return list(merged.values())


def _merge_steps(
    existing: Sequence[TestStepDefinition], derived: Sequence[TestStepDefinition]
) -> list[TestStepDefinition]:
    merged = {step.id: step for step in existing}
    for step in derived:
        merged[step.id] = step
    return list(merged.values())


def materialize(suite: ExecutableTestSuite, root: ET.Element) -> ExecutableTestSuite:
    """Return ``suite`` with the hierarchy of the report merged into it."""
    modules = merge_modules(suite.modules, derive_modules(suite, root))
    return suite.model_copy(update={"modules": modules})


@dataclass(frozen=True, kw_only=True)
class StructureSynchronizer:
    """Keeps stored suite definitions in line with the reports received."""

    repository: SuiteRepository

    def update_from_result(
        self, suite: ExecutableTestSuite, root: ET.Element
    ) -> tuple[ExecutableTestSuite, bool]:
        """Merge the report hierarchy into the suite and store it if it changed.

        Returns:
            The merged suite and whether the stored definition was updated

        """
        merged = materialize(suite, root)
        if merged == suite and self.repository.exists(suite.id):
            return suite, False

        if self.repository.exists(suite.id):
            self.repository.replace(merged)
        else:
            self.repository.add(merged)
        log.info(
            "Internal model of suite %s updated (%d test steps)",
            suite.label,
            merged.lowest_level_item_size,
        )
        return merged, True
