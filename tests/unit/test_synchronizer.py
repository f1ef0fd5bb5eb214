"""Tests for structure synchronization."""

import xml.etree.ElementTree as ET

from teamengine_driver.identity import identity_of
from teamengine_driver.models.definition import ExecutableTestSuite
from teamengine_driver.repository import InMemorySuiteRepository
from teamengine_driver.synchronizer import (
    StructureSynchronizer,
    derive_modules,
    materialize,
)
from teamengine_driver.testing.factories import ExecutableTestSuiteFactory
from teamengine_driver.testing.payloads import (
    class_element,
    method_element,
    module_element,
    results_document,
)


def _report(*modules: str) -> ET.Element:
    return ET.fromstring(results_document(*modules).encode())


def _ids(suite: ExecutableTestSuite) -> list[str]:
    return [
        node.id
        for module in suite.modules
        for node in [module, *module.cases, *(s for c in module.cases for s in c.steps)]
    ]


REPORT = _report(
    module_element(
        "wfs20",
        class_element(
            "Basic",
            method_element("setUp", is_config=True),
            method_element("getFeature", "FAIL"),
        ),
        class_element("Locking", method_element("lockFeature", "SKIP")),
    )
)


def test_derives_full_hierarchy_including_config_steps() -> None:
    """All test methods become steps, reported or not."""
    suite = ExecutableTestSuiteFactory.build()

    (module,) = derive_modules(suite, REPORT)

    assert module.label == "wfs20"
    assert [c.label for c in module.cases] == ["Basic", "Locking"]
    assert [s.label for s in module.cases[0].steps] == ["setUp", "getFeature"]
    step = module.cases[0].steps[1]
    assert step.id == identity_of(suite.scope_prefix, "Basic", "getFeature")
    assert step.type == "TestNG Test Step"
    assert step.statement_for_execution == "NOT_APPLICABLE"


def test_materialize_is_idempotent() -> None:
    """Materializing the same report twice does not duplicate nodes."""
    suite = ExecutableTestSuiteFactory.build()

    once = materialize(suite, REPORT)
    twice = materialize(once, REPORT)

    assert twice == once
    assert len(_ids(twice)) == len(set(_ids(twice))) == 6
    assert twice.lowest_level_item_size == 3


def test_materialize_merges_new_nodes() -> None:
    """Nodes of a later report are added next to the known ones."""
    suite = materialize(ExecutableTestSuiteFactory.build(), REPORT)
    later = _report(
        module_element(
            "wfs20",
            class_element("Basic", method_element("getFeatureById")),
        ),
        module_element("wfs20-transactions", class_element("Insert", method_element("insert"))),
    )

    merged = materialize(suite, later)

    assert [m.label for m in merged.modules] == ["wfs20", "wfs20-transactions"]
    assert [s.label for s in merged.modules[0].cases[0].steps] == [
        "setUp",
        "getFeature",
        "getFeatureById",
    ]
    assert [c.label for c in merged.modules[0].cases] == ["Basic", "Locking"]


def test_repeated_methods_become_one_step() -> None:
    """Equally named test methods of a class are one step definition."""
    report = _report(
        module_element(
            "wfs20",
            class_element("Basic", method_element("getFeature"), method_element("getFeature")),
        )
    )

    suite = materialize(ExecutableTestSuiteFactory.build(), report)

    assert [s.label for s in suite.modules[0].cases[0].steps] == ["getFeature"]


def test_different_suites_get_different_identities() -> None:
    """The same report yields distinct identities for distinct suites."""
    first = materialize(ExecutableTestSuiteFactory.build(id="a"), REPORT)
    second = materialize(ExecutableTestSuiteFactory.build(id="b"), REPORT)

    assert not set(_ids(first)) & set(_ids(second))


class TestStructureSynchronizer:
    """Tests for StructureSynchronizer.update_from_result."""

    def test_stores_suite_on_first_report(self) -> None:
        """The first report replaces the stored empty definition."""
        suite = ExecutableTestSuiteFactory.build()
        repository = InMemorySuiteRepository()
        repository.add(suite)

        updated_suite, updated = StructureSynchronizer(
            repository=repository
        ).update_from_result(suite, REPORT)

        assert updated
        assert repository.get_by_id(suite.id) == updated_suite
        assert updated_suite.lowest_level_item_size == 3

    def test_adds_unknown_suite(self) -> None:
        """Suites that are not stored yet are added."""
        suite = ExecutableTestSuiteFactory.build()
        repository = InMemorySuiteRepository()

        StructureSynchronizer(repository=repository).update_from_result(suite, REPORT)

        assert repository.exists(suite.id)

    def test_unchanged_structure_is_not_stored_again(self) -> None:
        """A report with a known structure does not update the store."""
        repository = InMemorySuiteRepository()
        synchronizer = StructureSynchronizer(repository=repository)
        suite, _ = synchronizer.update_from_result(
            ExecutableTestSuiteFactory.build(), REPORT
        )

        again, updated = synchronizer.update_from_result(suite, REPORT)

        assert not updated
        assert again is suite
        assert list(repository.suites) == [suite.id]
