"""Test factories for generating test data."""

from polyfactory import Use
from polyfactory.factories import DataclassFactory
from polyfactory.factories.pydantic_factory import ModelFactory

from teamengine_driver.models.definition import (
    ExecutableTestSuite,
    TestModuleDefinition,
    TestObject,
    TestTaskDefinition,
)
from teamengine_driver.models.result import Attachment

SUITE_URL = "http://teamengine.test/teamengine/rest/suites/wfs20/1.26/"
SERVICE_ENDPOINT = (
    "https://wfs.example.com/wfs?request=GetCapabilities&service=wfs"
)


class ExecutableTestSuiteFactory(ModelFactory[ExecutableTestSuite]):
    """Factory for suites whose hierarchy is not materialized yet."""

    label = "WFS 2.0 (OGC 09-025r2/ISO 19142) Conformance Test Suite"
    remote_resource = SUITE_URL
    version = "1.26"
    modules = Use(list[TestModuleDefinition])


class TestObjectFactory(ModelFactory[TestObject]):
    """Factory for TestObject."""

    service_endpoint = SERVICE_ENDPOINT


class TestTaskDefinitionFactory(ModelFactory[TestTaskDefinition]):
    """Factory for TestTaskDefinition."""

    suite = Use(ExecutableTestSuiteFactory.build)
    test_object = Use(TestObjectFactory.build)


class AttachmentFactory(DataclassFactory[Attachment]):
    """Factory for Attachment."""

    mime_type = None
