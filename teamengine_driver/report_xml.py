"""Access helpers for the TestNG result document returned by TEAM Engine."""

import xml.etree.ElementTree as ET
from collections.abc import Iterator
from datetime import UTC, datetime

from teamengine_driver.errors import StructuralParseError

REPORT_ROOT = "testng-results"
SUITE = "suite"
MODULE = "test"
CASE = "class"
STEP = "test-method"
EXCEPTION = "exception"


def local_name(element: ET.Element) -> str:
    """Return the tag of ``element`` without its namespace."""
    tag = element.tag
    return tag.rsplit("}", 1)[-1] if tag.startswith("{") else tag


def children(element: ET.Element, name: str) -> Iterator[ET.Element]:
    """Yield the direct child elements called ``name`` in document order."""
    for child in element:
        if isinstance(child.tag, str) and local_name(child) == name:
            yield child


def first_child(element: ET.Element, name: str) -> ET.Element | None:
    """Return the first direct child element called ``name``."""
    return next(children(element, name), None)


def require_attribute(element: ET.Element, name: str) -> str:
    """Return an attribute that the report must carry."""
    value = element.get(name)
    if value is None:
        raise StructuralParseError(
            f"Element <{local_name(element)}> lacks required attribute '{name}'"
        )
    return value


def parse_timestamp(element: ET.Element, name: str) -> datetime:
    """Parse an ISO 8601 timestamp attribute such as ``started-at``."""
    value = require_attribute(element, name)
    try:
        timestamp = datetime.fromisoformat(value)
    except ValueError as e:
        raise StructuralParseError(
            f"Invalid timestamp in <{local_name(element)} {name}='{value}'>"
        ) from e
    # Timestamps without offset are UTC
    if timestamp.tzinfo is None:
        timestamp = timestamp.replace(tzinfo=UTC)
    return timestamp


def node_text(element: ET.Element) -> str:
    """Return the concatenated text content of ``element``."""
    return "".join(element.itertext())


def is_xml(text: str) -> bool:
    """Check whether ``text`` is a well-formed XML document."""
    if not text.lstrip().startswith("<"):
        return False
    try:
        ET.fromstring(text)
    except ET.ParseError:
        return False
    return True


def is_config_step(step: ET.Element) -> bool:
    """Check whether a test method is a setup or teardown method."""
    return step.get("is-config", "false") == "true"


def suite_element(root: ET.Element) -> ET.Element:
    """Return the single suite below a verified report root."""
    if local_name(root) != REPORT_ROOT:
        raise StructuralParseError(
            f"Expected a TestNG result XML, found root element <{local_name(root)}>"
        )
    suite = first_child(root, SUITE)
    if suite is None:
        raise StructuralParseError("TestNG result XML contains no <suite> element")
    return suite
