"""Deterministic identities for suites and hierarchy nodes."""

import hashlib
import uuid


def name_uuid(name: str) -> str:
    """Return a version 3 UUID derived from the UTF-8 bytes of ``name``.

    Same construction as ``java.util.UUID.nameUUIDFromBytes``, so identities
    stay compatible with definitions created by the JVM based tooling.
    """
    digest = hashlib.md5(name.encode("utf-8"), usedforsecurity=False).digest()
    return str(uuid.UUID(bytes=digest, version=3))


def identity_of(
    scope_prefix: str, parent_name: str, node_name: str, suffix: str = ""
) -> str:
    """Return the identity of a node named ``node_name`` below ``parent_name``.

    ``scope_prefix`` is the suite id followed by the suite label, so equally
    named nodes of different suites never collide.
    """
    return name_uuid(scope_prefix + parent_name + node_name + suffix)


def suite_identity(suite_url: str) -> str:
    """Return the identity of a suite from its URL, ignoring the version segment."""
    return name_uuid(suite_base_url(suite_url))


def suite_base_url(suite_url: str) -> str:
    """Return the suite URL without its last (version) segment, keeping the slash."""
    stripped = suite_url.rstrip("/")
    return stripped[: stripped.rfind("/") + 1]


def suite_version(suite_url: str) -> str:
    """Return the last segment of the suite URL."""
    return suite_url.rstrip("/").rsplit("/", 1)[-1]
