"""Integration tests for the TEAM Engine client."""

import asyncio
import re
from collections.abc import AsyncGenerator

import aiohttp
import pytest
from aioresponses import aioresponses as aioresponses_cls

from teamengine_driver.client import TeamEngineClient
from teamengine_driver.config import TeamEngineConfig
from teamengine_driver.errors import InvocationTimeout, MalformedResponse, ServerError
from teamengine_driver.testing.factories import SERVICE_ENDPOINT, SUITE_URL
from teamengine_driver.testing.payloads import (
    class_element,
    html_error_page,
    method_element,
    module_element,
    results_document,
)

RUN_URL = re.compile(r"^http://teamengine\.test/.*/run\?.*wfs=.*$")


@pytest.fixture
def config() -> TeamEngineConfig:
    """Create test configuration."""
    return TeamEngineConfig(url="http://teamengine.test/teamengine", timeout_seconds=10)


@pytest.fixture
async def client(
    config: TeamEngineConfig, aioresponses: aioresponses_cls
) -> AsyncGenerator[TeamEngineClient, None]:
    """Create client with managed session."""
    async with TeamEngineClient.from_config(config) as impl:
        yield impl


class TestInvoke:
    """Tests for invoke."""

    async def test_returns_parsed_report(
        self, client: TeamEngineClient, aioresponses: aioresponses_cls
    ) -> None:
        """Parses the XML body of a successful run."""
        body = results_document(
            module_element("wfs20", class_element("Basic", method_element("m")))
        )
        aioresponses.get(RUN_URL, status=200, body=body, content_type="text/xml")

        document = await client.invoke(SUITE_URL, SERVICE_ENDPOINT)

        assert document.root.tag == "testng-results"
        assert document.content == body.encode()

    async def test_requests_run_resource_of_suite(
        self, client: TeamEngineClient, aioresponses: aioresponses_cls
    ) -> None:
        """Runs the suite through the run resource below its URL."""
        aioresponses.get(RUN_URL, status=200, body=results_document())

        await client.invoke(SUITE_URL, SERVICE_ENDPOINT)

        ((method, url),) = aioresponses.requests.keys()
        assert method == "GET"
        assert url.path == "/teamengine/rest/suites/wfs20/1.26/run"
        assert "wfs" in url.query

    async def test_server_error_with_html_body(
        self, client: TeamEngineClient, aioresponses: aioresponses_cls
    ) -> None:
        """Joins the paragraphs of an HTML error page."""
        html = html_error_page("Error A", "Error B")
        aioresponses.get(RUN_URL, status=500, body=html, content_type="text/html")

        with pytest.raises(ServerError) as exc_info:
            await client.invoke(SUITE_URL, SERVICE_ENDPOINT)

        assert exc_info.value.message == "Error A\nError B"
        assert exc_info.value.status == 500
        assert exc_info.value.html_body == html

    async def test_server_error_without_html_body(
        self, client: TeamEngineClient, aioresponses: aioresponses_cls
    ) -> None:
        """Non HTML error bodies give an empty message."""
        aioresponses.get(RUN_URL, status=503, body="unavailable", content_type="text/plain")

        with pytest.raises(ServerError) as exc_info:
            await client.invoke(SUITE_URL, SERVICE_ENDPOINT)

        assert exc_info.value.message == ""
        assert exc_info.value.status == 503
        assert exc_info.value.html_body is None

    async def test_connection_failure_is_server_error(
        self, client: TeamEngineClient, aioresponses: aioresponses_cls
    ) -> None:
        """Connection level failures are server errors without status."""
        aioresponses.get(RUN_URL, exception=aiohttp.ClientConnectionError("refused"))

        with pytest.raises(ServerError) as exc_info:
            await client.invoke(SUITE_URL, SERVICE_ENDPOINT)

        assert exc_info.value.status is None
        assert exc_info.value.reason == "refused"

    async def test_truncated_body_is_malformed_response(
        self, client: TeamEngineClient, aioresponses: aioresponses_cls
    ) -> None:
        """Bodies that break off while read are malformed responses."""
        aioresponses.get(RUN_URL, exception=aiohttp.ClientPayloadError("truncated"))

        with pytest.raises(MalformedResponse, match="incomplete response"):
            await client.invoke(SUITE_URL, SERVICE_ENDPOINT)

    async def test_other_client_error_is_server_error(
        self, client: TeamEngineClient, aioresponses: aioresponses_cls
    ) -> None:
        """Remaining aiohttp failures are server errors without status."""
        aioresponses.get(RUN_URL, exception=aiohttp.InvalidURL("bad url"))

        with pytest.raises(ServerError) as exc_info:
            await client.invoke(SUITE_URL, SERVICE_ENDPOINT)

        assert exc_info.value.status is None

    async def test_timeout_with_available_service(
        self, client: TeamEngineClient, aioresponses: aioresponses_cls
    ) -> None:
        """Probes the suite and reports that the service is alive but slow."""
        aioresponses.get(RUN_URL, exception=asyncio.TimeoutError())
        aioresponses.get(SUITE_URL, status=200, body="<html/>")

        with pytest.raises(InvocationTimeout) as exc_info:
            await client.invoke(SUITE_URL, SERVICE_ENDPOINT)

        fault = exc_info.value
        assert fault.service_available
        assert fault.timeout_seconds == 10
        assert "taking too long to respond" in fault.message
        assert "Timeout after 10 seconds" in fault.message
        assert "is available" in fault.message

    async def test_timeout_with_unavailable_service(
        self, client: TeamEngineClient, aioresponses: aioresponses_cls
    ) -> None:
        """Reports that the service is down when the probe fails."""
        aioresponses.get(RUN_URL, exception=asyncio.TimeoutError())
        aioresponses.get(SUITE_URL, status=404)

        with pytest.raises(InvocationTimeout) as exc_info:
            await client.invoke(SUITE_URL, SERVICE_ENDPOINT)

        assert not exc_info.value.service_available
        assert "is not available" in exc_info.value.message

    async def test_malformed_response(
        self, client: TeamEngineClient, aioresponses: aioresponses_cls
    ) -> None:
        """Bodies that are not XML are malformed responses."""
        aioresponses.get(RUN_URL, status=200, body="<testng-results><suite>")

        with pytest.raises(MalformedResponse, match="invalid XML"):
            await client.invoke(SUITE_URL, SERVICE_ENDPOINT)

    async def test_does_not_retry(
        self, client: TeamEngineClient, aioresponses: aioresponses_cls
    ) -> None:
        """A failed invocation is attempted exactly once."""
        aioresponses.get(RUN_URL, status=500, repeat=True)

        with pytest.raises(ServerError):
            await client.invoke(SUITE_URL, SERVICE_ENDPOINT)

        assert sum(len(calls) for calls in aioresponses.requests.values()) == 1


class TestExists:
    """Tests for exists."""

    async def test_true_for_success(
        self, client: TeamEngineClient, aioresponses: aioresponses_cls
    ) -> None:
        """Reachable resources exist."""
        aioresponses.get(SUITE_URL, status=200)

        assert await client.exists(SUITE_URL)

    async def test_false_for_error_status(
        self, client: TeamEngineClient, aioresponses: aioresponses_cls
    ) -> None:
        """Error statuses mean the resource does not exist."""
        aioresponses.get(SUITE_URL, status=404)

        assert not await client.exists(SUITE_URL)

    async def test_false_for_connection_error(
        self, client: TeamEngineClient, aioresponses: aioresponses_cls
    ) -> None:
        """Unreachable hosts do not exist."""
        aioresponses.get(SUITE_URL, exception=aiohttp.ClientConnectionError())

        assert not await client.exists(SUITE_URL)
