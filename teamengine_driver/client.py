"""Remote invocation of suites on a TEAM Engine instance."""

import logging
import xml.etree.ElementTree as ET
from collections.abc import AsyncGenerator, Sequence
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from html.parser import HTMLParser
from urllib.parse import quote

import aiohttp
from yarl import URL

from teamengine_driver.config import TeamEngineConfig
from teamengine_driver.errors import InvocationTimeout, MalformedResponse, ServerError

log = logging.getLogger(__name__)

RUN_PATH = "run"
ENDPOINT_PARAMETER = "wfs"

# Characters left as is in the endpoint; '&' is escaped so TEAM Engine does
# not cut the endpoint's own query string off.
_ENDPOINT_SAFE = ":/?=,;@+$!*'()%~"


@dataclass(frozen=True, kw_only=True)
class ResultDocument:
    """XML report returned by a suite run."""

    root: ET.Element
    content: bytes = field(repr=False)


def build_run_url(remote_resource: str, service_endpoint: str) -> str:
    """Return the URL that runs a suite against ``service_endpoint``."""
    escaped = quote(service_endpoint, safe=_ENDPOINT_SAFE)
    return f"{remote_resource}{RUN_PATH}?{ENDPOINT_PARAMETER}={escaped}"


def format_duration(seconds: float) -> str:
    """Format a timeout as minutes and seconds, e.g. ``1 minute 5 seconds``."""
    minutes, secs = divmod(int(seconds), 60)
    parts = []
    if minutes:
        parts.append(f"{minutes} minute{'s' if minutes != 1 else ''}")
    if secs or not minutes:
        parts.append(f"{secs} second{'s' if secs != 1 else ''}")
    return " ".join(parts)


class _ParagraphCollector(HTMLParser):
    def __init__(self) -> None:
        super().__init__()
        self.paragraphs: list[str] = []
        self._buffer: list[str] | None = None

    def handle_starttag(self, tag: str, attrs: list[tuple[str, str | None]]) -> None:
        # Paragraphs do not nest, an opening tag closes the open one
        if tag == "p":
            self._flush()
            self._buffer = []

    def handle_endtag(self, tag: str) -> None:
        if tag == "p":
            self._flush()

    def handle_data(self, data: str) -> None:
        if self._buffer is not None:
            self._buffer.append(data)

    def close(self) -> None:
        super().close()
        self._flush()

    def _flush(self) -> None:
        if self._buffer is not None:
            if text := " ".join("".join(self._buffer).split()):
                self.paragraphs.append(text)
            self._buffer = None


def extract_paragraphs(html: str) -> Sequence[str]:
    """Return the text of the paragraphs of an HTML error page."""
    collector = _ParagraphCollector()
    collector.feed(html)
    collector.close()
    return collector.paragraphs


def _looks_like_html(content_type: str, text: str) -> bool:
    if "html" in content_type:
        return True
    head = text.lstrip()[:15].lower()
    return head.startswith(("<!doctype html", "<html"))


@dataclass(frozen=True, kw_only=True)
class TeamEngineClient:
    """Client for one TEAM Engine instance."""

    config: TeamEngineConfig
    session: aiohttp.ClientSession = field(repr=False)

    @classmethod
    @asynccontextmanager
    async def from_config(
        cls, config: TeamEngineConfig
    ) -> AsyncGenerator["TeamEngineClient", None]:
        """Create client with managed session lifecycle."""
        async with aiohttp.ClientSession(auth=config.credentials) as session:
            yield cls(config=config, session=session)

    async def invoke(self, remote_resource: str, service_endpoint: str) -> ResultDocument:
        """Run a suite remotely and return its report.

        Blocks until the report is received or the configured timeout
        expires. Failed invocations are not retried.

        Raises:
            ServerError: The service answered with a failure status or
                could not be reached
            InvocationTimeout: No answer within the configured timeout
            MalformedResponse: The answer is incomplete or not an XML document

        """
        url = build_run_url(remote_resource, service_endpoint)
        timeout = self.config.timeout_seconds
        log.info(
            "Invoking TEAM Engine remotely. This may take a while. "
            "Progress messages are not supported."
        )
        log.info("Timeout is set to: %s", format_duration(timeout))

        try:
            async with self.session.get(
                URL(url, encoded=True),
                timeout=aiohttp.ClientTimeout(total=timeout),
            ) as response:
                if not 200 <= response.status < 300:
                    raise await self._server_error(response)
                content = await response.read()
        except TimeoutError as e:
            raise await self._timeout(remote_resource) from e
        except aiohttp.ClientConnectionError as e:
            log.info("OGC TEAM Engine could not be reached: %s", e)
            raise ServerError("", reason=str(e)) from e
        except aiohttp.ClientPayloadError as e:
            raise MalformedResponse(
                f"OGC TEAM Engine returned an incomplete response: {e}"
            ) from e
        except aiohttp.ClientError as e:
            log.info("Request to OGC TEAM Engine failed: %s", e)
            raise ServerError("", reason=str(e)) from e

        log.info("Results received.")
        try:
            root = ET.fromstring(content)
        except ET.ParseError as e:
            raise MalformedResponse(
                f"OGC TEAM Engine returned an invalid XML document: {e}"
            ) from e
        return ResultDocument(root=root, content=content)

    async def exists(self, url: str) -> bool:
        """Check whether ``url`` answers without an error status."""
        try:
            async with self.session.get(
                url,
                timeout=aiohttp.ClientTimeout(total=self.config.probe_timeout_seconds),
            ) as response:
                return response.status < 400
        except (aiohttp.ClientError, TimeoutError) as e:
            log.debug("Availability check of %s failed: %s", url, e)
            return False

    async def _server_error(self, response: aiohttp.ClientResponse) -> ServerError:
        log.info("OGC TEAM Engine returned an error.")
        text = await response.text(errors="replace")
        html = text if text and _looks_like_html(response.content_type, text) else None
        message = "\n".join(extract_paragraphs(html)) if html else ""
        if message:
            log.error("Error message: %s", message)
        else:
            log.error("Response message: %s %s", response.status, response.reason)
        return ServerError(
            message, status=response.status, reason=response.reason, html_body=html
        )

    async def _timeout(self, remote_resource: str) -> InvocationTimeout:
        timeout = self.config.timeout_seconds
        log.info("The OGC TEAM Engine is taking too long to respond.")
        log.info("Checking availability...")
        available = await self.exists(remote_resource)
        if available:
            verdict = (
                "The OGC TEAM Engine is available. You may need to ask the "
                "system administrator to increase the test driver timeout."
            )
            log.info("...[OK]. %s", verdict)
        else:
            verdict = (
                "The OGC TEAM Engine is not available. "
                "Try re-running the test after a few minutes."
            )
            log.info("...[FAILED]. %s", verdict)
        return InvocationTimeout(
            "OGC TEAM Engine is taking too long to respond. "
            f"Timeout after {format_duration(timeout)}. {verdict}",
            timeout_seconds=timeout,
            service_available=available,
        )
