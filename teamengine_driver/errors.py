"""Exceptions raised by the TEAM Engine driver."""


class DriverError(Exception):
    """Base class for driver errors."""


class RemoteFault(DriverError):
    """The remote invocation did not produce a usable report.

    A fault terminates the whole test task; it is never a per-step outcome.
    """

    @property
    def message(self) -> str:
        """Human readable fault message."""
        return str(self)


class ServerError(RemoteFault):
    """The remote service answered with a failure status."""

    def __init__(
        self,
        message: str,
        *,
        status: int | None = None,
        reason: str | None = None,
        html_body: str | None = None,
    ) -> None:
        super().__init__(message)
        self.status = status
        self.reason = reason
        self.html_body = html_body


class InvocationTimeout(RemoteFault):
    """The remote service did not answer within the configured timeout."""

    def __init__(
        self, message: str, *, timeout_seconds: float, service_available: bool
    ) -> None:
        super().__init__(message)
        self.timeout_seconds = timeout_seconds
        self.service_available = service_available


class MalformedResponse(RemoteFault):
    """The response body is not an XML document."""


class StructuralParseError(DriverError):
    """The report does not have the expected TestNG structure."""


class InitializationError(DriverError):
    """The driver could not reach the remote service during initialization."""


class DialectNotFoundError(DriverError):
    """Raised when a report dialect is not found."""


class ProtocolViolationError(RuntimeError):
    """Start and end reports do not nest properly."""
