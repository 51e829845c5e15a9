"""Error taxonomy for the monitor.

Upstream fetch errors are never raised across the shell boundary;
the upstream client returns them inside a FetchResult so the poll
loop can skip the cycle and carry on.
"""


class MonitorError(Exception):
    """Base class for all monitor errors."""


class UpstreamError(MonitorError):
    """A request to the upstream API failed.

    Attributes:
        url: The URL that was requested
    """

    def __init__(self, message: str, url: str = "") -> None:
        super().__init__(message)
        self.url = url


class UpstreamTimeoutError(UpstreamError):
    """The request did not complete within its timeout."""


class NetworkError(UpstreamError):
    """Connection refused, DNS failure or another transport error."""


class HttpError(UpstreamError):
    """The upstream answered with a non-2xx status.

    Attributes:
        status_code: HTTP status code of the response
    """

    def __init__(self, message: str, url: str = "", status_code: int = 0) -> None:
        super().__init__(message, url)
        self.status_code = status_code


class MalformedDataError(UpstreamError):
    """The response body was not JSON or lacked expected fields."""


class MissingMetadataError(MonitorError):
    """Station metadata is unavailable, so readings cannot be placed."""


class ConfigError(MonitorError):
    """Configuration is invalid and the process cannot start."""
