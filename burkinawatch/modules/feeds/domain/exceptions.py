"""Feed aggregation exceptions.

Fetch and classification failures are carried as values inside results;
they are only raised inside a single source's or item's own scope.
"""

from fastapi import status

from burkinawatch.core.domain.exceptions import DomainException


class SourceFetchError(DomainException):
    """Base class for per-source fetch failures."""

    http_status_code = status.HTTP_502_BAD_GATEWAY
    error_code = "SOURCE_FETCH_ERROR"

    def __init__(self, source_name: str, detail: str):
        self.source_name = source_name
        super().__init__(f"{source_name}: {detail}")


class SourceUnreachable(SourceFetchError):
    """Connection-level failure (DNS, refused, TLS, protocol)."""

    error_code = "SOURCE_UNREACHABLE"


class SourceTimeout(SourceFetchError):
    """The request exceeded the fetch timeout."""

    http_status_code = status.HTTP_504_GATEWAY_TIMEOUT
    error_code = "SOURCE_TIMEOUT"


class SourceHTTPError(SourceFetchError):
    """The upstream answered with a non-2xx status."""

    error_code = "SOURCE_HTTP_ERROR"

    def __init__(self, source_name: str, status_code: int):
        self.status_code = status_code
        super().__init__(source_name, f"HTTP {status_code}")


class MalformedPayload(DomainException):
    """A payload could not be parsed as a feed at all."""

    error_code = "MALFORMED_PAYLOAD"

    def __init__(self, source_name: str, detail: str):
        self.source_name = source_name
        super().__init__(f"Malformed payload from {source_name}: {detail}")


class ClassificationUnavailable(DomainException):
    """The classifier cannot be called (no credential or disabled)."""

    http_status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    error_code = "CLASSIFICATION_UNAVAILABLE"


class ClassificationParseFailure(DomainException):
    """The classifier answered with something that is not a usable object."""

    error_code = "CLASSIFICATION_PARSE_FAILURE"
