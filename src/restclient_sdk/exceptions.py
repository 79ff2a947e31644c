"""
Custom exceptions for the REST client SDK.
Provides meaningful error classes for client consumers.

Every error raised by an exchange derives from `RestClientError`, so callers
can catch the whole family at once or pick out the specific failure they care
about.
"""

from typing import TYPE_CHECKING, Any, Optional

if TYPE_CHECKING:
    from restclient_sdk.entity import Entity


class RestClientError(Exception):
    """
    Base exception for all SDK-level failures.

    Args:
        message (str): Short explanation of the error.
        details (Any | None): Optional structured details.
    """

    def __init__(self, message: str, details: Optional[Any] = None):
        super().__init__(message)
        self.details = details


class UrlError(RestClientError):
    """The base URL or the target URL could not be parsed."""


class UnsupportedEntityError(RestClientError):
    """The entity's content does not match any supported shape for its content type."""


class TransportError(RestClientError):
    """Network-level failure while sending the request or reading the response."""


class ExchangeTimeoutError(RestClientError, TimeoutError):
    """The exchange did not complete before its deadline."""


class CancellationError(RestClientError):
    """The exchange was aborted through its cancellation event."""


class DecodeError(RestClientError):
    """The response body was received but could not be decoded into the target."""


class ConfigError(RestClientError):
    """Invalid construction parameters, e.g. for an authenticator."""


class AuthError(RestClientError):
    """The authentication sub-exchange failed to produce a token."""


class FailedResponseError(RestClientError):
    """
    The server responded, but with a non-2xx status code.

    Attributes:
        status_code (int): Numeric status code, e.g. 500.
        status_line (str): Code and reason phrase, e.g. "500 Internal Server Error".
        entity (Entity): Captured response body as raw bytes, tagged with the
            response's declared content type.
    """

    body_excerpt_limit = 100

    def __init__(self, status_code: int, status_line: str, entity: "Entity"):
        self.status_code = status_code
        self.status_line = status_line
        self.entity = entity
        super().__init__(self._build_message())

    def _build_message(self) -> str:
        content = self.entity.content if self.entity is not None else None
        if isinstance(content, (bytes, bytearray)):
            excerpt = bytes(content[: self.body_excerpt_limit])
            return f"{self.status_line} body=[{excerpt.decode('utf-8', errors='replace')}]"
        return self.status_line
