"""Base classes for all the exceptions that are thrown from the quest
package.
"""

from dataclasses import dataclass, field
from typing import Optional, TypeVar, Union

__all__ = (
    "Error",
    "ErrorContext",
    "InvalidJSONError",
    "RequestError",
    "TooManyRedirectsError",
    "UnknownMethodError",
    "UnsupportedURLError",
    "UsageError",
)


class Error(RuntimeError):
    """Base class for all exceptions that are thrown from the quest package."""

    pass


class UsageError(Error, ValueError):
    """Error thrown synchronously when the caller uses the API incorrectly,
    before any network activity takes place.
    """

    pass


class UnknownMethodError(UsageError):
    """Error thrown when the HTTP method of a request is not recognized."""

    def __init__(self, method: str):
        super().__init__(f"Unknown HTTP method: {method}")
        self.method = method


class UnsupportedURLError(UsageError):
    """Error thrown when the URL of a request cannot be parsed or uses a
    scheme that we do not support.
    """

    def __init__(self, url: str):
        super().__init__(f"Unsupported url: {url}")
        self.url = url


Code = Union[int, str]


class RequestError(Error):
    """Normalized error that is thrown when a request fails, either because
    the transport failed or because the server responded with an error.

    Exactly one such error is produced for a failed request.
    """

    code: Optional[Code]
    """Transport error code (e.g., ``ECONNREFUSED``) or HTTP status code."""

    message: str
    """Human-readable description of the error."""

    body: Optional[bytes]
    """The raw response body, attached only when it could not be parsed."""

    url: Optional[str]
    """The URL of the request that the caller issued originally."""

    headers: Optional[dict[str, str]]
    """The headers of the request that the caller issued originally."""

    def __init__(
        self,
        message: str,
        *,
        code: Optional[Code] = None,
        body: Optional[bytes] = None,
        url: Optional[str] = None,
        headers: Optional[dict[str, str]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.body = body
        self.url = url
        self.headers = headers

    def __str__(self) -> str:
        return self.message


class TooManyRedirectsError(RequestError):
    """Error thrown when a request was redirected more times than allowed."""

    pass


class InvalidJSONError(RequestError):
    """Error thrown when a response body that should contain JSON cannot be
    parsed. The raw body is attached to the error for diagnostics.
    """

    pass


E = TypeVar("E", bound=RequestError)


@dataclass
class ErrorContext:
    """Information about the original request that is attached to every
    classified error, including errors raised for redirected requests.
    """

    url: Optional[str] = None
    headers: dict[str, str] = field(default_factory=dict)

    def attach(self, error: E) -> E:
        """Attaches the context to the given error unless the error already
        has a context of its own.
        """
        if error.url is None:
            error.url = self.url
        if error.headers is None:
            error.headers = dict(self.headers)
        return error
