"""Minimal HTTP request/response convenience layer on top of Trio.

Requests are created with `request()`, their bodies are written with
`send()`, and their responses are turned into a stream (`stream()`), a
buffered body (`fetch()`, `read()`) or parsed JSON (`json()`). Responses
with error status codes and transport failures are reported as subclasses of
`RequestError`.
"""

from .client import Client, default_client, sock
from .errors import (
    Error,
    ErrorContext,
    InvalidJSONError,
    RequestError,
    TooManyRedirectsError,
    UnknownMethodError,
    UnsupportedURLError,
    UsageError,
)
from .http import (
    AccessDeniedError,
    AuthenticationNeededError,
    Headers,
    NotFoundError,
    Request,
    Response,
    ResponseError,
    TransportError,
)
from .settings import Settings
from .streams import ResponseStream, StreamState
from .version import __version__, __version_info__

request = default_client.request
stream = default_client.stream
fetch = default_client.fetch
json = default_client.json
send = default_client.send
ok = default_client.ok
read = default_client.read

__all__ = (
    "__version__",
    "__version_info__",
    "AccessDeniedError",
    "AuthenticationNeededError",
    "Client",
    "Error",
    "ErrorContext",
    "Headers",
    "InvalidJSONError",
    "NotFoundError",
    "Request",
    "RequestError",
    "Response",
    "ResponseError",
    "ResponseStream",
    "Settings",
    "StreamState",
    "TooManyRedirectsError",
    "TransportError",
    "UnknownMethodError",
    "UnsupportedURLError",
    "UsageError",
    "fetch",
    "json",
    "ok",
    "read",
    "request",
    "send",
    "sock",
    "stream",
)
