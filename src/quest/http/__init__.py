"""Low-level HTTP library built on top of Trio streams."""

from .errors import (
    AccessDeniedError,
    AuthenticationNeededError,
    NotFoundError,
    ResponseError,
    TransportError,
)
from .headers import Headers, prepare_headers
from .request import Request
from .response import Response
from .target import SocketTarget, URLTarget, parse_url
from .transport import TCPTransport, Transport, UnixSocketTransport

__all__ = (
    "AccessDeniedError",
    "AuthenticationNeededError",
    "Headers",
    "NotFoundError",
    "Request",
    "Response",
    "ResponseError",
    "SocketTarget",
    "TCPTransport",
    "Transport",
    "TransportError",
    "URLTarget",
    "UnixSocketTransport",
    "parse_url",
    "prepare_headers",
)
