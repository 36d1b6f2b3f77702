"""HTTP request object for the low-level HTTP library."""

from __future__ import annotations

import logging

from typing import Any, Optional, TYPE_CHECKING, Union
from urllib.parse import quote

from trio import BrokenResourceError, ClosedResourceError, aclose_forcefully
from trio.abc import Stream

from quest.constants import METHODS
from quest.errors import UnknownMethodError, UsageError

from .errors import TransportError, transport_error_from_exception
from .headers import prepare_headers
from .response import Response
from .streams import BufferedReceiveStream
from .target import Target

if TYPE_CHECKING:
    from .transport import Transport

__all__ = ("Request", "check_method")


log = logging.getLogger(__name__)

#: Characters that we do not escape in the request target
_SAFE_PATH_CHARS = "/%?&=:;@!$'()*+,~[]"


def check_method(method: str) -> str:
    """Checks whether the given HTTP method is recognized.

    Raises:
        UnknownMethodError: if the method is not recognized
    """
    if not isinstance(method, str) or method not in METHODS:
        raise UnknownMethodError(method)
    return method


class Request:
    """HTTP request handle.

    The request collects headers and body bytes until it is ended. Ending the
    request opens a connection through the transport that created the
    request, sends the request and waits for the head of the response.
    """

    method: str
    """The HTTP method of the request."""

    target: Target
    """The address that the request is sent to."""

    headers: dict[str, str]
    """The headers to send with the request."""

    ended: bool
    """Whether the request was finalized; no writes are permitted after."""

    destroyed: bool
    """Whether the request was aborted."""

    response: Optional[Response]
    """The response to the request, once received."""

    transport: Transport

    _body: list[bytes]
    _stream: Optional[Stream]

    def __init__(
        self,
        transport: Transport,
        method: str,
        target: Target,
        headers: Optional[dict[str, Any]] = None,
    ):
        """Constructs a new HTTP request object.

        In most cases, it is easier to use the ``request()`` method of a
        transport, which also parses the target address.

        Parameters:
            transport: the transport that opens the connection of the request
            method: the HTTP method of the request
            target: the address to send the request to
            headers: the headers of the request. ``None`` values are
                dropped, lists are joined with commas.

        Raises:
            UnknownMethodError: if the method is not recognized
        """
        self.transport = transport
        self.method = check_method(method)
        self.target = target
        self.headers = prepare_headers(headers)
        self.ended = False
        self.destroyed = False
        self.response = None

        self._body = []
        self._stream = None

        if not self.has_header("Host"):
            self.set_header("Host", target.host_header)

    def __repr__(self) -> str:
        return "<{0} {1} {2}>".format(
            self.__class__.__name__, self.method, self.target.url
        )

    @property
    def body(self) -> bytes:
        """The body bytes written into the request so far."""
        return b"".join(self._body)

    @property
    def url(self) -> str:
        """The URL of the request."""
        return self.target.url

    def _find_header(self, name: str) -> Optional[str]:
        lowered = name.lower()
        for key in self.headers:
            if key.lower() == lowered:
                return key
        return None

    def get_header(self, name: str) -> Optional[str]:
        """Returns the value of the header with the given name (compared
        case-insensitively), or ``None`` if the header is not set.
        """
        key = self._find_header(name)
        return self.headers[key] if key is not None else None

    def get_headers(self) -> dict[str, str]:
        """Returns a copy of the headers of the request."""
        return dict(self.headers)

    def has_header(self, name: str) -> bool:
        """Checks whether the request contains the given HTTP header."""
        return self._find_header(name) is not None

    def remove_header(self, name: str) -> None:
        """Removes the given HTTP header from the request, if it is set."""
        self._ensure_not_ended()
        key = self._find_header(name)
        if key is not None:
            del self.headers[key]

    def set_header(self, name: str, value: Any) -> None:
        """Sets an HTTP header of the request, replacing any earlier header
        with the same name.

        Raises:
            UsageError: if the request has already been ended or the header
                is invalid
        """
        self._ensure_not_ended()
        normalized = prepare_headers({name: value})
        self.remove_header(name)
        self.headers.update(normalized)

    def write(self, data: Union[bytes, str]) -> Request:
        """Queues some bytes to be sent in the body of the request.

        Raises:
            UsageError: if the request has already been ended
        """
        self._ensure_not_ended()
        if isinstance(data, str):
            data = data.encode("utf-8")
        self._body.append(bytes(data))
        return self

    async def abort(self) -> None:
        """Aborts the request, closing its connection if it is open."""
        self.destroyed = True
        stream, self._stream = self._stream, None
        if stream is not None:
            await aclose_forcefully(stream)

    async def end(self) -> Response:
        """Finalizes the request, sends it to the server and waits for the
        head of the response.

        Returns:
            the response to the request. Its body has not been read yet.

        Raises:
            UsageError: if the request has already been sent
            TransportError: if the connection to the server failed
        """
        if self.ended:
            raise UsageError("Request already sent")
        self.ended = True

        if self.destroyed:
            raise TransportError("socket hang up", code="ECONNRESET")

        log.debug("Sending %s request to %s", self.method, self.url)

        data = self._encode()
        self._stream = stream = await self.transport.connect(self)
        try:
            await stream.send_all(data)
            reader = BufferedReceiveStream(
                stream, chunk_size=self.transport.settings.chunk_size
            )
            self.response = await Response.read_from(
                reader, self, chunk_size=self.transport.settings.chunk_size
            )
        except (OSError, BrokenResourceError, ClosedResourceError) as ex:
            await aclose_forcefully(stream)
            raise transport_error_from_exception(ex) from ex
        except BaseException:
            await aclose_forcefully(stream)
            raise

        return self.response

    async def ok(self) -> Response:
        """Sends the request and classifies its response; see
        `quest.classifier.ok()`.
        """
        from quest.classifier import ok

        return await ok(self)

    async def send(self, body: Any = None) -> Response:
        """Writes the given body into the request and then ends it."""
        from quest.body import send

        return await send(self, body).end()

    def _encode(self) -> bytes:
        """Encodes the head and the body of the request in HTTP/1.1 wire
        format.
        """
        body = self.body
        if body and not self.has_header("Content-Length"):
            self.headers["Content-Length"] = str(len(body))
        if not self.has_header("Connection"):
            self.headers["Connection"] = "close"

        path = quote(self.target.path, safe=_SAFE_PATH_CHARS)
        lines = ["{0} {1} HTTP/1.1".format(self.method, path)]
        lines.extend("{0}: {1}".format(key, value) for key, value in self.headers.items())
        head = "\r\n".join(lines) + "\r\n\r\n"
        return head.encode("latin-1") + body

    def _ensure_not_ended(self) -> None:
        if self.ended:
            raise UsageError("Cannot modify a request after it has been sent")
