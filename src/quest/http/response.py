"""HTTP response object for the low-level HTTP library."""

from __future__ import annotations

from typing import Optional, TYPE_CHECKING

from trio import BrokenResourceError, ClosedResourceError
from trio.abc import ReceiveStream

from .dechunkers import Dechunker, NullDechunker, ResponseDechunker
from .errors import TransportError, transport_error_from_exception
from .headers import Headers
from .streams import BufferedReceiveStream

if TYPE_CHECKING:
    from .request import Request

__all__ = ("Response",)


#: Status codes of responses that never have a body
_STATUS_CODES_WITHOUT_BODY = frozenset((204, 304))


def _protocol_error(message: str) -> TransportError:
    return TransportError(message, code="EPROTO")


class Response(ReceiveStream):
    """HTTP response object that reads from a Trio stream whose head (status
    line and headers) has already been parsed, and de-chunks chunked
    responses automatically.

    Use `Response.read_from()` to parse the head of a response from a stream.
    """

    status: int
    """The HTTP status code of the response."""

    reason: str
    """The reason phrase sent by the server in the status line."""

    protocol: str
    """The protocol string of the status line, e.g., ``HTTP/1.1``."""

    headers: Headers
    """The headers of the response."""

    request: Optional[Request]
    """The request that this response belongs to."""

    _stream: BufferedReceiveStream
    _dechunker: Optional[Dechunker]
    _remaining: Optional[int]
    _chunk_size: int
    _complete: bool
    _closed: bool

    def __init__(
        self,
        stream: BufferedReceiveStream,
        *,
        status: int,
        headers: Headers,
        reason: str = "",
        protocol: str = "HTTP/1.1",
        request: Optional[Request] = None,
        chunk_size: int = 65536,
    ):
        """Constructor.

        Parameters:
            stream: the stream to read the body of the response from
            status: the status code of the response
            headers: the headers of the response
            reason: the reason phrase of the response
            protocol: the protocol string of the response
            request: the request that the response belongs to
            chunk_size: maximum number of bytes to read in one step
        """
        self._stream = stream
        self._chunk_size = chunk_size
        self._closed = False

        self.status = status
        self.reason = reason
        self.protocol = protocol
        self.headers = headers
        self.request = request

        self._dechunker = None
        self._remaining = None
        self._complete = False
        self._setup_framing()

    @classmethod
    async def read_from(
        cls,
        stream: BufferedReceiveStream,
        request: Optional[Request] = None,
        *,
        chunk_size: int = 65536,
    ) -> Response:
        """Reads the status line and the headers of a response from the
        given stream, leaving the stream at the first byte of the body.

        Raises:
            TransportError: if the connection was closed before the head of
                the response was received or if the head is malformed
        """
        try:
            line = await stream.receive_line()
        except ValueError as ex:
            raise _protocol_error(str(ex)) from ex

        if not line:
            raise TransportError("socket hang up", code="ECONNRESET")

        parts = line.strip().split(None, 2)
        if len(parts) < 2 or not parts[0].startswith(b"HTTP/"):
            raise _protocol_error("Invalid response line: {0!r}".format(line))

        protocol = parts[0].decode("ascii", "replace")
        try:
            status = int(parts[1])
        except ValueError:
            raise _protocol_error(
                "Invalid status code: {0!r}".format(parts[1])
            ) from None
        reason = parts[2].decode("latin-1") if len(parts) > 2 else ""

        items: list[tuple[str, str]] = []
        while True:
            try:
                line = await stream.receive_line()
            except ValueError as ex:
                raise _protocol_error(str(ex)) from ex

            if not line:
                raise TransportError("socket hang up", code="ECONNRESET")

            if line[:1] in (b" ", b"\t") and items:
                # Obsolete line folding; continues the previous header
                name, value = items[-1]
                items[-1] = name, value + " " + line.strip().decode("latin-1")
                continue

            line = line.strip()
            if not line:
                break

            key, sep, value = line.partition(b":")
            if not sep or not key.strip():
                raise _protocol_error(
                    "Found invalid HTTP header line: {0!r}".format(line)
                )

            items.append((key.strip().decode("latin-1"), value.strip().decode("latin-1")))

        return cls(
            stream,
            status=status,
            reason=reason,
            protocol=protocol,
            headers=Headers(items),
            request=request,
            chunk_size=chunk_size,
        )

    def _setup_framing(self) -> None:
        method = self.request.method if self.request is not None else None
        if (
            method == "HEAD"
            or 100 <= self.status < 200
            or self.status in _STATUS_CODES_WITHOUT_BODY
        ):
            self._remaining = 0
            self._complete = True
            return

        transfer_encoding = self.headers.get("transfer-encoding", "")
        if "chunked" in transfer_encoding.lower():
            self._dechunker = ResponseDechunker()
            return

        content_length = self.headers.get("content-length")
        if content_length is not None:
            try:
                self._remaining = int(content_length.split(",")[0])
            except ValueError:
                raise _protocol_error(
                    "Invalid Content-Length: {0!r}".format(content_length)
                ) from None
            if self._remaining <= 0:
                self._remaining = 0
                self._complete = True
            return

        # No framing information; the body ends when the connection closes
        self._dechunker = NullDechunker()

    @property
    def complete(self) -> bool:
        """Whether the entire body of the response has been read."""
        return self._complete

    @property
    def closed(self) -> bool:
        """Whether the response (and the underlying connection) was closed."""
        return self._closed

    def getheader(self, header: str, default: Optional[str] = None) -> Optional[str]:
        """Returns the value of the given header or the given default value."""
        return self.headers.get(header, default)

    async def aclose(self) -> None:
        """Closes the response object and the connection it reads from."""
        if not self._closed:
            self._closed = True
            await self._stream.aclose()

    async def receive_some(self, max_bytes: Optional[int] = None) -> bytes:
        """Reads at most the given number of bytes from the body of the
        response.

        Parameters:
            max_bytes: the maximum number of bytes to read

        Returns:
            the bytes read from the response body; an empty bytes object if
            the body has ended

        Raises:
            TransportError: if the connection failed or was closed before the
                whole body was received
        """
        if self._complete:
            return b""

        to_read = self._chunk_size if max_bytes is None else max_bytes

        try:
            while True:
                if self._remaining is not None:
                    to_read = min(to_read, self._remaining)

                data = await self._stream.receive_some(to_read)
                if not data:
                    if isinstance(self._dechunker, NullDechunker):
                        self._complete = True
                        return b""
                    raise TransportError("aborted", code="ECONNRESET")

                if self._remaining is not None:
                    self._remaining -= len(data)
                    if self._remaining <= 0:
                        self._complete = True
                    return data

                assert self._dechunker is not None
                try:
                    chunk = self._dechunker.feed(data)
                except ValueError as ex:
                    raise _protocol_error(str(ex)) from ex

                if self._dechunker.finished:
                    self._complete = True

                # The dechunker may hand us an empty chunk if we have only
                # seen framing bytes so far. It does not mean EOF so we need
                # to continue with the next iteration.
                if chunk or self._complete:
                    return chunk
        except (OSError, BrokenResourceError, ClosedResourceError) as ex:
            raise transport_error_from_exception(ex) from ex
