"""Response streams that deliver the body of a classified response to the
caller chunk by chunk.
"""

from __future__ import annotations

import logging

from enum import Enum
from typing import Any, Optional, TYPE_CHECKING, Union

from trio import (
    BrokenResourceError,
    CancelScope,
    ClosedResourceError,
    EndOfChannel,
    Event,
    aclose_forcefully,
    open_memory_channel,
    open_nursery,
)
from trio.abc import ReceiveStream
from trio.lowlevel import checkpoint

from quest.body import send
from quest.classifier import ok
from quest.errors import ErrorContext, RequestError, UsageError
from quest.http.headers import Headers
from quest.http.request import Request
from quest.http.response import Response
from quest.http.transport import TCPTransport, Transport
from quest.settings import Settings

if TYPE_CHECKING:
    from trio import MemoryReceiveChannel, MemorySendChannel

__all__ = ("ResponseStream", "StreamState", "stream")


log = logging.getLogger(__name__)


class StreamState(Enum):
    """Possible states of a response stream."""

    OPEN = "OPEN"
    ENDED = "ENDED"
    ERRORED = "ERRORED"
    DESTROYED = "DESTROYED"


class ResponseStream(ReceiveStream):
    """Byte stream that sends a request, classifies its outcome and relays
    the body of the response to the consumer.

    The stream must be used as an async context manager. Entering the
    context starts a background task that sends the request and pushes the
    chunks of the response body into a buffer, in the order they arrive.
    The status code and the headers of the response become available before
    the first chunk is delivered; use `wait_connected()` to wait for them.

    Closing the stream before the body was read entirely destroys the stream:
    the request is aborted and errors of the transport that arrive
    afterwards are ignored.
    """

    request: Request
    """The request whose response is relayed by the stream."""

    response: Optional[Response]
    """The classified response, once available."""

    status: Optional[int]
    """The status code of the response, once available."""

    headers: Optional[Headers]
    """The headers of the response, once available."""

    state: StreamState
    """The state of the stream."""

    error_context: ErrorContext
    """Context of the original request, attached to the errors raised by the
    stream."""

    settings: Settings

    _cancel_scope: CancelScope
    _connected: Event
    _error: Optional[RequestError]
    _nursery_manager: Any
    _pending: bytes
    _receive_channel: MemoryReceiveChannel[bytes]
    _send_channel: MemorySendChannel[bytes]

    def __init__(
        self,
        request: Request,
        *,
        error: Optional[ErrorContext] = None,
        settings: Optional[Settings] = None,
    ):
        """Constructor.

        Parameters:
            request: the request to send; it must not have been sent yet
            error: context of the request that the caller issued originally
            settings: the settings to use; defaults to the settings of the
                transport of the request
        """
        if request.ended:
            raise UsageError("Request already sent")

        self.request = request
        self.settings = settings or request.transport.settings
        self.error_context = error or ErrorContext(
            url=request.url, headers=request.get_headers()
        )

        self.response = None
        self.status = None
        self.headers = None
        self.state = StreamState.OPEN

        self._cancel_scope = CancelScope()
        self._connected = Event()
        self._error = None
        self._nursery_manager = None
        self._pending = b""
        self._send_channel, self._receive_channel = open_memory_channel(
            max(self.settings.buffer_size, 0)
        )

    async def __aenter__(self) -> ResponseStream:
        if self._nursery_manager is not None:
            raise UsageError("Response stream was already started")

        self._nursery_manager = open_nursery()
        nursery = await self._nursery_manager.__aenter__()
        nursery.start_soon(self._run)
        return self

    async def __aexit__(self, exc_type, exc_value, traceback) -> bool:
        try:
            await self.aclose()
        finally:
            # Exceptions of the body of the context are not forwarded to the
            # nursery; the background task never raises anything but
            # cancellation
            await self._nursery_manager.__aexit__(None, None, None)
        return False

    @property
    def connected(self) -> bool:
        """Whether the status code and headers of the response are known."""
        return self.status is not None

    async def aclose(self) -> None:
        """Closes the stream.

        If the stream has not ended yet, it becomes destroyed: the request is
        aborted and any error that arrives afterwards is ignored.
        """
        if self.state is StreamState.OPEN:
            self.state = StreamState.DESTROYED
            self._cancel_scope.cancel()
            if self.response is None or not self.response.complete:
                # The user destroyed the stream
                await self.request.abort()

        self._receive_channel.close()
        await checkpoint()

    async def receive_some(self, max_bytes: Optional[int] = None) -> bytes:
        """Returns the next chunk of the response body.

        Returns:
            the next chunk, or an empty bytes object if the body has ended or
            the error of the stream has already been reported

        Raises:
            RequestError: if the request failed. The error is raised only
                once.
            trio.ClosedResourceError: if the stream was closed by the
                consumer
        """
        if self.state is StreamState.DESTROYED:
            raise ClosedResourceError("response stream was closed")

        if self.state is not StreamState.OPEN:
            await checkpoint()
            return b""

        if self._pending:
            await checkpoint()
            chunk = self._pending
        else:
            try:
                chunk = await self._receive_channel.receive()
            except EndOfChannel:
                if self._error is not None:
                    self._raise_error()
                self.state = StreamState.ENDED
                return b""
            except ClosedResourceError:
                raise ClosedResourceError("response stream was closed") from None

        if max_bytes is not None and 0 < max_bytes < len(chunk):
            chunk, self._pending = chunk[:max_bytes], chunk[max_bytes:]
        else:
            self._pending = b""

        return chunk

    async def wait_connected(self) -> ResponseStream:
        """Waits until the status code and the headers of the response are
        known.

        Raises:
            RequestError: if the request failed before a response was
                classified successfully
            trio.ClosedResourceError: if the stream was closed by the
                consumer
        """
        await self._connected.wait()
        if not self.connected:
            if self.state is StreamState.DESTROYED:
                raise ClosedResourceError("response stream was closed")
            if self._error is not None and self.state is StreamState.OPEN:
                self._raise_error()
            raise ClosedResourceError("response stream has no response")
        return self

    def _raise_error(self) -> None:
        error, self._error = self._error, None
        if error is None:
            raise RuntimeError("response stream has no error to report")
        self.state = StreamState.ERRORED
        raise error

    async def _run(self) -> None:
        with self._cancel_scope:
            try:
                await self._pump()
            except (RequestError, BrokenResourceError) as ex:
                if self.state is StreamState.DESTROYED:
                    # Errors after the consumer destroyed the stream are
                    # expected
                    log.debug("Ignoring error of destroyed stream: %s", ex)
                elif isinstance(ex, RequestError):
                    self._error = ex
            finally:
                self._connected.set()
                self._send_channel.close()
                if self.response is not None:
                    await aclose_forcefully(self.response)

    async def _pump(self) -> None:
        response = await ok(
            self.request, error=self.error_context, settings=self.settings
        )
        self.response = response
        self.status = response.status
        self.headers = response.headers
        self._connected.set()

        while True:
            chunk = await response.receive_some(self.settings.chunk_size)
            if not chunk:
                break
            await self._send_channel.send(chunk)


def stream(
    source: Union[str, Request],
    headers_or_body: Any = None,
    *,
    transport: Optional[Transport] = None,
    settings: Optional[Settings] = None,
) -> ResponseStream:
    """Creates a response stream for a GET request to the given URL, or for
    a request object that was created earlier.

    The request is validated immediately but sent only when the returned
    stream is entered as an async context manager.

    Parameters:
        source: a URL or a request that has not been sent yet
        headers_or_body: the headers of the request when ``source`` is a
            URL, or the body to send when ``source`` is a request
        transport: the transport to use for URLs; defaults to a TCP
            transport
        settings: the settings to use

    Raises:
        UnsupportedURLError: if the URL is not supported
        TypeError: if the source is neither a URL nor a request
    """
    if isinstance(source, Request):
        request = send(source, headers_or_body)
        return ResponseStream(request, settings=settings)
    elif isinstance(source, str):
        transport = transport or TCPTransport(settings)
        request = transport.request("GET", source, headers_or_body)
        context = ErrorContext(url=source, headers=request.get_headers())
        return ResponseStream(request, error=context, settings=settings)
    else:
        raise TypeError("Expected a URL string or a Request object")
