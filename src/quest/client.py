"""High-level client API of the quest package."""

from typing import Any, Awaitable, Optional, Union

from trio.abc import ReceiveStream

from quest.body import send
from quest.buffering import drain, parse_json, read
from quest.classifier import ok
from quest.http.request import Request
from quest.http.response import Response
from quest.http.transport import TCPTransport, Transport, UnixSocketTransport
from quest.settings import Settings
from quest.streams import ResponseStream, stream

__all__ = ("Client", "default_client", "sock")


async def _fetch(response_stream: ResponseStream) -> bytes:
    async with response_stream:
        return await drain(response_stream)


async def _json(response_stream: ResponseStream) -> Any:
    async with response_stream:
        return await parse_json(response_stream)


class Client:
    """Client object that creates requests through a single transport and
    converts their responses into streams, buffered bodies or parsed JSON.

    Every method that returns an awaitable validates its arguments
    immediately, before the awaitable is awaited.
    """

    settings: Settings
    transport: Transport

    def __init__(
        self,
        transport: Optional[Transport] = None,
        settings: Optional[Settings] = None,
    ):
        """Constructor.

        Parameters:
            transport: the transport to send requests with; defaults to a
                TCP transport that handles ``http://`` and ``https://`` URLs
            settings: the settings of the client; defaults to the settings
                of the transport or the default settings
        """
        if settings is None:
            settings = transport.settings if transport is not None else Settings()
        self.settings = settings
        self.transport = transport or TCPTransport(settings)

    def request(
        self, method: str, target: Any, headers: Optional[dict[str, Any]] = None
    ) -> Request:
        """Creates a request that is not sent yet.

        Raises:
            UnknownMethodError: if the method is not recognized
            UnsupportedURLError: if the target is not supported
        """
        return self.transport.request(method, target, headers)

    def stream(
        self, source: Union[str, Request], headers_or_body: Any = None
    ) -> ResponseStream:
        """Creates a response stream for a GET request to the given target, or
        for the given request; see `quest.streams.stream()`.
        """
        return stream(
            source, headers_or_body, transport=self.transport, settings=self.settings
        )

    def fetch(
        self, source: Union[str, Request], headers_or_body: Any = None
    ) -> Awaitable[bytes]:
        """Sends a GET request to the given target (or sends the given
        request) and buffers the entire response body into memory.
        """
        return _fetch(self.stream(source, headers_or_body))

    def json(
        self,
        source: Union[str, Request, ReceiveStream],
        headers_or_body: Any = None,
    ) -> Awaitable[Any]:
        """Sends a GET request to the given target (or sends the given
        request) and parses the response body as JSON. When the source is
        a byte stream, its contents are parsed instead.

        The awaitable resolves to ``None`` if the response body is empty.
        """
        if isinstance(source, ReceiveStream):
            return parse_json(source)
        return _json(self.stream(source, headers_or_body))

    @staticmethod
    def send(request: Request, body: Any = None) -> Request:
        """Writes a payload into the given request; see `quest.body.send()`."""
        return send(request, body)

    async def ok(self, request: Request) -> Response:
        """Sends the given request and classifies its outcome; see
        `quest.classifier.ok()`.
        """
        return await ok(request, settings=self.settings)

    @staticmethod
    def read(source: Union[ReceiveStream, Request]) -> Awaitable[bytes]:
        """Buffers a byte stream or the response of a request into memory;
        see `quest.buffering.read()`.
        """
        return read(source)


def sock(socket_path: str, settings: Optional[Settings] = None) -> Client:
    """Creates a client that sends requests to a server listening on a local
    Unix domain socket. The targets of the requests are paths, e.g.::

        client = sock("/var/run/docker.sock")
        info = await client.json("/info")
    """
    return Client(UnixSocketTransport(socket_path, settings))


#: Client that is used by the module-level functions of the package
default_client = Client(settings=Settings.from_env())
