import errno
import json

from typing import Any, Callable, Iterable, Optional, Union

from pytest import fixture
from trio import ClosedResourceError, Event
from trio.abc import Stream
from trio.lowlevel import checkpoint

from quest.http.target import SocketTarget, Target, URLTarget
from quest.http.transport import TCPTransport, UnixSocketTransport
from quest.settings import Settings

#: A scripted item is either a chunk of bytes that the server sends, an
#: exception to raise from the stream or an event to wait for
ScriptItem = Union[bytes, BaseException, Event]
Responder = Callable[[bytes], Iterable[ScriptItem]]


def http_response(
    status: int = 200,
    headers: Optional[dict[str, Any]] = None,
    body: Union[bytes, str, None] = None,
    *,
    reason: str = "OK",
) -> bytes:
    """Renders a complete HTTP/1.1 response. A ``Content-Length`` header is
    added for the body unless the headers already contain framing headers.
    """
    if isinstance(body, str):
        body = body.encode("utf-8")
    headers = dict(headers or {})
    lowered = {key.lower() for key in headers}
    if body is not None and not lowered & {"content-length", "transfer-encoding"}:
        headers["Content-Length"] = str(len(body))
    lines = [f"HTTP/1.1 {status} {reason}"]
    for key, value in headers.items():
        values = value if isinstance(value, list) else [value]
        lines.extend(f"{key}: {item}" for item in values)
    head = ("\r\n".join(lines) + "\r\n\r\n").encode("latin-1")
    return head + (body or b"")


def parse_request(raw: bytes) -> tuple[str, dict[str, str], bytes]:
    """Splits a raw HTTP request into its request line, its headers (with
    lowercase names) and its body.
    """
    head, _, body = raw.partition(b"\r\n\r\n")
    lines = head.decode("latin-1").split("\r\n")
    headers = {}
    for line in lines[1:]:
        key, _, value = line.partition(":")
        headers[key.strip().lower()] = value.strip()
    return lines[0], headers, body


def respond_with(*items: ScriptItem) -> Responder:
    """Creates a responder that sends the given items regardless of the
    request.
    """
    return lambda raw: list(items)


def echo_json(raw: bytes) -> list[ScriptItem]:
    """Responder that sends the body of the request back as JSON."""
    _, headers, body = parse_request(raw)
    payload = json.loads(body) if body else None
    return [http_response(200, {"Content-Type": "application/json"}, json.dumps(payload))]


class FakeStream(Stream):
    """In-memory bidirectional stream that records the bytes sent by the
    client and replays a scripted response.
    """

    def __init__(self, responder: Responder):
        self.sent = bytearray()
        self.closed = False
        self._responder = responder
        self._script: Optional[list[ScriptItem]] = None

    async def aclose(self) -> None:
        self.closed = True
        await checkpoint()

    async def send_all(self, data) -> None:
        await checkpoint()
        if self.closed:
            raise ClosedResourceError()
        self.sent += data

    async def wait_send_all_might_not_block(self) -> None:
        await checkpoint()

    async def receive_some(self, max_bytes: Optional[int] = None) -> bytes:
        await checkpoint()
        if self._script is None:
            self._script = list(self._responder(bytes(self.sent)))

        while True:
            if self.closed:
                raise ClosedResourceError()
            if not self._script:
                return b""

            item = self._script.pop(0)
            if isinstance(item, Event):
                await item.wait()
                continue
            if isinstance(item, BaseException):
                raise item

            if max_bytes is not None and len(item) > max_bytes:
                self._script.insert(0, item[max_bytes:])
                item = item[:max_bytes]
            return item


class FakeTransportMixin:
    """Transport that serves requests from a routing table instead of the
    network. Unknown targets are refused.
    """

    routes: dict[str, Responder]
    streams: list[FakeStream]
    requests: list[bytes]

    def _route_key(self, target: Target) -> str:
        raise NotImplementedError

    def route(self, key: str, responder: Responder) -> None:
        self.routes[key] = responder

    async def open_stream(self, target: Target) -> Stream:
        await checkpoint()
        responder = self.routes.get(self._route_key(target))
        if responder is None:
            raise ConnectionRefusedError(errno.ECONNREFUSED, "Connection refused")
        stream = FakeStream(responder)
        self.streams.append(stream)
        return stream

    @property
    def sent(self) -> list[bytes]:
        """The raw requests sent through the transport, in order."""
        return [bytes(stream.sent) for stream in self.streams]


class FakeTCPTransport(FakeTransportMixin, TCPTransport):
    def __init__(self, settings: Optional[Settings] = None):
        super().__init__(settings)
        self.routes = {}
        self.streams = []

    def _route_key(self, target: Target) -> str:
        assert isinstance(target, URLTarget)
        return target.url


class FakeUnixSocketTransport(FakeTransportMixin, UnixSocketTransport):
    def __init__(self, socket_path: str, settings: Optional[Settings] = None):
        super().__init__(socket_path, settings)
        self.routes = {}
        self.streams = []

    def _route_key(self, target: Target) -> str:
        assert isinstance(target, SocketTarget)
        return target.path


@fixture
def transport() -> FakeTCPTransport:
    return FakeTCPTransport()


@fixture
def socket_transport() -> FakeUnixSocketTransport:
    return FakeUnixSocketTransport("/var/run/test.sock")
