from pytest import mark, raises
from trio import BrokenResourceError

from conftest import http_response, respond_with
from quest.buffering import drain
from quest.http.errors import TransportError
from quest.http.headers import Headers
from quest.http.response import Response
from quest.http.streams import BufferedReceiveStream

URL = "http://example.com/widgets"


async def get(transport, *items, method="GET"):
    transport.route(URL, respond_with(*items))
    return await transport.request(method, URL).end()


@mark.trio
async def test_response_with_content_length(transport):
    response = await get(
        transport,
        http_response(200, {"Content-Type": "text/plain"}, "hello world"),
    )

    assert response.status == 200
    assert response.reason == "OK"
    assert response.protocol == "HTTP/1.1"
    assert response.headers["content-type"] == "text/plain"
    assert response.getheader("Content-Length") == "11"
    assert not response.complete

    assert await drain(response) == b"hello world"
    assert response.complete
    assert await response.receive_some() == b""


@mark.trio
async def test_response_ignores_bytes_after_content_length(transport):
    raw = http_response(200, {"Content-Length": "5"}) + b"hello, extra bytes"
    response = await get(transport, raw)
    assert await drain(response) == b"hello"


@mark.trio
async def test_response_head_and_body_in_separate_chunks(transport):
    raw = http_response(200, body="0123456789")
    head, body = raw[:-10], raw[-10:]
    response = await get(transport, head[:7], head[7:], body[:3], body[3:])

    assert response.status == 200
    assert await response.receive_some(4) == b"012"
    assert await drain(response) == b"3456789"


@mark.trio
async def test_chunked_response(transport):
    response = await get(
        transport,
        http_response(200, {"Transfer-Encoding": "chunked"}),
        b"5\r\nhello\r\n",
        b"6\r\n world\r\n",
        b"0\r\n\r\n",
    )

    assert await drain(response) == b"hello world"
    assert response.complete


@mark.trio
async def test_response_read_until_close(transport):
    response = await get(transport, http_response(200), b"streamed ", b"until close")
    assert await drain(response) == b"streamed until close"
    assert response.complete


@mark.trio
@mark.parametrize("status", [204, 304])
async def test_response_without_body(transport, status):
    response = await get(transport, http_response(status, {"Content-Length": "10"}))
    assert response.complete
    assert await drain(response) == b""


@mark.trio
async def test_response_to_head_request(transport):
    response = await get(
        transport, http_response(200, {"Content-Length": "1234"}), method="HEAD"
    )
    assert response.headers["content-length"] == "1234"
    assert await drain(response) == b""


@mark.trio
async def test_response_with_folded_and_repeated_headers(transport):
    raw = (
        b"HTTP/1.1 200 OK\r\n"
        b"X-Long: first\r\n"
        b"  second\r\n"
        b"Vary: Accept\r\n"
        b"Vary: Origin\r\n"
        b"Content-Length: 0\r\n"
        b"\r\n"
    )
    response = await get(transport, raw)

    assert response.headers["x-long"] == "first second"
    assert response.headers["vary"] == "Accept, Origin"


@mark.trio
async def test_connection_closed_before_content_length(transport):
    response = await get(transport, http_response(200, {"Content-Length": "100"}), b"partial")

    assert await response.receive_some() == b"partial"
    with raises(TransportError) as info:
        await response.receive_some()
    assert info.value.code == "ECONNRESET"
    assert info.value.message == "aborted"


@mark.trio
async def test_connection_closed_before_terminal_chunk(transport):
    response = await get(
        transport,
        http_response(200, {"Transfer-Encoding": "chunked"}),
        b"5\r\nhello\r\n",
    )

    with raises(TransportError) as info:
        await drain(response)
    assert info.value.code == "ECONNRESET"


@mark.trio
async def test_connection_reset_mid_body(transport):
    response = await get(
        transport,
        http_response(200, {"Content-Length": "100"}),
        b"partial",
        BrokenResourceError("connection reset"),
    )

    assert await response.receive_some() == b"partial"
    with raises(TransportError) as info:
        await response.receive_some()
    assert info.value.code == "ECONNRESET"
    assert isinstance(info.value.__cause__, BrokenResourceError)


@mark.trio
async def test_connection_closed_before_head(transport):
    with raises(TransportError) as info:
        await get(transport, b"HTTP/1.1 200 OK\r\nContent-")
    assert info.value.code == "ECONNRESET"
    assert info.value.message == "socket hang up"


@mark.trio
@mark.parametrize(
    "raw",
    [
        b"SPDY/3 200 OK\r\n\r\n",
        b"HTTP/1.1 abc OK\r\n\r\n",
        b"HTTP/1.1 200 OK\r\nno colon here\r\n\r\n",
        b"HTTP/1.1 200 OK\r\nContent-Length: many\r\n\r\n",
    ],
)
async def test_malformed_response_head(transport, raw):
    with raises(TransportError) as info:
        await get(transport, raw)
    assert info.value.code == "EPROTO"


@mark.trio
async def test_malformed_chunked_body(transport):
    response = await get(
        transport,
        http_response(200, {"Transfer-Encoding": "chunked"}),
        b"zz\r\n",
    )
    with raises(TransportError) as info:
        await drain(response)
    assert info.value.code == "EPROTO"


@mark.trio
async def test_response_aclose(transport):
    response = await get(transport, http_response(200, body="hello"))

    await response.aclose()
    await response.aclose()

    assert response.closed
    assert transport.streams[0].closed


def test_response_constructed_directly():
    class Empty:
        async def receive_some(self, max_bytes=None):
            return b""

        async def aclose(self):
            pass

    response = Response(
        BufferedReceiveStream(Empty()),  # type: ignore
        status=200,
        headers=Headers([("Content-Length", "0")]),
    )
    assert response.request is None
    assert response.complete
