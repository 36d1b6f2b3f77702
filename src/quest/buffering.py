"""Buffering of byte streams into memory and parsing of JSON bodies."""

from json import loads
from typing import Any, Awaitable, Optional, Union

from trio.abc import ReceiveStream

from quest.errors import ErrorContext, InvalidJSONError
from quest.http.request import Request

__all__ = ("decode_json", "drain", "parse_json", "read")


async def drain(stream: ReceiveStream) -> bytes:
    """Reads the given stream until it ends and returns the concatenation of
    all the chunks that were received, in order.

    Errors raised by the stream are propagated immediately; the bytes
    received so far are discarded in this case. Draining a stream that has
    already ended yields an empty bytes object.
    """
    chunks: list[bytes] = []
    while True:
        chunk = await stream.receive_some()
        if not chunk:
            break
        chunks.append(chunk)
    return b"".join(chunks)


def decode_json(body: bytes, context: Optional[ErrorContext] = None) -> Any:
    """Parses a buffered response body as JSON.

    Returns:
        the parsed value, or ``None`` if the body is empty

    Raises:
        InvalidJSONError: if the body is not empty and is not valid JSON.
            The raw body is attached to the error.
    """
    if not body:
        return None

    try:
        return loads(body)
    except ValueError as ex:
        error = InvalidJSONError(str(ex), body=body)
        if context is not None:
            context.attach(error)
        raise error from ex


async def parse_json(stream: ReceiveStream) -> Any:
    """Reads the given stream until it ends and parses its contents as JSON.

    Returns:
        the parsed value, or ``None`` if the stream contained no bytes

    Raises:
        InvalidJSONError: if the contents of the stream are not valid JSON
    """
    body = await drain(stream)
    return decode_json(body, getattr(stream, "error_context", None))


async def _read_request(request: Request) -> bytes:
    from quest.streams import stream

    async with stream(request) as response_stream:
        return await drain(response_stream)


def read(source: Union[ReceiveStream, Request]) -> Awaitable[bytes]:
    """Buffers the entire body of a response into memory.

    Parameters:
        source: a byte stream (typically a response stream) or a request
            that was not sent yet; requests are sent and classified first

    Returns:
        an awaitable that resolves to the buffered body
    """
    if isinstance(source, Request):
        return _read_request(source)
    elif isinstance(source, ReceiveStream):
        return drain(source)
    else:
        raise TypeError(
            "Expected a request or a byte stream, got {0!r}".format(type(source))
        )
