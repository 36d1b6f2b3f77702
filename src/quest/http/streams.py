"""Low-level stream helpers for the HTTP module."""

from typing import Optional

from trio.abc import ReceiveStream

__all__ = ("BufferedReceiveStream",)


class BufferedReceiveStream(ReceiveStream):
    """Trio stream that wraps another stream, supports reading it line by
    line and then reading the rest of it as raw bytes.
    """

    _buffer: bytearray
    _chunk_size: int
    _stream: ReceiveStream

    def __init__(self, stream: ReceiveStream, chunk_size: int = 65536):
        """Constructor.

        Parameters:
            stream: the original stream that this stream wraps
            chunk_size: number of bytes to request from the original stream
                when more data is needed
        """
        self._buffer = bytearray()
        self._chunk_size = chunk_size
        self._stream = stream

    async def aclose(self) -> None:
        await self._stream.aclose()

    async def receive_line(self, max_line_length: int = 16384) -> bytes:
        """Reads a single line from the stream, including the terminating
        newline character.

        Returns:
            the line that was read, or an empty bytes object if the stream
            ended before a complete line was received

        Raises:
            ValueError: if the line is longer than the given limit
        """
        find_start = 0
        while True:
            newline_idx = self._buffer.find(b"\n", find_start)
            if newline_idx >= 0:
                line = bytes(self._buffer[: newline_idx + 1])
                del self._buffer[: newline_idx + 1]
                return line

            if len(self._buffer) > max_line_length:
                raise ValueError("line too long")

            # next time, start the search where this one left off
            find_start = len(self._buffer)
            more_data = await self._stream.receive_some(self._chunk_size)
            if not more_data:
                return b""
            self._buffer += more_data

    async def receive_some(self, max_bytes: Optional[int] = None) -> bytes:
        if self._buffer:
            available = len(self._buffer)
            to_return = (
                min(max_bytes, available) if max_bytes is not None else available
            )
            result = bytes(self._buffer[:to_return])
            del self._buffer[:to_return]
            return result

        return await self._stream.receive_some(
            max_bytes if max_bytes is not None else self._chunk_size
        )
