"""Dechunker objects that convert the body of an HTTP response that uses
chunked transfer encoding into a plain byte stream.
"""

from abc import ABCMeta, abstractmethod
from enum import Enum

__all__ = ("Dechunker", "NullDechunker", "ResponseDechunker")


class ResponseDechunkerState(Enum):
    SIZE = "SIZE"
    EXTENSION = "EXTENSION"
    SIZE_ENDING = "SIZE_ENDING"
    DATA = "DATA"
    DATA_ENDING_CR = "DATA_ENDING_CR"
    DATA_ENDING_LF = "DATA_ENDING_LF"
    TRAILER = "TRAILER"
    FINISHED = "FINISHED"


class Dechunker(metaclass=ABCMeta):
    """Base class for dechunkers."""

    @abstractmethod
    def feed(self, data: bytes) -> bytes:
        raise NotImplementedError

    @property
    def finished(self) -> bool:
        """Whether the dechunker has seen the end of the body."""
        return False


class NullDechunker(Dechunker):
    """Null dechunker that is suitable for un-chunked HTTP responses."""

    def feed(self, data: bytes) -> bytes:
        return data


class ResponseDechunker(Dechunker):
    """Merges the chunks of an HTTP response that is streamed using chunked
    transfer encoding.

    Chunk extensions and trailer fields are skipped. The dechunker becomes
    finished after the terminating zero-length chunk and the trailer section
    were consumed; bytes fed after that point are ignored.
    """

    _chunk_length: int
    _seen_size_digit: bool
    _state: ResponseDechunkerState
    _trailer_line_length: int

    def __init__(self):
        """Constructor."""
        self.reset()

    @property
    def finished(self) -> bool:
        return self._state is ResponseDechunkerState.FINISHED

    def feed(self, data: bytes) -> bytes:
        """Feeds some bytes into the dechunker object.

        Parameters:
            data: the bytes to feed into the dechunker

        Returns:
            the dechunked data, which may be empty if ``data`` contained
            framing only

        Raises:
            ValueError: if the data violates the chunked transfer encoding
        """
        result = bytearray()
        index, length = 0, len(data)

        while index < length and not self.finished:
            if self._state is ResponseDechunkerState.DATA:
                # Copy as much of the current chunk as we can in one go
                to_copy = min(self._chunk_length, length - index)
                result += data[index : index + to_copy]
                index += to_copy
                self._chunk_length -= to_copy
                if self._chunk_length == 0:
                    self._state = ResponseDechunkerState.DATA_ENDING_CR
            else:
                self._feed_byte(data[index])
                index += 1

        return bytes(result)

    def reset(self) -> None:
        """Resets the dechunker to its ground state."""
        self._chunk_length = 0
        self._seen_size_digit = False
        self._state = ResponseDechunkerState.SIZE
        self._trailer_line_length = 0

    def _feed_byte(self, byte: int) -> None:
        state = self._state

        if state is ResponseDechunkerState.SIZE:
            if byte == 13:
                self._expect_size_digit(byte)
                self._state = ResponseDechunkerState.SIZE_ENDING
            elif byte in (59, 32, 9):  # ';', ' ', '\t'
                self._expect_size_digit(byte)
                self._state = ResponseDechunkerState.EXTENSION
            else:
                try:
                    digit = int(chr(byte), 16)
                except ValueError:
                    raise self._violation(byte, "a hexadecimal number") from None
                self._chunk_length = (self._chunk_length << 4) + digit
                self._seen_size_digit = True

        elif state is ResponseDechunkerState.EXTENSION:
            if byte == 13:
                self._state = ResponseDechunkerState.SIZE_ENDING

        elif state is ResponseDechunkerState.SIZE_ENDING:
            if byte != 10:
                raise self._violation(byte, "10")
            self._seen_size_digit = False
            if self._chunk_length > 0:
                self._state = ResponseDechunkerState.DATA
            else:
                self._trailer_line_length = 0
                self._state = ResponseDechunkerState.TRAILER

        elif state is ResponseDechunkerState.DATA_ENDING_CR:
            if byte != 13:
                raise self._violation(byte, "13")
            self._state = ResponseDechunkerState.DATA_ENDING_LF

        elif state is ResponseDechunkerState.DATA_ENDING_LF:
            if byte != 10:
                raise self._violation(byte, "10")
            self._state = ResponseDechunkerState.SIZE

        elif state is ResponseDechunkerState.TRAILER:
            if byte == 10:
                if self._trailer_line_length == 0:
                    self._state = ResponseDechunkerState.FINISHED
                self._trailer_line_length = 0
            elif byte != 13:
                self._trailer_line_length += 1

        else:
            raise ValueError("invalid decoder state: {0!r}".format(state))

    def _expect_size_digit(self, byte: int) -> None:
        if not self._seen_size_digit:
            raise self._violation(byte, "a hexadecimal number")

    @staticmethod
    def _violation(byte: int, expected: str) -> ValueError:
        return ValueError(
            "chunked transfer encoding protocol violation; got char with "
            "code {0} when expecting {1}".format(byte, expected)
        )
