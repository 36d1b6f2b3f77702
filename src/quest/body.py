"""Encoding of request bodies."""

from dataclasses import asdict, is_dataclass
from json import dumps
from typing import Any, Mapping

from quest.constants import JSON_CONTENT_TYPE
from quest.http.request import Request

__all__ = ("encode_body", "send")


def encode_body(body: Any) -> tuple[bytes, dict[str, str]]:
    """Encodes a request payload into bytes.

    Parameters:
        body: raw bytes, a string (encoded as UTF-8), or a mapping or
            dataclass instance (serialized as JSON)

    Returns:
        the encoded bytes and the headers that describe them

    Raises:
        TypeError: if the payload has an unsupported type
    """
    headers: dict[str, str] = {}

    if isinstance(body, (bytes, bytearray, memoryview)):
        data = bytes(body)
    elif isinstance(body, str):
        data = body.encode("utf-8")
    elif isinstance(body, Mapping) or (is_dataclass(body) and not isinstance(body, type)):
        value = body if isinstance(body, Mapping) else asdict(body)
        headers["Content-Type"] = JSON_CONTENT_TYPE
        data = dumps(value).encode("utf-8")
    else:
        raise TypeError(
            "Expected bytes, a string or a mapping as request body, got "
            "{0!r}".format(type(body))
        )

    headers["Content-Length"] = str(len(data))
    return data, headers


def send(request: Request, body: Any = None) -> Request:
    """Writes the given payload into a request that has not been sent yet,
    setting the ``Content-Type`` and ``Content-Length`` headers as needed.

    Nothing is written and no headers are set when the payload is ``None``
    or an empty string or bytes object.

    Returns:
        the request itself
    """
    if body is None or (isinstance(body, (bytes, bytearray, memoryview, str)) and not body):
        return request

    data, headers = encode_body(body)
    for name, value in headers.items():
        request.set_header(name, value)
    request.write(data)
    return request
