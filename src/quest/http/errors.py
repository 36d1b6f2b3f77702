"""Error classes for the low-level HTTP module."""

import errno
import socket

from typing import Optional

from trio import BrokenResourceError, ClosedResourceError, TooSlowError

from quest.errors import RequestError

__all__ = (
    "AccessDeniedError",
    "AuthenticationNeededError",
    "NotFoundError",
    "ResponseError",
    "TransportError",
    "response_error_class_for_status",
    "transport_error_from_exception",
)


class TransportError(RequestError):
    """Error thrown when the connection to the server fails before or while
    the response is being received. The code of the error is the symbolic
    name of the underlying error condition (e.g., ``ECONNREFUSED``).
    """

    pass


class ResponseError(RequestError):
    """Error thrown by HTTP response objects when they encounter an HTTP
    error code signalling an error condition.
    """

    pass


class AccessDeniedError(ResponseError):
    """Error thrown by HTTP response objects that indicate that access to a
    particular resource was denied by the server.
    """

    pass


class AuthenticationNeededError(ResponseError):
    """Error thrown by HTTP response objects that indicate that authentication
    will be needed to access a resource.
    """

    pass


class NotFoundError(ResponseError):
    """Error thrown by HTTP response objects that indicate that a remote
    resource is not found.
    """

    pass


_response_error_classes: dict[int, type[ResponseError]] = {
    401: AuthenticationNeededError,
    403: AccessDeniedError,
    404: NotFoundError,
}


def response_error_class_for_status(status: int) -> type[ResponseError]:
    """Returns the most specific response error class for the given HTTP
    status code.
    """
    return _response_error_classes.get(status, ResponseError)


def _find_errno(exc: BaseException) -> Optional[int]:
    """Finds the first OS-level error number in the given exception or in the
    chain of exceptions that caused it.
    """
    seen = set()
    queue = [exc]
    while queue:
        current = queue.pop(0)
        if id(current) in seen:
            continue
        seen.add(id(current))

        if isinstance(current, OSError) and current.errno:
            return current.errno

        # trio raises a plain OSError from a group of the individual
        # connection failures when every connection attempt fails
        queue.extend(getattr(current, "exceptions", ()))
        if current.__cause__ is not None:
            queue.append(current.__cause__)
        if current.__context__ is not None:
            queue.append(current.__context__)
    return None


def transport_error_from_exception(exc: BaseException) -> TransportError:
    """Converts a low-level exception raised by trio or by the operating
    system into a TransportError_.
    """
    if isinstance(exc, TransportError):
        return exc

    if isinstance(exc, TooSlowError):
        return TransportError("Request timed out", code="ETIMEDOUT")

    if isinstance(exc, socket.gaierror):
        return TransportError(str(exc), code="ENOTFOUND")

    if isinstance(exc, (BrokenResourceError, ClosedResourceError)):
        return TransportError(str(exc) or "socket hang up", code="ECONNRESET")

    number = _find_errno(exc)
    if number is not None:
        code = errno.errorcode.get(number, "EIO")
        message = str(exc) or errno.errorcode.get(number, "")
        return TransportError(message, code=code)

    return TransportError(str(exc) or type(exc).__name__, code="EIO")
