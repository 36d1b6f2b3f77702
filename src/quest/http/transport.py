"""Transports that open the connections of HTTP requests.

A transport is selected by the kind of address that the requests are sent
to: `TCPTransport` sends requests to ``http://`` and ``https://`` URLs,
`UnixSocketTransport` sends requests to a local Unix domain socket.
"""

from abc import ABCMeta, abstractmethod
from typing import Any, Optional, Union

from trio import (
    TooSlowError,
    fail_after,
    open_ssl_over_tcp_stream,
    open_tcp_stream,
    open_unix_socket,
)
from trio.abc import Stream

from quest.settings import Settings

from .errors import transport_error_from_exception
from .request import Request, check_method
from .target import SocketTarget, Target, URLTarget, parse_url

__all__ = ("TCPTransport", "Transport", "UnixSocketTransport")


#: Headers that are not carried over to the request issued for a redirect
_HEADERS_NOT_REDIRECTED = frozenset(("host",))


class Transport(metaclass=ABCMeta):
    """Interface specification for transports that create request handles
    and open the connections that the requests are sent over.
    """

    settings: Settings

    def __init__(self, settings: Optional[Settings] = None):
        """Constructor.

        Parameters:
            settings: the settings of the transport; ``None`` means to use
                the default settings
        """
        self.settings = settings or Settings()

    def request(
        self,
        method: str,
        target: Any,
        headers: Optional[dict[str, Any]] = None,
    ) -> Request:
        """Creates a new request handle. No network activity takes place
        until the request is ended.

        Parameters:
            method: the HTTP method of the request
            target: the address of the request; its accepted forms depend
                on the transport
            headers: the headers of the request

        Raises:
            UnknownMethodError: if the method is not recognized
            UnsupportedURLError: if the target address is not supported
        """
        check_method(method)
        parsed = self.parse_target(target)
        return Request(self, method, parsed, self._merge_headers(headers))

    async def connect(self, request: Request) -> Stream:
        """Opens the connection that the given request will be sent over.

        Raises:
            TransportError: if the connection cannot be established or the
                connection attempt timed out
        """
        timeout = self.settings.connect_timeout
        try:
            if timeout is None:
                return await self.open_stream(request.target)
            with fail_after(timeout):
                return await self.open_stream(request.target)
        except (OSError, TooSlowError) as ex:
            raise transport_error_from_exception(ex) from ex

    @abstractmethod
    def parse_target(self, target: Any) -> Target:
        """Converts a target address given by the caller into a Target_
        object.
        """
        raise NotImplementedError  # pragma: no cover

    @abstractmethod
    async def open_stream(self, target: Target) -> Stream:
        """Opens a bidirectional byte stream to the given target."""
        raise NotImplementedError  # pragma: no cover

    @abstractmethod
    def redirect(self, request: Request, location: str) -> Request:
        """Creates the request that follows a redirect received in response
        to the given request.

        The method, the headers (except ``Host``) and the body of the original
        request are preserved.
        """
        raise NotImplementedError  # pragma: no cover

    def _merge_headers(self, headers: Optional[dict[str, Any]]) -> dict[str, Any]:
        result: dict[str, Any] = dict(self.settings.default_headers)
        if headers:
            overridden = {key.lower() for key in headers}
            result = {
                key: value
                for key, value in result.items()
                if key.lower() not in overridden
            }
            result.update(headers)
        return result

    @staticmethod
    def _copy_for_redirect(original: Request, follow_up: Request) -> Request:
        body = original.body
        if body:
            follow_up.write(body)
        return follow_up

    @staticmethod
    def _redirected_headers(request: Request) -> dict[str, str]:
        return {
            key: value
            for key, value in request.get_headers().items()
            if key.lower() not in _HEADERS_NOT_REDIRECTED
        }


class TCPTransport(Transport):
    """Transport that sends requests to ``http://`` and ``https://`` URLs."""

    def parse_target(self, target: Union[str, URLTarget]) -> URLTarget:
        if isinstance(target, URLTarget):
            return target
        return parse_url(target)

    async def open_stream(self, target: Target) -> Stream:
        assert isinstance(target, URLTarget)
        if target.scheme == "https":
            return await open_ssl_over_tcp_stream(target.host, target.effective_port)
        else:
            return await open_tcp_stream(target.host, target.effective_port)

    def redirect(self, request: Request, location: str) -> Request:
        if location.startswith("/"):
            target = request.target
            assert isinstance(target, URLTarget)
            host = request.get_header("Host") or target.host_header
            location = f"{target.scheme}://{host}{location}"
        follow_up = self.request(
            request.method, location, self._redirected_headers(request)
        )
        return self._copy_for_redirect(request, follow_up)


class UnixSocketTransport(Transport):
    """Transport that sends requests to a server listening on a local Unix
    domain socket. Requests are addressed with their path only.
    """

    socket_path: str

    def __init__(self, socket_path: str, settings: Optional[Settings] = None):
        """Constructor.

        Parameters:
            socket_path: the filesystem path of the socket
            settings: the settings of the transport
        """
        super().__init__(settings)
        self.socket_path = socket_path

    def parse_target(self, target: Union[str, SocketTarget]) -> SocketTarget:
        if isinstance(target, SocketTarget):
            return target
        if not isinstance(target, str):
            raise TypeError("Expected a request path, got {0!r}".format(type(target)))
        return SocketTarget(self.socket_path, target or "/")

    async def open_stream(self, target: Target) -> Stream:
        assert isinstance(target, SocketTarget)
        return await open_unix_socket(target.socket_path)

    def redirect(self, request: Request, location: str) -> Request:
        headers = self._redirected_headers(request)
        if location.startswith("/"):
            follow_up = self.request(request.method, location, headers)
        else:
            # Absolute locations lead away from the socket
            follow_up = TCPTransport(self.settings).request(
                request.method, location, headers
            )
        return self._copy_for_redirect(request, follow_up)
