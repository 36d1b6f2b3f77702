"""Addresses of the servers that requests are sent to."""

import re

from dataclasses import dataclass
from typing import Optional, Union

from quest.constants import DEFAULT_PORTS, SCHEMES
from quest.errors import UnsupportedURLError

__all__ = ("SocketTarget", "Target", "URLTarget", "parse_url")


_url_re = re.compile(r"([A-Za-z][A-Za-z0-9+.-]*)://([^/:]+)(?::([^/]+))?(.*)", re.DOTALL)
_invalid_host_re = re.compile(r"[\s\x00-\x1f\x7f]")


@dataclass(frozen=True)
class URLTarget:
    """Target of a request that is sent to a host and port over TCP."""

    scheme: str
    host: str
    port: Optional[int] = None
    path: str = "/"

    @property
    def effective_port(self) -> int:
        """The port to connect to; the default port of the scheme if no port
        was specified explicitly.
        """
        return self.port if self.port is not None else DEFAULT_PORTS[self.scheme]

    @property
    def host_header(self) -> str:
        """The value of the ``Host`` header for this target."""
        return f"{self.host}:{self.port}" if self.port is not None else self.host

    @property
    def url(self) -> str:
        return f"{self.scheme}://{self.host_header}{self.path}"


@dataclass(frozen=True)
class SocketTarget:
    """Target of a request that is sent over a local Unix domain socket."""

    socket_path: str
    path: str = "/"

    @property
    def host_header(self) -> str:
        return "localhost"

    @property
    def url(self) -> str:
        return f"unix:{self.socket_path}:{self.path}"


Target = Union[URLTarget, SocketTarget]


def parse_url(url: str) -> URLTarget:
    """Parses a URL of the form ``scheme://host[:port][/path]``.

    Raises:
        UnsupportedURLError: if the URL cannot be parsed, its scheme is not
            supported, its host contains whitespace or control characters
            or its port is not numeric
    """
    if not isinstance(url, str):
        raise TypeError("Expected a URL string, got {0!r}".format(type(url)))

    match = _url_re.match(url)
    if not match:
        raise UnsupportedURLError(url)

    scheme, host, port, path = match.groups()
    if scheme not in SCHEMES or _invalid_host_re.search(host):
        raise UnsupportedURLError(url)

    if port is not None:
        try:
            port = int(port)
        except ValueError:
            raise UnsupportedURLError(url) from None

    return URLTarget(scheme=scheme, host=host, port=port, path=path or "/")
