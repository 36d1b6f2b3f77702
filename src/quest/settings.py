"""Configuration of quest clients."""

import os

from dataclasses import dataclass, field
from typing import Optional

__all__ = ("Settings",)


def _float_env(name: str, default: Optional[float]) -> Optional[float]:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        return default


def _int_env(name: str, default: Optional[int]) -> Optional[int]:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


@dataclass
class Settings:
    """Dataclass that holds the tunable parameters of a quest client."""

    #: Timeout of establishing a connection to the server, in seconds; `None`
    #: means no timeout
    connect_timeout: Optional[float] = None

    #: Maximum number of redirects to follow for a single request; `None`
    #: means that redirects are followed without limit
    max_redirects: Optional[int] = 10

    #: Maximum number of bytes to read from a response body in one step
    chunk_size: int = 65536

    #: Number of body chunks that a response stream buffers before it stops
    #: reading from the connection and waits for the consumer
    buffer_size: int = 16

    #: Headers to send with every request unless the caller overrides them
    default_headers: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_env(cls) -> "Settings":
        """Creates a settings object from the ``QUEST_CONNECT_TIMEOUT``,
        ``QUEST_MAX_REDIRECTS`` and ``QUEST_CHUNK_SIZE`` environment
        variables, falling back to the defaults for variables that are
        missing or invalid.
        """
        defaults = cls()
        max_redirects = _int_env("QUEST_MAX_REDIRECTS", defaults.max_redirects)
        if max_redirects is not None and max_redirects < 0:
            max_redirects = None
        chunk_size = _int_env("QUEST_CHUNK_SIZE", defaults.chunk_size)
        if not chunk_size or chunk_size <= 0:
            chunk_size = defaults.chunk_size
        return cls(
            connect_timeout=_float_env(
                "QUEST_CONNECT_TIMEOUT", defaults.connect_timeout
            ),
            max_redirects=max_redirects,
            chunk_size=chunk_size,
        )
