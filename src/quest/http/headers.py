"""Header normalization for outgoing requests and a case-insensitive
header mapping for incoming responses.
"""

import re

from typing import Any, Iterable, Iterator, Mapping, Optional

from quest.errors import UsageError

__all__ = ("Headers", "prepare_headers")


_header_name_re = re.compile(r"[!#$%&'*+\-.^_`|~0-9A-Za-z]+")
_invalid_header_value_re = re.compile(r"[^\t\x20-\x7e\x80-\xff]")


def prepare_headers(headers: Optional[Mapping[str, Any]]) -> dict[str, str]:
    """Normalizes a mapping of outgoing request headers.

    Headers with a value of ``None`` are removed, lists and tuples are joined
    with commas and every other value is converted to a string.

    Parameters:
        headers: the headers to normalize; ``None`` is treated as an empty
            mapping

    Returns:
        a new dictionary; the input mapping is left intact

    Raises:
        UsageError: if a header name is not a valid token or a header value
            contains control characters (such as CR or LF) or characters
            that cannot be encoded in ISO-8859-1
    """
    result: dict[str, str] = {}
    for name, value in (headers or {}).items():
        if value is None:
            continue
        if isinstance(value, (list, tuple)):
            value = ",".join(str(item) for item in value)
        elif not isinstance(value, str):
            value = str(value)
        name = str(name)
        if not _header_name_re.fullmatch(name):
            raise UsageError(f"Invalid header name: {name!r}")
        if _invalid_header_value_re.search(value):
            raise UsageError(f"Invalid character in value of header {name!r}")
        result[name] = value
    return result


class Headers(Mapping[str, str]):
    """Read-only mapping of response headers where header names are
    case-insensitive. Headers that appear multiple times in the response are
    joined with a comma.
    """

    _items: dict[str, tuple[str, str]]

    def __init__(self, items: Iterable[tuple[str, str]] = ()):
        """Constructor.

        Parameters:
            items: the header name-value pairs in the order they appeared in
                the response
        """
        self._items = {}
        for name, value in items:
            key = name.lower()
            existing = self._items.get(key)
            if existing is None:
                self._items[key] = (name, value)
            else:
                self._items[key] = (existing[0], f"{existing[1]}, {value}")

    def __getitem__(self, key: str) -> str:
        return self._items[key.lower()][1]

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and key.lower() in self._items

    def __iter__(self) -> Iterator[str]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __repr__(self) -> str:
        return "{0}({1!r})".format(self.__class__.__name__, self.raw_items())

    def raw_items(self) -> list[tuple[str, str]]:
        """Returns the headers with their names spelled as in the response."""
        return list(self._items.values())
