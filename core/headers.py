"""Fetch-standard Headers: a case-insensitive ordered multimap."""

from __future__ import annotations

import re
from typing import Any, Iterable, Iterator, Mapping, Union

from urllib3 import HTTPHeaderDict


_INVALID_TOKEN = re.compile(r"[^\^_`a-zA-Z\-0-9!#$%&'*+.|~]")
_INVALID_HEADER_CHAR = re.compile(r"[^\t\x20-\x7e\x80-\xff]")

HeadersInit = Union["Headers", Mapping[str, Any], Iterable[tuple[str, Any]], None]


def _validate_name(name: str) -> str:
    name = str(name)
    if not name or _INVALID_TOKEN.search(name):
        raise TypeError(f"{name!r} is not a legal HTTP header name")
    return name


def _validate_value(value: Any) -> str:
    value = str(value)
    if _INVALID_HEADER_CHAR.search(value):
        raise TypeError(f"{value!r} is not a legal HTTP header value")
    return value


class Headers:
    """
    Headers collaborator shared by Request and Response.

    Names are case-insensitive; every value appended under a name is kept in
    insertion order. Accepts another Headers, a mapping (list values expand to
    multiple entries), an iterable of (name, value) pairs, or None.

    Examples:
      headers = Headers({"Accept": "text/html"})
      headers.append("Set-Cookie", "a=1")
      headers.append("set-cookie", "b=2")
      headers.get("SET-COOKIE")       # "a=1, b=2"
      headers.get_all("set-cookie")   # ["a=1", "b=2"]
      headers.raw()                   # {"Accept": ["text/html"], "Set-Cookie": [...]}
    """

    def __init__(self, init: HeadersInit = None) -> None:
        self._store = HTTPHeaderDict()

        if init is None:
            return

        if isinstance(init, Headers):
            for name, values in init.raw().items():
                for value in values:
                    self._store.add(name, value)
            return

        pairs = init.items() if isinstance(init, Mapping) else init
        for pair in pairs:
            try:
                name, value = pair
            except (TypeError, ValueError):
                raise TypeError("Each header pair must be a (name, value) sequence") from None
            if isinstance(value, (list, tuple)):
                for item in value:
                    self.append(name, item)
            else:
                self.append(name, value)

    @classmethod
    def from_transport(cls, raw_headers: Any) -> Headers:
        """Flatten transport response headers, one entry per received value."""
        headers = cls()
        if hasattr(raw_headers, "iteritems"):
            pairs = raw_headers.iteritems()
        else:
            pairs = raw_headers.items()
        for name, value in pairs:
            if isinstance(value, (list, tuple)):
                for item in value:
                    headers._store.add(name, str(item))
            else:
                headers._store.add(name, str(value))
        return headers

    def get(self, name: str) -> str | None:
        """All values for ``name`` joined with ", ", or None when absent."""
        values = self._store.getlist(_validate_name(name))
        if not values:
            return None
        return ", ".join(values)

    def get_all(self, name: str) -> list[str]:
        """Every value for ``name`` in insertion order."""
        return list(self._store.getlist(_validate_name(name)))

    def set(self, name: str, value: Any) -> None:
        """Replace all values for ``name`` with a single value."""
        self._store[_validate_name(name)] = _validate_value(value)

    def append(self, name: str, value: Any) -> None:
        """Add a value for ``name``, keeping existing ones."""
        self._store.add(_validate_name(name), _validate_value(value))

    def has(self, name: str) -> bool:
        return _validate_name(name) in self._store

    def delete(self, name: str) -> None:
        self._store.discard(_validate_name(name))

    def raw(self) -> dict[str, list[str]]:
        """Name -> list of values, the shape handed to the transport."""
        result: dict[str, list[str]] = {}
        lowered: dict[str, str] = {}
        for name, value in self._store.iteritems():
            key = lowered.setdefault(name.lower(), name)
            result.setdefault(key, []).append(value)
        return result

    def copy(self) -> Headers:
        return Headers(self)

    def keys(self) -> Iterator[str]:
        """Lower-cased names, sorted, one per distinct header."""
        return iter(sorted({name.lower() for name in self._store.keys()}))

    def values(self) -> Iterator[str]:
        for _, value in self.items():
            yield value

    def items(self) -> Iterator[tuple[str, str]]:
        """(lower-cased name, joined value) pairs sorted by name."""
        for name in self.keys():
            yield name, ", ".join(self._store.getlist(name))

    def __iter__(self) -> Iterator[tuple[str, str]]:
        return self.items()

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name in self._store

    def __len__(self) -> int:
        return len(list(self.keys()))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Headers):
            return NotImplemented
        return list(self.items()) == list(other.items())

    def __repr__(self) -> str:
        return f"Headers({dict(self.items())})"
