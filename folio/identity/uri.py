"""
Identifier URIs: `<scheme>://<host>[#<fragment>]`.

    page://x3kq9v0c2mfe1ab7
    file://0ab1c2d3e4f5g6h7
    user://alice
    site://
"""

import re
from typing import Optional

SCHEMES = ("page", "file", "site", "user")

_PATTERN = re.compile(
    r"^(?P<scheme>[a-z]+)://(?P<host>[A-Za-z0-9_-]*)(?:#(?P<fragment>[^#]*))?$"
)


class InvalidFormat(ValueError):
    pass


def is_uuid(value: str, scheme: Optional[str] = None) -> bool:
    """True if value is a well-formed identifier (of the given scheme)."""
    try:
        uri = Uri.parse(value)
    except InvalidFormat:
        return False
    return scheme is None or uri.scheme == scheme


class Uri:
    """Parsed identifier. The host can be set once, then never changed."""

    __slots__ = ("scheme", "_host", "fragment")

    def __init__(self, scheme: str, host: Optional[str] = None, fragment: Optional[str] = None):
        if scheme not in SCHEMES:
            raise InvalidFormat(f"Unknown identifier scheme: {scheme!r}")
        self.scheme = scheme
        self._host = host or ""
        self.fragment = fragment

    @classmethod
    def parse(cls, value: str) -> "Uri":
        match = _PATTERN.match(value or "")
        if match is None:
            raise InvalidFormat(f"Not an identifier: {value!r}")

        scheme, host = match.group("scheme"), match.group("host")
        if scheme not in SCHEMES:
            raise InvalidFormat(f"Unknown identifier scheme: {scheme!r}")
        if not host and scheme != "site":
            raise InvalidFormat(f"Identifier without id: {value!r}")
        if host and scheme == "site":
            raise InvalidFormat(f"The site identifier takes no id: {value!r}")

        return cls(scheme, host, match.group("fragment"))

    @property
    def host(self) -> str:
        return self._host

    @host.setter
    def host(self, value: str):
        if self._host and value != self._host:
            raise ValueError(f"{self} already has an id")
        self._host = value

    def __str__(self) -> str:
        base = f"{self.scheme}://{self._host}"
        return f"{base}#{self.fragment}" if self.fragment is not None else base

    def __repr__(self) -> str:
        return f"Uri({str(self)!r})"

    def __eq__(self, other) -> bool:
        return isinstance(other, Uri) and str(self) == str(other)

    def __hash__(self) -> int:
        return hash(str(self))
