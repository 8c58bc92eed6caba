from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Self, TypeGuard

from werkzeug.datastructures import Headers

if TYPE_CHECKING:
    from chainring.typedef import HTTPMethod

# Must match typedef.HTTPMethod
ALLOWED_HTTP_METHODS: set[HTTPMethod] = {
    "GET",
    "POST",
    "PUT",
    "PATCH",
    "DELETE",
    "OPTIONS",
    "HEAD",
}


@dataclass(frozen=True, slots=True, kw_only=True)
class Request:
    """An HTTP request flowing through a handler chain.

    Requests are values: every ``with_*`` method returns a new request and leaves
    the receiver untouched, so a handler only ever sees what earlier handlers in
    the chain passed on to it.
    """

    """The HTTP method"""
    method: HTTPMethod

    """The URL path"""
    path: str

    """HTTP version"""
    http_version: str = "HTTP/1.1"

    """HTTP headers, case-insensitive and multi-valued"""
    headers: Headers = field(default_factory=Headers)

    """HTTP body"""
    body: bytes = b""

    """Derived data attached by handlers, e.g. authentication results"""
    attributes: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        """Takes private copies of the mutable inputs."""
        object.__setattr__(self, "headers", Headers(self.headers))
        object.__setattr__(
            self, "attributes", MappingProxyType(dict(self.attributes))
        )

    def get_attribute(self, name: str, default: Any = None) -> Any:
        """Reads a single attribute from the attribute bag."""
        return self.attributes.get(name, default)

    def with_attribute(self, name: str, value: Any) -> Self:
        """Returns a copy with one attribute set."""
        return replace(self, attributes={**self.attributes, name: value})

    def with_attributes(
        self, mapping: Mapping[str, Any] | None = None, /, **values: Any
    ) -> Self:
        """Returns a copy with several attributes set at once."""
        return replace(
            self, attributes={**self.attributes, **(mapping or {}), **values}
        )

    def without_attribute(self, name: str) -> Self:
        """Returns a copy with an attribute removed."""
        if name not in self.attributes:
            return self
        attributes = dict(self.attributes)
        del attributes[name]
        return replace(self, attributes=attributes)

    def header(self, name: str, default: str | None = None) -> str | None:
        """Reads the first value of a header."""
        return self.headers.get(name, default)

    def with_header(self, name: str, value: str) -> Self:
        """Returns a copy with a header replaced."""
        headers = self.headers.copy()
        headers.set(name, value)
        return replace(self, headers=headers)

    def with_added_header(self, name: str, value: str) -> Self:
        """Returns a copy with one more value for a header."""
        headers = self.headers.copy()
        headers.add(name, value)
        return replace(self, headers=headers)

    def without_header(self, name: str) -> Self:
        """Returns a copy with every value of a header removed."""
        headers = self.headers.copy()
        headers.remove(name)
        return replace(self, headers=headers)

    @staticmethod
    def verify_http_method(method: str) -> TypeGuard[HTTPMethod]:
        """Verifies that HTTP method is valid."""
        return method in ALLOWED_HTTP_METHODS
