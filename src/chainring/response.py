import html
import json
from dataclasses import dataclass, field, replace
from typing import Any, Self

from werkzeug.datastructures import Headers

from chainring.status import HTTPStatus


@dataclass(frozen=True, slots=True, kw_only=True)
class Response:
    """An HTTP response produced by a handler chain."""

    """HTTP status code of the response"""
    status_code: HTTPStatus | int

    """HTTP headers for the response"""
    headers: Headers = field(default_factory=Headers)

    """HTTP body for the response"""
    body: bytes = field(default=b"")

    def __post_init__(self) -> None:
        """Takes a private copy of the headers."""
        object.__setattr__(self, "headers", Headers(self.headers))

    def with_status(self, status_code: HTTPStatus | int) -> Self:
        """Returns a copy with another status code."""
        return replace(self, status_code=status_code)

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

    def with_body(self, body: bytes) -> Self:
        """Returns a copy with another body."""
        return replace(self, body=body)

    @classmethod
    def html(cls, body: str, status_code: HTTPStatus | int = HTTPStatus.OK) -> Self:
        """Utility function for HTML based response."""
        return cls(
            status_code=status_code,
            headers={"content-type": "text/html; charset=utf-8"},
            body=body.encode(),
        )

    @classmethod
    def json(cls, data: Any, status_code: HTTPStatus | int = HTTPStatus.OK) -> Self:
        """Utility function for JSON based response."""
        return cls(
            status_code=status_code,
            headers={"content-type": "application/json"},
            body=json.dumps(data).encode(),
        )

    @classmethod
    def text(cls, body: str, status_code: HTTPStatus | int = HTTPStatus.OK) -> Self:
        """Utility function for text based response."""
        return cls(
            status_code=status_code,
            headers={"content-type": "text/plain; charset=utf-8"},
            body=body.encode(),
        )

    @classmethod
    def redirect(
        cls, location: str, status_code: HTTPStatus | int = HTTPStatus.FOUND
    ) -> Self:
        """Redirects to location, with a small HTML page for clients without one.

        Raises:
            ValueError: if the status code is not a redirect status.
        """
        if not HTTPStatus(status_code).is_redirect:
            msg = f"Expected a redirect status code, got {int(status_code)}"
            raise ValueError(msg)
        escaped = html.escape(location)
        page = (
            "<!DOCTYPE html>\n"
            f"<title>Redirecting to {escaped}</title>\n"
            f'<p>Redirecting to <a href="{escaped}"><code>{escaped}</code></a>...</p>\n'
        )
        response = cls.html(page, status_code=status_code)
        return response.with_header("location", location)
