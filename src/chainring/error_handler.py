from __future__ import annotations

import html
import traceback
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

from chainring.exceptions import (
    ApplicationFailure,
    ContractViolation,
    InvalidHandlerResult,
    MethodNotAllowedError,
    NotFoundError,
)
from chainring.log import get_logger
from chainring.response import Response
from chainring.status import HTTPStatus

if TYPE_CHECKING:
    from collections.abc import Sequence

    from chainring.exceptions import Failure
    from chainring.typedef import Reporter

logger = get_logger(__name__)

_PAGE = """<!DOCTYPE html>
<html>
<head>
<meta charset="utf-8">
<meta name="viewport" content="width=device-width, initial-scale=1">
<title>Error {code}: {phrase}</title>
<style>
body {{ display: grid; justify-content: center; align-items: center; \
grid-auto-rows: minmax(min-content, calc(100vh - 4em)); margin: 2em; \
font-family: ui-sans-serif, Arial, "Noto Sans", sans-serif; }}
@media (min-width: 700px) {{ main {{ display: grid; max-width: 700px; }} }}
code {{ padding: 0 0.2em; background: #eee; border-radius: 0.2em; }}
</style>
</head>
<body>
<main>
<h1>Error {code}</h1>
<strong>{title}</strong>
<p>{info}</p>
</main>
</body>
</html>
"""

_GENERIC_FAILURE = "The requested page failed to load, please try again later."


def _code(text: object) -> str:
    return f"<code>{html.escape(str(text))}</code>"


def _location(exc: BaseException) -> str:
    """Renders file:line of the frame that raised, if known."""
    frames = traceback.extract_tb(exc.__traceback__)
    if not frames:
        return ""
    frame = frames[-1]
    title = html.escape(f"See {frame.filename} line {frame.lineno}")
    where = html.escape(f"{Path(frame.filename).name}:{frame.lineno}")
    return f' in <code title="{title}">{where}</code>'


@dataclass(frozen=True, slots=True, kw_only=True)
class ErrorHandler:
    """Turns routing failures and chain failures into responses.

    Never raises: whatever went wrong, the client gets a well formed page. In debug
    mode, 500 pages also describe the failure; otherwise they stay generic.
    """

    """Render failure details in 500 pages"""
    debug: bool = False

    """Operator channel notified of contract violations"""
    reporter: Reporter | None = field(default=None, repr=False)

    def not_found(self) -> Response:
        """Response for a path no route matches."""
        return self.html(
            HTTPStatus.NOT_FOUND,
            "Page Not Found",
            "Please check the URL in the address bar and try again.",
        )

    def method_not_allowed(self, allowed: Sequence[str]) -> Response:
        """Response for a path matched with the wrong method."""
        methods = " / ".join(_code(method) for method in allowed)
        response = self.html(
            HTTPStatus.METHOD_NOT_ALLOWED,
            "Method Not Allowed",
            f"Please check the URL in the address bar and try again with {methods} "
            "request.",
        )
        return response.with_header("allow", ", ".join(allowed))

    def to_response(self, failure: Failure) -> Response:
        """Maps a failure surfaced by a chain to a response."""
        match failure:
            case NotFoundError():
                return self.not_found()
            case MethodNotAllowedError(allowed=allowed):
                return self.method_not_allowed(allowed)
            case ContractViolation():
                logger.error(
                    "Contract violation",
                    violation=type(failure).__name__,
                    error=str(failure),
                    exc_info=failure,
                )
                self._report(failure)
            case ApplicationFailure(cause=cause):
                logger.error(
                    "Request handler failed",
                    error_type=type(cause).__name__,
                    exc_info=cause,
                )

        return self.internal_server_error(failure)

    def internal_server_error(self, failure: Failure) -> Response:
        """The 500 page, with failure details in debug mode only."""
        info = _GENERIC_FAILURE
        if self.debug:
            info = f"{info}</p>\n<p>{self.describe(failure)}"
        return self.html(
            HTTPStatus.INTERNAL_SERVER_ERROR, "Internal Server Error", info
        )

    @staticmethod
    def describe(failure: Failure) -> str:
        """HTML description of a failure for debug pages."""
        match failure:
            case InvalidHandlerResult(value=value):
                return (
                    f"Expected request handler to return {_code('Response')} but got "
                    f"{_code(type(value).__name__)}."
                )
            case ApplicationFailure(cause=cause):
                return (
                    f"Expected request handler to return {_code('Response')} but got "
                    f"uncaught {_code(type(cause).__name__)} with message "
                    f"{_code(cause)}{_location(cause)}."
                )
        return (
            f"Request handler broke the handler contract: "
            f"{_code(type(failure).__name__)} with message "
            f"{_code(failure)}{_location(failure)}."
        )

    @staticmethod
    def html(status_code: HTTPStatus, title: str, info: str) -> Response:
        """Renders an error page. info is trusted HTML."""
        page = _PAGE.format(
            code=int(status_code),
            phrase=status_code.phrase,
            title=html.escape(title),
            info=info,
        )
        return Response.html(page, status_code=status_code)

    def _report(self, failure: ContractViolation) -> None:
        if self.reporter is None:
            return
        try:
            self.reporter(failure)
        except Exception:
            logger.exception("Reporter failed", violation=type(failure).__name__)
