from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from chainring.chain import MiddlewareChain, build
from chainring.error_handler import ErrorHandler
from chainring.exceptions import as_failure
from chainring.log import get_logger
from chainring.normalizer import execute
from chainring.result import Err, Ok
from chainring.router import Matched, MethodNotAllowed, NotFound
from chainring.status import HTTPStatus

if TYPE_CHECKING:
    from collections.abc import Sequence

    from chainring.request import Request
    from chainring.response import Response
    from chainring.router import Router
    from chainring.typedef import Handler, NextHandler

logger = get_logger(__name__)

_BODYLESS = frozenset({HTTPStatus.NO_CONTENT, HTTPStatus.NOT_MODIFIED})


@dataclass(frozen=True, slots=True, kw_only=True)
class Dispatcher:
    """Routes a request, runs its chain and always answers with a response."""

    """Resolves requests to routes"""
    router: Router

    """Converts failures to responses"""
    error_handler: ErrorHandler = field(default_factory=ErrorHandler)

    _not_found_chain: MiddlewareChain = field(init=False, repr=False)

    def __post_init__(self) -> None:
        """Builds the chain shared by every unmatched request."""
        object.__setattr__(
            self, "_not_found_chain", self.fallback_chain(self._not_found)
        )

    async def dispatch(self, request: Request) -> Response:
        """Produces the response for a request.

        Failures never escape: routing failures become 404/405 pages and chain
        failures are handed to the error handler. Cancelling the awaiting task
        cancels whatever the chain is waiting on and produces no response.
        """
        try:
            match_result = self.router.match(request.method, request.path)
        except Exception as exc:  # noqa: BLE001
            return self.error_handler.to_response(as_failure(exc))

        match match_result:
            case Matched(route=route, variables=variables):
                chain = route.chain
                if variables:
                    request = request.with_attributes(variables)
            case MethodNotAllowed(allowed=allowed):
                logger.debug(
                    "Method not allowed",
                    method=request.method,
                    path=request.path,
                    allowed=allowed,
                )
                chain = self.fallback_chain(self._method_not_allowed(allowed))
            case NotFound():
                logger.debug(
                    "No route matched", method=request.method, path=request.path
                )
                chain = self._not_found_chain

        match await execute(chain, request):
            case Ok(response=response):
                pass
            case Err(failure=failure):
                response = self.error_handler.to_response(failure)

        if request.method == "HEAD":
            response = _head_response(response)

        return response

    def fallback_chain(self, handler: Handler) -> MiddlewareChain:
        """Global handlers followed by a terminal fallback handler."""
        return build((*self.router.global_handlers, handler))

    def _not_found(self, _: Request, __: NextHandler) -> Response:
        return self.error_handler.not_found()

    def _method_not_allowed(self, allowed: Sequence[str]) -> Handler:
        def handler(_: Request, __: NextHandler) -> Response:
            return self.error_handler.method_not_allowed(allowed)

        return handler


def _head_response(response: Response) -> Response:
    """Drops the body, keeping the length of what GET would have sent.

    A content-length set by the handler is kept. Statuses that never carry a
    body (1xx, 204, 304) get none.
    """
    status_code = int(response.status_code)
    if (
        "content-length" not in response.headers
        and status_code >= HTTPStatus.OK
        and status_code not in _BODYLESS
    ):
        response = response.with_header("content-length", str(len(response.body)))
    return response.with_body(b"")
