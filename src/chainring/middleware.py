from __future__ import annotations

import time
from typing import TYPE_CHECKING

from chainring.log import get_logger
from chainring.response import Response
from chainring.status import HTTPStatus

if TYPE_CHECKING:
    from chainring.request import Request
    from chainring.typedef import Coro, Handler, NextHandler

logger = get_logger()


async def access_log_middleware(request: Request, next_: NextHandler) -> Response:
    """Logs every request and the response sent for it."""
    logger.info("Incoming request", path=request.path, method=request.method)
    start_time = time.monotonic()
    response = await next_(request)
    logger.info(
        "Sending response",
        path=request.path,
        method=request.method,
        status_code=int(response.status_code),
        size=len(response.body),
        elapsed_time=time.monotonic() - start_time,
    )
    return response


def cors_middleware(allow_origin: str = "*") -> Handler:
    """Returns a middleware for CORS given an allowed origin."""

    def middleware(request: Request, next_: NextHandler) -> Coro[Response]:
        if request.method == "OPTIONS":
            return Response(
                status_code=HTTPStatus.NO_CONTENT,
                headers={
                    "access-control-allow-origin": allow_origin,
                    "access-control-allow-methods": (
                        "GET, POST, PUT, PATCH, DELETE, OPTIONS"
                    ),
                    "access-control-allow-headers": "Content-Type, Authorization",
                    "access-control-max-age": "86400",
                },
            )
        response = yield next_(request)
        return response.with_header("access-control-allow-origin", allow_origin)

    return middleware
