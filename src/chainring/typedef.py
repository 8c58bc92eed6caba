from __future__ import annotations

from collections.abc import Awaitable, Callable, Generator
from typing import TYPE_CHECKING, Any, Literal

if TYPE_CHECKING:
    from chainring.request import Request
    from chainring.response import Response
    from chainring.result import Deferred, HandlerResult

type HTTPMethod = Literal["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS", "HEAD"]

# A suspendable step sequence: yields steps, is resumed with their values.
type Coro[T] = Generator[Any, Any, T]

type HandlerReturn = Response | Awaitable[Response] | Coro[Response] | HandlerResult

type NextHandler = Callable[[Request], Deferred[Response]]

type Handler = Callable[[Request, NextHandler], HandlerReturn]

type Reporter = Callable[[BaseException], None]
