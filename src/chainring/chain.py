from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from chainring.exceptions import ContinuationReused, MultipleNextCalls, NoNextHandler
from chainring.normalizer import resolve
from chainring.result import Deferred, lift

if TYPE_CHECKING:
    from collections.abc import Generator, Iterable, Iterator
    from typing import Any

    from chainring.request import Request
    from chainring.response import Response
    from chainring.typedef import Handler, HandlerReturn, NextHandler


@dataclass(frozen=True, slots=True)
class MiddlewareChain:
    """An ordered list of handlers composed into a single handler.

    The chain holds no per-request state, so it is built once per route and
    shared by every request. Each invocation of a position gets its own
    ``Next`` continuation pointing at the following position.
    """

    handlers: tuple[Handler, ...]

    def __post_init__(self) -> None:
        """Rejects empty chains."""
        if not self.handlers:
            raise ValueError("A middleware chain needs at least one handler")

    def __call__(
        self, request: Request, next_: NextHandler | None = None
    ) -> HandlerReturn:
        """Runs the chain from its first handler.

        When given a continuation, the last handler of this chain may call it,
        which lets chains nest inside other chains.
        """
        return self.invoke(0, request, next_)

    def __len__(self) -> int:
        """Number of handlers in the chain."""
        return len(self.handlers)

    def __iter__(self) -> Iterator[Handler]:
        """Iterates handlers in execution order."""
        return iter(self.handlers)

    def invoke(
        self, position: int, request: Request, outer: NextHandler | None
    ) -> HandlerReturn:
        """Calls the handler at a position with a fresh continuation."""
        handler = self.handlers[position]
        return handler(request, Next(chain=self, position=position + 1, outer=outer))


@dataclass(slots=True, kw_only=True)
class Next:
    """The remainder of a chain, as seen by one handler invocation."""

    """The chain being executed"""
    chain: MiddlewareChain = field(repr=False)

    """Position of the handler this continuation runs"""
    position: int

    """Continuation of an enclosing chain, used past the last handler"""
    outer: NextHandler | None = field(default=None, repr=False)

    """Whether the owning handler already called it"""
    called: bool = field(default=False, init=False)

    def __call__(self, request: Request) -> Deferred[Response]:
        """Hands the request to the rest of the chain.

        The returned Deferred runs the next handler when awaited, or when yielded
        from a suspendable handler.

        Raises:
            NoNextHandler: if the chain has no handler left.
            MultipleNextCalls: if called more than once.
        """
        at_end = self.position >= len(self.chain)
        if at_end and self.outer is None:
            raise NoNextHandler
        if self.called:
            raise MultipleNextCalls
        self.called = True

        if at_end and self.outer is not None:
            return self.outer(request)

        return Deferred(
            awaitable=_Continuation(
                chain=self.chain,
                position=self.position,
                request=request,
                outer=self.outer,
            )
        )


@dataclass(slots=True, kw_only=True)
class _Continuation:
    """Lazily runs one chain position; can only be awaited once."""

    chain: MiddlewareChain = field(repr=False)
    position: int
    request: Request = field(repr=False)
    outer: NextHandler | None = field(repr=False)
    awaited: bool = field(default=False, init=False)

    def __await__(self) -> Generator[Any, Any, Response]:
        """Starts the next handler."""
        if self.awaited:
            raise ContinuationReused
        self.awaited = True
        return self._run().__await__()

    async def _run(self) -> Response:
        result = self.chain.invoke(self.position, self.request, self.outer)
        return await resolve(lift(result))


def build(handlers: Iterable[Handler]) -> MiddlewareChain:
    """Composes handlers into a chain, in execution order."""
    return MiddlewareChain(tuple(handlers))
