from __future__ import annotations

import inspect
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from chainring.exceptions import InvalidHandlerResult
from chainring.response import Response

if TYPE_CHECKING:
    from collections.abc import Awaitable, Generator

    from chainring.exceptions import Failure
    from chainring.typedef import Coro


@dataclass(frozen=True, slots=True)
class Immediate:
    """The handler completed synchronously."""

    response: Response


@dataclass(frozen=True, slots=True)
class Deferred[T]:
    """The handler's value settles later, exactly once.

    Wraps any awaitable and is awaitable itself, so handlers can hand it to the
    normalizer, await it, or yield it from a suspendable.
    """

    awaitable: Awaitable[T]

    def __await__(self) -> Generator[Any, Any, T]:
        """Delegates to the wrapped awaitable."""
        return self.awaitable.__await__()


@dataclass(frozen=True, slots=True)
class Suspendable:
    """A step sequence, driven until it returns a Response."""

    steps: Coro[Response]


type HandlerResult = Immediate | Deferred[Response] | Suspendable


@dataclass(frozen=True, slots=True)
class Ok:
    """A chain resolved to a response."""

    response: Response


@dataclass(frozen=True, slots=True)
class Err:
    """A chain failed before producing a response."""

    failure: Failure


type Outcome = Ok | Err


def lift(value: object) -> HandlerResult:
    """Tags a raw handler return value as one of the HandlerResult variants.

    Raises:
        InvalidHandlerResult: if the value is neither a Response, a generator nor
            an awaitable.
    """
    match value:
        case Immediate() | Deferred() | Suspendable():
            return value
        case Response():
            return Immediate(response=value)
        case _ if inspect.isgenerator(value):
            return Suspendable(steps=value)
        case _ if inspect.isawaitable(value):
            return Deferred(awaitable=value)
    raise InvalidHandlerResult(value)
