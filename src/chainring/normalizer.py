"""Turns any handler result into a single awaited response.

Handlers may answer immediately, hand back an awaitable, or return a generator
that yields intermediate steps. ``execute`` and ``resolve`` hide the difference:
callers always await one coroutine and get exactly one response or one failure.
Suspension only happens where an awaitable is actually awaited; immediate
results never give control back to the event loop.
"""

from __future__ import annotations

import inspect
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, assert_never

from chainring.exceptions import (
    InvalidHandlerResult,
    InvalidYield,
    NoNextHandler,
    as_failure,
)
from chainring.log import get_logger
from chainring.response import Response
from chainring.result import Deferred, Err, Immediate, Ok, Suspendable, lift

if TYPE_CHECKING:
    from collections.abc import Generator

    from chainring.request import Request
    from chainring.result import HandlerResult, Outcome
    from chainring.typedef import Coro, Handler, NextHandler

logger = get_logger(__name__)


@dataclass(slots=True, kw_only=True)
class Yielded:
    """The sequence paused on a step."""

    value: Any


@dataclass(slots=True, kw_only=True)
class Completed:
    """The sequence returned."""

    value: Any


@dataclass(slots=True, kw_only=True)
class Failed:
    """The sequence raised."""

    exc: Exception


type Step = Yielded | Completed | Failed


@dataclass(slots=True, kw_only=True)
class Stepper:
    """State machine over a step sequence.

    Every call advances the wrapped generator by exactly one step and reports
    where it ended up, instead of letting StopIteration or handler exceptions
    escape.
    """

    """The generator being driven"""
    gen: Coro = field(repr=False)

    """Where the sequence currently is, None before the first step"""
    state: Step | None = field(default=None, init=False)

    def resume(self, value: Any = None) -> Step:
        """Sends a value into the sequence."""
        with self._handle_step_exc():
            self.state = Yielded(value=self.gen.send(value))
        return self.state

    def throw(self, exc: Exception) -> Step:
        """Raises an exception inside the sequence at its current yield."""
        with self._handle_step_exc():
            self.state = Yielded(value=self.gen.throw(exc))
        return self.state

    def close(self) -> None:
        """Stops an unfinished sequence, running its cleanup."""
        if not self.is_done:
            self.gen.close()

    @property
    def is_done(self) -> bool:
        """If the sequence has returned or raised."""
        return isinstance(self.state, Completed | Failed)

    @contextmanager
    def _handle_step_exc(self) -> Generator[None]:
        if self.is_done:
            raise RuntimeError("Step sequence already finished")
        try:
            yield
        except StopIteration as e:
            self.state = Completed(value=e.value)
        except Exception as e:  # noqa: BLE001
            self.state = Failed(exc=e)


def _no_next(_: Request) -> Deferred[Response]:
    raise NoNextHandler


async def execute(
    handler: Handler, request: Request, next_: NextHandler | None = None
) -> Outcome:
    """Runs a handler to completion.

    Returns:
        Ok with the response, or Err with the classified failure. Cancellation
        is not a failure and propagates to the caller.
    """
    try:
        result = lift(handler(request, next_ or _no_next))
        response = await resolve(result)
    except Exception as exc:  # noqa: BLE001
        return Err(failure=as_failure(exc))

    return Ok(response=response)


async def resolve(result: HandlerResult) -> Response:
    """Resolves one HandlerResult variant to its response."""
    match result:
        case Immediate(response=response):
            return response
        case Deferred(awaitable=awaitable):
            return await _expect_response(await awaitable)
        case Suspendable(steps=steps):
            return await drive(steps)
        case _:
            assert_never(result)


async def drive(steps: Coro[Response]) -> Response:
    """Drives a step sequence until it returns a response.

    Immediate steps resume the sequence synchronously. Awaitable steps suspend
    until settled; a failure is thrown back into the sequence at the yield, so
    it can be handled there, and otherwise ends the sequence.
    """
    stepper = Stepper(gen=steps)
    try:
        step = stepper.resume(None)
        while True:
            match step:
                case Completed(value=value):
                    return await _expect_response(value)
                case Failed(exc=exc):
                    raise exc
                case Yielded(value=value):
                    step = await _advance(stepper, value)
    finally:
        try:
            stepper.close()
        except RuntimeError:
            # The sequence yielded again while closing; keep the original outcome.
            logger.warning("Step sequence ignored close", exc_info=True)


async def _advance(stepper: Stepper, value: object) -> Step:
    """Settles a yielded step and feeds the outcome back into the sequence."""
    match value:
        case Response():
            return stepper.resume(value)
        case Immediate(response=response):
            return stepper.resume(response)

    # Deferred is awaitable too.
    if not inspect.isawaitable(value):
        raise InvalidYield(value)

    try:
        settled = await value
    except Exception as exc:  # noqa: BLE001
        return stepper.throw(exc)
    return stepper.resume(settled)


async def _expect_response(value: object) -> Response:
    """Checks the final value of a handler, adopting nested handler results."""
    match value:
        case Response():
            return value
        case Immediate() | Deferred() | Suspendable():
            return await resolve(value)
    raise InvalidHandlerResult(value)
