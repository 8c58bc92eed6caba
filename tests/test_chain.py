"""Tests for composing handlers into middleware chains."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

import pytest

from chainring.chain import MiddlewareChain, Next, build
from chainring.exceptions import ContinuationReused, MultipleNextCalls, NoNextHandler
from chainring.normalizer import execute
from chainring.response import Response
from chainring.result import Deferred, Err, Ok
from chainring.status import HTTPStatus

from .conftest import make_request, passthrough, respond

if TYPE_CHECKING:
    from collections.abc import Callable, Coroutine

    from chainring.request import Request
    from chainring.typedef import Coro, NextHandler

type RunCoro = Callable[[Coroutine], object]


def _admin_flag(request: Request, next_: NextHandler) -> Deferred[Response]:
    is_admin = request.header("x-admin") == "1"
    return next_(request.with_attribute("admin", is_admin))


def _greet(request: Request, _: NextHandler) -> Response:
    who = "admin" if request.get_attribute("admin") else "user"
    return Response.text(f"Hello {who}!")


class TestBuild:
    def test_preserves_order(self) -> None:
        first, second = respond(b"1"), respond(b"2")
        chain = build([first, second])
        assert list(chain) == [first, second]
        assert len(chain) == 2

    def test_empty_chain_is_rejected(self) -> None:
        with pytest.raises(ValueError, match="at least one handler"):
            build([])

    def test_building_twice_gives_equal_chains(self) -> None:
        handlers = [_admin_flag, _greet]
        assert build(handlers) == build(handlers)

    def test_chain_is_reusable(self, run_coro: RunCoro) -> None:
        chain = build([_admin_flag, _greet])
        request = make_request(headers={"x-admin": "1"})
        first = run_coro(execute(chain, request))
        second = run_coro(execute(chain, request))
        assert first == second == Ok(response=Response.text("Hello admin!"))


class TestExecutionOrder:
    def test_handlers_run_in_order(self, run_coro: RunCoro) -> None:
        calls: list[str] = []
        chain = build([passthrough(calls, "a"), passthrough(calls, "b"), respond()])
        run_coro(execute(chain, make_request()))
        assert calls == ["a", "b"]

    def test_attributes_flow_downstream(self, run_coro: RunCoro) -> None:
        chain = build([_admin_flag, _greet])

        admin = run_coro(execute(chain, make_request(headers={"x-admin": "1"})))
        user = run_coro(execute(chain, make_request()))

        assert admin == Ok(response=Response.text("Hello admin!"))
        assert user == Ok(response=Response.text("Hello user!"))

    def test_short_circuit_skips_rest(self, run_coro: RunCoro) -> None:
        calls: list[str] = []

        def deny(_: Request, __: NextHandler) -> Response:
            calls.append("deny")
            return Response(status_code=HTTPStatus.FORBIDDEN)

        chain = build([deny, passthrough(calls, "never"), respond()])
        outcome = run_coro(execute(chain, make_request()))
        assert outcome == Ok(response=Response(status_code=HTTPStatus.FORBIDDEN))
        assert calls == ["deny"]

    def test_wrapper_sees_downstream_response(self, run_coro: RunCoro) -> None:
        async def stamp(request: Request, next_: NextHandler) -> Response:
            response = await next_(request)
            return response.with_header("x-stamp", "1")

        def stamp_steps(request: Request, next_: NextHandler) -> Coro[Response]:
            response = yield next_(request)
            return response.with_header("x-steps", "1")

        chain = build([stamp, stamp_steps, respond(b"body")])
        outcome = run_coro(execute(chain, make_request()))
        assert isinstance(outcome, Ok)
        assert outcome.response.headers["x-stamp"] == "1"
        assert outcome.response.headers["x-steps"] == "1"
        assert outcome.response.body == b"body"

    def test_delayed_continuation_runs_downstream_once(
        self, run_coro: RunCoro
    ) -> None:
        calls: list[str] = []

        async def slow(request: Request, next_: NextHandler) -> Response:
            await asyncio.sleep(0.01)
            return await next_(request)

        chain = build([slow, passthrough(calls, "b"), respond(b"late")])
        outcome = run_coro(execute(chain, make_request()))
        assert outcome == Ok(response=Response(status_code=HTTPStatus.OK, body=b"late"))
        assert calls == ["b"]

    def test_next_is_lazy_until_awaited(self) -> None:
        calls: list[str] = []
        chain = build([respond(), passthrough(calls, "b"), respond()])
        continuation = Next(chain=chain, position=1)

        deferred = continuation(make_request())

        assert isinstance(deferred, Deferred)
        assert calls == []


class TestNesting:
    def test_chain_as_handler(self, run_coro: RunCoro) -> None:
        calls: list[str] = []
        inner = build([passthrough(calls, "inner-a"), passthrough(calls, "inner-b")])
        chain = build([passthrough(calls, "outer"), inner, respond(b"done")])

        outcome = run_coro(execute(chain, make_request()))

        assert outcome == Ok(response=Response(status_code=HTTPStatus.OK, body=b"done"))
        assert calls == ["outer", "inner-a", "inner-b"]

    def test_called_with_outer_continuation(self, run_coro: RunCoro) -> None:
        inner = build([_admin_flag])

        async def run() -> Response:
            outer = build([inner, _greet])
            return await outer(make_request(headers={"x-admin": "1"}))

        assert run_coro(run()) == Response.text("Hello admin!")

    def test_is_a_middleware_chain(self) -> None:
        assert isinstance(build([respond()]), MiddlewareChain)


class TestContract:
    def test_last_handler_calling_next(self, run_coro: RunCoro) -> None:
        calls: list[str] = []
        chain = build([passthrough(calls, "a"), passthrough(calls, "last")])
        outcome = run_coro(execute(chain, make_request()))
        assert isinstance(outcome, Err)
        assert isinstance(outcome.failure, NoNextHandler)

    def test_calling_next_twice(self, run_coro: RunCoro) -> None:
        calls: list[str] = []

        async def twice(request: Request, next_: NextHandler) -> Response:
            await next_(request)
            return await next_(request)

        chain = build([twice, passthrough(calls, "b"), respond()])
        outcome = run_coro(execute(chain, make_request()))
        assert isinstance(outcome, Err)
        assert isinstance(outcome.failure, MultipleNextCalls)
        assert calls == ["b"]

    def test_awaiting_continuation_twice(self, run_coro: RunCoro) -> None:
        async def again(request: Request, next_: NextHandler) -> Response:
            deferred = next_(request)
            await deferred
            return await deferred

        outcome = run_coro(execute(build([again, respond()]), make_request()))
        assert isinstance(outcome, Err)
        assert isinstance(outcome.failure, ContinuationReused)

    def test_per_invocation_continuations(self, run_coro: RunCoro) -> None:
        chain = build([passthrough([], "a"), respond()])
        for _ in range(3):
            outcome = run_coro(execute(chain, make_request()))
            assert isinstance(outcome, Ok)
