"""Tests for tagging raw handler return values."""

import asyncio

import pytest

from chainring.exceptions import InvalidHandlerResult
from chainring.response import Response
from chainring.result import Deferred, Immediate, Suspendable, lift
from chainring.status import HTTPStatus


class TestLift:
    def test_response_is_immediate(self) -> None:
        response = Response(status_code=HTTPStatus.OK)
        assert lift(response) == Immediate(response=response)

    def test_coroutine_is_deferred(self) -> None:
        async def handler() -> Response:
            return Response(status_code=HTTPStatus.OK)

        coro = handler()
        result = lift(coro)
        assert isinstance(result, Deferred)
        assert result.awaitable is coro
        coro.close()

    def test_future_is_deferred(self) -> None:
        loop = asyncio.new_event_loop()
        try:
            future = loop.create_future()
            assert isinstance(lift(future), Deferred)
        finally:
            loop.close()

    def test_generator_is_suspendable(self) -> None:
        def handler():
            yield Response(status_code=HTTPStatus.OK)

        gen = handler()
        result = lift(gen)
        assert isinstance(result, Suspendable)
        assert result.steps is gen

    @pytest.mark.parametrize(
        "result",
        [
            Immediate(response=Response(status_code=HTTPStatus.OK)),
            Suspendable(steps=iter(())),  # type: ignore[arg-type]
        ],
    )
    def test_handler_results_pass_through(self, result: object) -> None:
        assert lift(result) is result

    @pytest.mark.parametrize("value", [None, 42, "Hello", b"Hello", {"a": 1}])
    def test_other_values_are_rejected(self, value: object) -> None:
        with pytest.raises(InvalidHandlerResult) as exc_info:
            lift(value)
        assert exc_info.value.value is value
        assert type(value).__name__ in str(exc_info.value)
