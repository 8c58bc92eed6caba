"""Shared test fixtures for chainring."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any

import pytest
import structlog

from chainring.request import Request
from chainring.response import Response
from chainring.status import HTTPStatus

if TYPE_CHECKING:
    from collections.abc import Callable, Coroutine, Iterator, Mapping

    from chainring.typedef import Handler, HTTPMethod, NextHandler


def make_request(
    method: HTTPMethod = "GET",
    path: str = "/",
    *,
    headers: Mapping[str, str] | None = None,
    attributes: Mapping[str, Any] | None = None,
) -> Request:
    """Create a minimal Request for testing."""
    return Request(
        method=method,
        path=path,
        headers=headers or {},
        attributes=attributes or {},
    )


def respond(body: bytes = b"", status_code: int = HTTPStatus.OK) -> Handler:
    """Create a terminal handler answering with a fixed response."""

    def handler(_: Request, __: NextHandler) -> Response:
        return Response(status_code=status_code, body=body)

    return handler


def passthrough(calls: list[str], name: str) -> Handler:
    """Create a wrapping handler recording its name before calling next."""

    def handler(request: Request, next_: NextHandler) -> object:
        calls.append(name)
        return next_(request)

    return handler


@pytest.fixture
def run_coro() -> Callable[[Coroutine], object]:
    """Run a coroutine on a fresh asyncio event loop."""

    def _run(coro: Coroutine) -> object:
        return asyncio.run(coro)

    return _run


@pytest.fixture(autouse=True)
def _reset_structlog() -> Iterator[None]:
    """Undo logging configuration done by a test."""
    yield
    structlog.reset_defaults()
