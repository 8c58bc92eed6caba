from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

from werkzeug import exceptions
from werkzeug.routing import Map, MapAdapter, Rule

from chainring.chain import MiddlewareChain, build
from chainring.request import Request
from chainring.response import Response
from chainring.status import HTTPStatus

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from chainring.typedef import Handler, HTTPMethod, NextHandler


@dataclass(frozen=True, slots=True, kw_only=True)
class Route:
    """A registered route and its pre-built handler chain."""

    """Methods the route answers, None for any method"""
    methods: tuple[HTTPMethod, ...] | None

    """Path pattern in werkzeug rule syntax, e.g. /users/<int:user_id>"""
    pattern: str

    """Global handlers, route middleware and controller, in execution order"""
    handlers: tuple[Handler, ...]

    """The composed chain, shared by every request matching the route"""
    chain: MiddlewareChain = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        """Builds the chain once."""
        object.__setattr__(self, "chain", build(self.handlers))


@dataclass(frozen=True, slots=True)
class Matched:
    """Path and method match a route."""

    route: Route
    variables: Mapping[str, Any]


@dataclass(frozen=True, slots=True)
class MethodNotAllowed:
    """Path matches, method does not."""

    allowed: tuple[str, ...]


@dataclass(frozen=True, slots=True)
class NotFound:
    """Nothing matches the path."""


type RouteMatch = Matched | MethodNotAllowed | NotFound


def redirect_handler(
    target: str, status_code: HTTPStatus | int = HTTPStatus.FOUND
) -> Handler:
    """Returns a terminal handler redirecting every request to target."""
    response = Response.redirect(target, status_code=status_code)

    def handler(_: Request, __: NextHandler) -> Response:
        return response

    return handler


@dataclass(slots=True, kw_only=True)
class Router:
    """Maps method and path to a route, using werkzeug's rule matching.

    Global handlers are prepended to every route when it is registered. Once the
    router has matched its first request, the route table is frozen.
    """

    """Handlers every route starts with"""
    global_handlers: tuple[Handler, ...] = ()

    _map: Map = field(
        default_factory=lambda: Map(strict_slashes=False, merge_slashes=False),
        init=False,
    )

    _routes: list[Route] = field(default_factory=list, init=False)

    _adapter: MapAdapter | None = field(default=None, init=False)

    def add(self, method: HTTPMethod, pattern: str, *handlers: Handler) -> Route:
        """Registers handlers for one method."""
        return self.map((method,), pattern, *handlers)

    def map(
        self, methods: Iterable[HTTPMethod], pattern: str, *handlers: Handler
    ) -> Route:
        """Registers handlers for several methods."""
        methods = tuple(dict.fromkeys(method.upper() for method in methods))
        if not methods:
            raise ValueError("At least one method is required, use any() instead")
        for method in methods:
            if not Request.verify_http_method(method):
                msg = f"Unsupported HTTP method {method!r}"
                raise ValueError(msg)

        return self._register(methods, pattern, handlers)

    def any(self, pattern: str, *handlers: Handler) -> Route:
        """Registers handlers for every method."""
        return self._register(None, pattern, handlers)

    def redirect(
        self,
        pattern: str,
        target: str,
        status_code: HTTPStatus | int = HTTPStatus.FOUND,
    ) -> Route:
        """Registers a redirect from pattern to target, for every method."""
        return self.any(pattern, redirect_handler(target, status_code))

    @property
    def routes(self) -> tuple[Route, ...]:
        """Registered routes, in registration order."""
        return tuple(self._routes)

    def match(self, method: str, path: str) -> RouteMatch:
        """Resolves a method and path to a route match."""
        adapter = self._bind()
        path, _, _ = path.partition("?")

        try:
            index, variables = adapter.match(path, method=method)
        except exceptions.MethodNotAllowed:
            if method == "HEAD":
                return self.match("GET", path)
            return MethodNotAllowed(allowed=self._allowed_methods(adapter, path))
        except exceptions.NotFound:
            return NotFound()

        return Matched(
            route=self._routes[index], variables=MappingProxyType(variables)
        )

    def _register(
        self,
        methods: tuple[HTTPMethod, ...] | None,
        pattern: str,
        handlers: tuple[Handler, ...],
    ) -> Route:
        if self._adapter is not None:
            raise RuntimeError("Routes can not be added once the router is matching")
        if not handlers:
            msg = f"Route {pattern!r} needs at least one handler"
            raise ValueError(msg)

        route = Route(
            methods=methods,
            pattern=pattern,
            handlers=(*self.global_handlers, *handlers),
        )
        # The endpoint is the index into _routes; handlers need not be hashable.
        rule = Rule(
            pattern,
            methods=list(methods) if methods is not None else None,
            endpoint=len(self._routes),
        )
        if methods is not None:
            # werkzeug implies HEAD for GET rules; match() falls back to GET instead,
            # so an explicit HEAD route wins over GET.
            rule.methods = set(methods)
        self._map.add(rule)
        self._routes.append(route)
        return route

    def _bind(self) -> MapAdapter:
        if self._adapter is None:
            self._adapter = self._map.bind("localhost")
        return self._adapter

    def _allowed_methods(self, adapter: MapAdapter, path: str) -> tuple[str, ...]:
        """Methods registered for a path, in registration order."""
        candidates = dict.fromkeys(
            method for route in self._routes for method in route.methods or ()
        )
        return tuple(method for method in candidates if adapter.test(path, method))

