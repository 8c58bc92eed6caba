from __future__ import annotations

from dataclasses import replace
from typing import TYPE_CHECKING

from chainring.config import Config
from chainring.dispatcher import Dispatcher
from chainring.error_handler import ErrorHandler
from chainring.router import Router
from chainring.status import HTTPStatus

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from chainring.request import Request
    from chainring.response import Response
    from chainring.router import Route
    from chainring.typedef import Handler, HTTPMethod, Reporter


class App:
    """A micro web application.

    Global middleware is given once, at construction, and runs before the route
    handlers of every request, including requests that end up as 404 or 405.

    Example:
        app = App(access_log_middleware)

        @app.get("/users/<int:user_id>", auth)
        def user(request: Request, next_: NextHandler) -> Response:
            return Response.text(f"Hello {request.get_attribute('user_id')}")
    """

    __slots__ = ("config", "dispatcher", "router")

    def __init__(
        self,
        *middleware: Handler,
        config: Config | None = None,
        debug: bool | None = None,
        reporter: Reporter | None = None,
    ) -> None:
        """Creates an app; an explicit debug flag overrides the config."""
        config = config or Config()
        if debug is not None:
            config = replace(config, debug=debug)

        self.config = config
        self.router = Router(global_handlers=middleware)
        self.dispatcher = Dispatcher(
            router=self.router,
            error_handler=ErrorHandler(debug=config.debug, reporter=reporter),
        )

    async def dispatch(self, request: Request) -> Response:
        """Produces the response for a request. Never raises for failures."""
        return await self.dispatcher.dispatch(request)

    def add(self, method: HTTPMethod, pattern: str, *handlers: Handler) -> Route:
        """Registers route middleware and controller for one method."""
        return self.router.add(method, pattern, *handlers)

    def map(
        self, methods: Iterable[HTTPMethod], pattern: str, *handlers: Handler
    ) -> Route:
        """Registers route middleware and controller for several methods."""
        return self.router.map(methods, pattern, *handlers)

    def redirect(
        self,
        pattern: str,
        target: str,
        status_code: HTTPStatus | int = HTTPStatus.FOUND,
    ) -> Route:
        """Redirects every request for pattern to target."""
        return self.router.redirect(pattern, target, status_code)

    def register(
        self, method: HTTPMethod | None, pattern: str, *middleware: Handler
    ) -> Callable[[Handler], Handler]:
        """Decorator registering a controller behind route middleware.

        A method of None registers the controller for every method.
        """

        def wrapper(func: Handler) -> Handler:
            if method is None:
                self.router.any(pattern, *middleware, func)
            else:
                self.router.add(method, pattern, *middleware, func)

            return func

        return wrapper

    def get(self, pattern: str, *middleware: Handler) -> Callable[[Handler], Handler]:
        """Utility wrapper for GET method registration."""
        return self.register("GET", pattern, *middleware)

    def head(self, pattern: str, *middleware: Handler) -> Callable[[Handler], Handler]:
        """Utility wrapper for HEAD method registration."""
        return self.register("HEAD", pattern, *middleware)

    def post(self, pattern: str, *middleware: Handler) -> Callable[[Handler], Handler]:
        """Utility wrapper for POST method registration."""
        return self.register("POST", pattern, *middleware)

    def put(self, pattern: str, *middleware: Handler) -> Callable[[Handler], Handler]:
        """Utility wrapper for PUT method registration."""
        return self.register("PUT", pattern, *middleware)

    def patch(self, pattern: str, *middleware: Handler) -> Callable[[Handler], Handler]:
        """Utility wrapper for PATCH method registration."""
        return self.register("PATCH", pattern, *middleware)

    def delete(
        self, pattern: str, *middleware: Handler
    ) -> Callable[[Handler], Handler]:
        """Utility wrapper for DELETE method registration."""
        return self.register("DELETE", pattern, *middleware)

    def options(
        self, pattern: str, *middleware: Handler
    ) -> Callable[[Handler], Handler]:
        """Utility wrapper for OPTIONS method registration."""
        return self.register("OPTIONS", pattern, *middleware)

    def any(self, pattern: str, *middleware: Handler) -> Callable[[Handler], Handler]:
        """Utility wrapper for registration under every method."""
        return self.register(None, pattern, *middleware)
