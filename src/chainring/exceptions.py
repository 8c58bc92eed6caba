class ChainringError(Exception):
    """Base class for every failure surfaced by the dispatch core."""


class RoutingFailure(ChainringError):
    """The request could not be matched to a route."""


class NotFoundError(RoutingFailure):
    """No registered pattern matches the request path."""


class MethodNotAllowedError(RoutingFailure):
    """The path matches, but not for the request method."""

    def __init__(self, allowed: tuple[str, ...]) -> None:
        super().__init__(f"Method not allowed, expected one of {', '.join(allowed)}")
        self.allowed = allowed


class ApplicationFailure(ChainringError):
    """Wraps an exception raised by user supplied handler code."""

    def __init__(self, cause: BaseException) -> None:
        super().__init__(f"{type(cause).__name__}: {cause}")
        self.cause = cause


class ContractViolation(ChainringError):
    """A handler broke the framework usage contract."""


class NoNextHandler(ContractViolation):
    """The last handler of a chain called its continuation."""

    def __init__(self) -> None:
        super().__init__("Called next handler, but the chain has no next handler")


class MultipleNextCalls(ContractViolation):
    """A wrapping handler called its continuation more than once."""

    def __init__(self) -> None:
        super().__init__("Next handler may only be called once per request")


class ContinuationReused(ContractViolation):
    """A continuation returned by next was awaited more than once."""

    def __init__(self) -> None:
        super().__init__("Cannot await the same continuation twice")


class InvalidYield(ContractViolation):
    """A suspendable handler yielded something that is not a step."""

    def __init__(self, value: object) -> None:
        super().__init__(
            "Expected request handler to yield a Response or an awaitable "
            f"but got {type(value).__name__}"
        )
        self.value = value


class InvalidHandlerResult(ContractViolation):
    """A handler produced a value that does not resolve to a Response."""

    def __init__(self, value: object) -> None:
        super().__init__(
            "Expected request handler to return Response "
            f"but got {type(value).__name__}"
        )
        self.value = value


type Failure = ApplicationFailure | ContractViolation | RoutingFailure


def as_failure(exc: Exception) -> Failure:
    """Classifies an exception caught while executing a chain."""
    if isinstance(exc, ApplicationFailure | ContractViolation | RoutingFailure):
        return exc
    failure = ApplicationFailure(exc)
    failure.__cause__ = exc
    return failure
