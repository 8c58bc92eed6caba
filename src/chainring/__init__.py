"""Chainring: middleware composition and async dispatch for HTTP handlers."""

__version__ = "0.1.0"

from chainring.app import App
from chainring.chain import MiddlewareChain, Next, build
from chainring.config import Config
from chainring.dispatcher import Dispatcher
from chainring.error_handler import ErrorHandler
from chainring.request import Request
from chainring.response import Response
from chainring.result import Deferred, Immediate, Suspendable
from chainring.router import Router
from chainring.status import HTTPStatus

__all__ = [
    "App",
    "Config",
    "Deferred",
    "Dispatcher",
    "ErrorHandler",
    "HTTPStatus",
    "Immediate",
    "MiddlewareChain",
    "Next",
    "Request",
    "Response",
    "Router",
    "Suspendable",
    "build",
]
