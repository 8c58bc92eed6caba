import os
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Literal, Self, TypeGuard

from chainring.log import configure_logging

type LogFormat = Literal["console", "json"]

_TRUTHY = frozenset({"1", "true", "yes", "on"})


@dataclass(frozen=True, slots=True, kw_only=True)
class Config:
    """Settings the dispatch core reads at startup."""

    """Render failure details in 500 pages"""
    debug: bool = False

    """How log lines are rendered"""
    log_format: LogFormat = "console"

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> Self:
        """Builds a config from CHAINRING_* environment variables."""
        if environ is None:
            environ = os.environ

        debug = environ.get("CHAINRING_DEBUG", "").strip().lower() in _TRUTHY

        log_format = environ.get("CHAINRING_LOG_FORMAT", "console").strip().lower()
        if not _is_log_format(log_format):
            msg = f"Unsupported log format {log_format!r}, expected console or json"
            raise ValueError(msg)

        return cls(debug=debug, log_format=log_format)

    def configure_logging(self) -> None:
        """Configures structlog according to these settings."""
        configure_logging(debug=self.debug, json=self.log_format == "json")


def _is_log_format(value: str) -> TypeGuard[LogFormat]:
    return value in {"console", "json"}
