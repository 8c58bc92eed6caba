import logging

import structlog


def configure_logging(*, debug: bool = False, json: bool = False) -> None:
    """Configures structlog for the process.

    Console rendering is meant for development, JSON rendering for production
    where log lines are shipped to an aggregator.
    """
    processors: list[structlog.typing.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        structlog.processors.TimeStamper(fmt="%Y-%m-%d %H:%M:%S", utc=False),
    ]
    if json:
        processors += [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.DEBUG if debug else logging.INFO
        ),
    )


def get_logger(name: str | None = None) -> structlog.typing.FilteringBoundLogger:
    """Gets a structlog logger, optionally named after the calling module."""
    if name is None:
        return structlog.get_logger()
    return structlog.get_logger(name)
