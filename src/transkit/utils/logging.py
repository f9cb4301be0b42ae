"""Structured logging for Transkit.

Log lines emitted while a work unit runs carry the unit's ``file`` and
``admission`` through structlog's context variables, so concurrent units can
be told apart in the output.
"""

import sys
from contextlib import contextmanager
from typing import IO, Iterator, Optional

import structlog


def configure_logging(
    level: str = "WARNING",
    json: bool = False,
    stream: Optional[IO[str]] = None,
    cache: bool = True,
) -> None:
    """Configure structured logging for the application.

    Args:
        level: The logging level to use. Defaults to "WARNING".
        json: Whether to output logs in JSON format. Defaults to False.
        stream: Where log lines go. Defaults to standard error.
        cache: Whether loggers keep their configuration after first use.
            Disable it when ``stream`` may be closed before the process ends.
    """
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info if json else structlog.dev.set_exc_info,
            structlog.processors.JSONRenderer() if json else structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level.upper()),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(stream or sys.stderr),
        cache_logger_on_first_use=cache,
    )


def get_logger(name: Optional[str] = None) -> structlog.BoundLogger:
    """Get a logger instance.

    Args:
        name: Optional name for the logger. Defaults to None.

    Returns:
        A structured logger instance.
    """
    return structlog.get_logger(name)


@contextmanager
def unit_context(file: str, admission: int) -> Iterator[None]:
    """Bind a unit's file and admission count to every log line in the block."""
    with structlog.contextvars.bound_contextvars(file=file, admission=admission):
        yield
