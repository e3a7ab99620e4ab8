"""Logging setup and context helpers built on structlog."""

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager

import structlog


def configure_logging(log_level: str = "INFO", *, dev_mode: bool = False) -> None:
    """Configure structlog and the standard library root logger.

    Args:
        log_level: Minimum level to emit (e.g., "DEBUG", "INFO").
        dev_mode: Render human-friendly console output instead of JSON lines.
    """
    level = logging.getLevelName(log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO

    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)

    renderer: structlog.typing.Processor
    if dev_mode:
        renderer = structlog.dev.ConsoleRenderer()
    else:
        renderer = structlog.processors.JSONRenderer()

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=False,
    )


@contextmanager
def log_bind(**kwargs: object) -> Iterator[None]:
    """Bind key/value pairs to every log line emitted inside the block."""
    with structlog.contextvars.bound_contextvars(**kwargs):
        yield
