"""
Logging Configuration for ecom-synth

Structured logs go to stderr so stdout stays free for the summary table.
A generation run binds its seed and scale into the context, and every
line emitted during that run carries them.
"""

import logging
import sys
from contextlib import contextmanager
from typing import IO, Iterator, Optional

import structlog
from structlog.processors import JSONRenderer, TimeStamper
from structlog.stdlib import add_log_level, ProcessorFormatter

from ecom_synth.config.settings import get_settings

# Third-party loggers that are chatty at DEBUG (faker logs every locale lookup)
QUIET_LOGGERS = ("faker", "faker.factory")

SHARED_PROCESSORS = [
    structlog.contextvars.merge_contextvars,
    structlog.stdlib.add_logger_name,
    add_log_level,
    TimeStamper(fmt="iso", utc=True),
    structlog.processors.StackInfoRenderer(),
    structlog.processors.format_exc_info,
]


def build_renderer(log_format: str, stream: IO[str]):
    """JSON lines for "json", a console renderer otherwise"""
    if log_format == "json":
        return JSONRenderer(sort_keys=True, default=str)
    return structlog.dev.ConsoleRenderer(colors=stream.isatty())


def configure_logging(
    log_level: Optional[str] = None,
    log_format: Optional[str] = None,
    stream: Optional[IO[str]] = None,
) -> logging.Handler:
    """
    Route structlog and stdlib logging through one handler.

    Args:
        log_level: Override LOG_LEVEL (DEBUG, INFO, WARNING, ERROR)
        log_format: Override LOG_FORMAT ("json" or "text")
        stream: Destination, stderr by default

    Returns:
        The installed handler
    """
    settings = get_settings()
    level = (log_level or settings.monitoring.log_level).upper()
    fmt = (log_format or settings.monitoring.log_format).lower()
    stream = stream or sys.stderr
    numeric_level = getattr(logging, level, logging.INFO)

    structlog.configure(
        processors=SHARED_PROCESSORS + [ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(stream)
    handler.setLevel(numeric_level)
    handler.setFormatter(ProcessorFormatter(
        processor=build_renderer(fmt, stream),
        foreign_pre_chain=SHARED_PROCESSORS,
    ))

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)
    for existing in root_logger.handlers[:]:
        root_logger.removeHandler(existing)
    root_logger.addHandler(handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(numeric_level, logging.WARNING))

    structlog.get_logger(__name__).debug("Logging configured", level=level, format=fmt)
    return handler


@contextmanager
def run_context(**fields) -> Iterator[None]:
    """Bind fields into every log line emitted inside the block"""
    with structlog.contextvars.bound_contextvars(**fields):
        yield
