"""Structured logging setup.

Modules obtain loggers through ``get_logger``. Output goes through the
standard library, so nothing below WARNING is emitted until
``configure_logging`` is called.
"""

import logging
import sys

import structlog

structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.KeyValueRenderer(key_order=["timestamp", "level", "event"]),
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


def configure_logging(level: str = "WARNING") -> None:
    """Route ledgerwise log records to stderr at the given level."""
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter("%(message)s"))

    root = logging.getLogger("ledgerwise")
    root.handlers = [handler]
    root.setLevel(getattr(logging, level.upper(), logging.WARNING))
    root.propagate = False


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Return a structured logger for a module."""
    return structlog.get_logger(name)
