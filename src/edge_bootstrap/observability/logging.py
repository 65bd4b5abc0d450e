"""Structured logging configuration for edge bootstrap.

Configures structlog so both structlog loggers and plain
``logging.getLogger(__name__)`` loggers render through one handler.
Log lines go to stderr; stdout is reserved for the human progress report.

Usage::

    from edge_bootstrap.observability.logging import configure_logging

    configure_logging(level='DEBUG', json_output=False)  # once, at startup
    logger = logging.getLogger(__name__)
    logger.info('Network created', extra={'network': 'traefik-network'})
"""

from __future__ import annotations

import logging
import sys
from typing import TextIO

import structlog

_configured = False

# LogRecord attributes that are not user-supplied ``extra=`` fields.
_RESERVED_RECORD_ATTRS = frozenset(
    vars(logging.LogRecord('', 0, '', 0, '', (), None)).keys()
) | {'message', 'asctime'}


def _add_record_extras(
    logger: logging.Logger,
    method_name: str,
    event_dict: dict,
) -> dict:
    """Lift ``extra=`` fields from stdlib LogRecords into the event dict."""
    record = event_dict.get('_record')
    if record is None:
        return event_dict
    for key, value in vars(record).items():
        if key not in _RESERVED_RECORD_ATTRS and not key.startswith('_'):
            event_dict.setdefault(key, value)
    return event_dict


def configure_logging(
    *,
    level: str = 'INFO',
    json_output: bool = False,
    stream: TextIO | None = None,
    force: bool = False,
) -> None:
    """Configure structlog and stdlib logging.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ERROR).
        json_output: Emit JSON lines instead of console output.
        stream: Destination stream. Defaults to stderr.
        force: Reconfigure even if already configured (tests).
    """
    global _configured
    if _configured and not force:
        return
    _configured = True

    shared_processors: list = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt='iso'),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if json_output:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=False)

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=not force,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=[*shared_processors, _add_record_extras],
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    # Quiet noisy libraries.
    logging.getLogger('httpx').setLevel(logging.WARNING)
    logging.getLogger('httpcore').setLevel(logging.WARNING)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Return a structlog logger bound to the given name."""
    return structlog.get_logger(name)
