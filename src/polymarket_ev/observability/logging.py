"""
structlog setup for the CLI and the scan pipeline.

Records pass through the stdlib ``logging`` root handler on stderr, so a
``--json`` result printed on stdout is never interleaved with log lines.
Anything bound with ``structlog.contextvars.bound_contextvars`` (the pipeline
binds ``sport_key``) is merged into every record emitted inside that block.
"""

import logging
import sys
from typing import Optional

import structlog

from polymarket_ev.config import get_settings

# Third-party loggers that would otherwise log every request at INFO
_QUIET_LOGGERS = ("httpx", "httpcore", "hpack")


def _renderer(fmt: str):
    if fmt == "json":
        return [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    return [structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())]


def setup_logging(level: Optional[str] = None, format: Optional[str] = None) -> None:
    """
    Configure structlog and the stdlib root logger.

    Args:
        level: stdlib level name; unknown names fall back to INFO
        format: ``json`` for one JSON object per line, anything else for the
            console renderer. Both default to the settings.
    """
    if level is None or format is None:
        settings = get_settings()
        level = level or settings.log_level
        format = format or settings.log_format

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.UnicodeDecoder(),
            *_renderer(format),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=getattr(logging, level.upper(), logging.INFO),
        force=True,
    )
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: Optional[str] = None) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)
