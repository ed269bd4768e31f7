"""
Structured logging setup.

Service, API and CLI code logs through structlog with keyword fields
(``logger.info("Check completed", monitor_id=..., status=...)``). Library
modules keep plain ``logging.getLogger(__name__)`` loggers; both end up in
the same stdout stream. Production renders JSON lines, every other
environment a colored console format.
"""

import logging
import sys

import structlog
from structlog.types import Processor

from pulsewatch.config.settings import Settings, get_settings

# Third-party loggers that are too chatty at INFO
QUIET_LOGGERS = ("httpx", "httpcore", "asyncio", "uvicorn.access")


def _shared_processors(settings: Settings) -> list[Processor]:
    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]
    if settings.tracing_enabled:
        from pulsewatch.observability.tracing import add_trace_context

        processors.append(add_trace_context)
    return processors


def _renderers(settings: Settings) -> list[Processor]:
    if settings.is_production:
        return [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    return [structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())]


def setup_logging(settings: Settings | None = None) -> None:
    """
    Configure structlog and the stdlib root logger.

    Args:
        settings: Settings to read the environment and level from
            (cached process settings if None).
    """
    settings = settings or get_settings()

    structlog.configure(
        processors=_shared_processors(settings) + _renderers(settings),
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, settings.log_level),
    )

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
