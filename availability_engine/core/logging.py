# availability_engine/core/logging.py
"""Structured logging for the engine, built on structlog.

Every event carries the service name and environment from Settings plus the
emitting module, so lines from several deployments can share one sink.
"""

import logging
import sys

import structlog

from availability_engine.core.config import Settings


def _service_context(app_name: str, environment: str):
    """Processor stamping `app` and `env` onto every event."""

    def add_service_context(logger, method_name, event_dict):
        event_dict.setdefault("app", app_name)
        event_dict.setdefault("env", environment)
        return event_dict

    return add_service_context


def setup_logging(settings: Settings) -> None:
    """Configure structlog from application settings.

    LOG_JSON selects JSON lines (production) or the console renderer, and
    LOG_LEVEL filters both structlog events and uvicorn's stdlib loggers.
    """
    numeric_level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)

    processors = [
        structlog.contextvars.merge_contextvars,
        _service_context(settings.APP_NAME, settings.APP_ENV),
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
    ]
    if settings.LOG_JSON:
        processors += [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=numeric_level)


def get_logger(name: str) -> structlog.BoundLogger:
    """Lazy logger carrying the module name as `logger`.

    PrintLoggerFactory drops positional logger names, so the name travels as
    an initial value instead.
    """
    return structlog.get_logger(logger=name)
