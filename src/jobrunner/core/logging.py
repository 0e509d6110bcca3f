"""
Structured logging for the job runtime.

Manifesto:
    A job runtime is mostly observed through its logs: which identifier
    resolved to which class, which entry point was bound, why a run ended
    unsuccessfully. This module gives every component the same structlog
    setup so those records share one format and carry the execution's
    ``run_id`` and ``job_type``.

    - **Standardizes:** Same log format across all components
    - **Structures:** JSON output for log aggregation (ELK, etc.)
    - **Correlates:** run_id / job_type propagation via contextvars
    - **Flexes:** Console output for development, JSON for production

Architecture:
    ::

        configure_logging(level=None, json_format=None, service=None, settings=None)
            unset arguments ← RuntimeSettings (JOBRUNNER_LOG_LEVEL, ...)

            ↓
        structlog processor chain:
          1. TimeStamper (iso)
          2. merge_contextvars      ← bind_context / LogContext
          3. add_log_level, add_logger_name, thread name
          4. StackInfoRenderer, set_exc_info
          5. service.name
          6. JSON: format_exc_info + ECS field names + JSONRenderer
             console: ConsoleRenderer

Examples:
    >>> from jobrunner.core.logging import configure_logging, get_logger
    >>> configure_logging(level="INFO", json_format=True)
    >>> logger = get_logger(__name__)
    >>> logger.info("job_type_resolved", job_type="acme.jobs.Report")

Tags:
    logging, structlog, observability, json-logging, jobrunner

Doc-Types:
    - API Reference
    - Observability Guide
"""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

from jobrunner.core.settings import RuntimeSettings, get_settings


class _ServiceMetadata:
    """Processor stamping ``service.name`` on every record."""

    def __init__(self, service: str):
        self.service = service

    def __call__(self, logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
        event_dict.setdefault("service.name", self.service)
        return event_dict


# structlog key -> ECS field
_ECS_FIELDS = {
    "timestamp": "@timestamp",
    "level": "log.level",
    "logger": "log.logger",
    "thread_name": "process.thread.name",
}


def _ecs_field_names(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    """Rename fields for Elasticsearch (ECS) ingestion."""
    for key, ecs_key in _ECS_FIELDS.items():
        if key in event_dict:
            event_dict[ecs_key] = event_dict.pop(key)
    return event_dict


def configure_logging(
    level: str | None = None,
    json_format: bool | None = None,
    service: str | None = None,
    *,
    settings: RuntimeSettings | None = None,
    add_timestamp: bool = True,
) -> None:
    """Configure structured logging for the process.

    Arguments left as None come from ``settings`` (``get_settings()`` when
    not given), so launchers only pass what their command line overrides.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        json_format: True for JSON, False for console; when neither this nor
            ``settings.log_json`` decides, JSON is used if stdout is not a tty
        service: Service name to include in logs
        settings: Source of the defaults
        add_timestamp: Include ISO timestamp in logs
    """
    settings = settings if settings is not None else get_settings()
    level = (level or settings.log_level).upper()
    service = service or settings.service_name
    if json_format is None:
        json_format = settings.log_json
    if json_format is None:
        json_format = not sys.stdout.isatty()

    log_level = getattr(logging, level)

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        # job bodies log from their worker thread
        structlog.processors.CallsiteParameterAdder([structlog.processors.CallsiteParameter.THREAD_NAME]),
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        _ServiceMetadata(service),
    ]

    if add_timestamp:
        shared_processors.insert(0, structlog.processors.TimeStamper(fmt="iso"))

    if json_format:
        shared_processors.append(structlog.processors.format_exc_info)
        shared_processors.append(_ecs_field_names)
        renderer: Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())

    structlog.configure(
        processors=shared_processors + [renderer],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=log_level)
    logging.getLogger().setLevel(log_level)


def get_logger(name: str | None = None) -> Any:
    """Get a structured logger (usually ``get_logger(__name__)``)."""
    return structlog.get_logger(name)


def bind_context(**kwargs: Any) -> None:
    """Bind context to include in all subsequent logs of this context."""
    structlog.contextvars.bind_contextvars(**kwargs)


def unbind_context(*keys: str) -> None:
    """Remove specific keys from logging context."""
    structlog.contextvars.unbind_contextvars(*keys)


def clear_context() -> None:
    """Clear all bound context."""
    structlog.contextvars.clear_contextvars()


class LogContext:
    """Context manager for scoped logging context.

    Example:
        with LogContext(run_id="abc123", job_type="acme.jobs.Report"):
            logger.info("job_started")
        # run_id / job_type unbound here
    """

    def __init__(self, **kwargs: Any):
        self._context = kwargs

    def __enter__(self) -> LogContext:
        bind_context(**self._context)
        return self

    def __exit__(self, *args) -> None:
        unbind_context(*self._context.keys())


__all__ = [
    "configure_logging",
    "get_logger",
    "bind_context",
    "unbind_context",
    "clear_context",
    "LogContext",
]
