"""
Structured logging setup using structlog.

Modules log through the standard library (`logging.getLogger(__name__)` with
`extra={...}`); structlog renders every record as JSON or console output and
merges in the process name, bound job context and the active trace ids.
"""

import logging
import sys
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from typing import Any

import structlog
from opentelemetry import trace

from workqueue.config import Settings, get_settings

# Third-party loggers held at WARNING
QUIET_LOGGERS = ("uvicorn.access", "sqlalchemy.engine", "aiosqlite", "asyncio")


def add_trace_context(logger: Any, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    """Attach trace_id and span_id when a span is recording."""
    span = trace.get_current_span()
    if span.is_recording():
        ctx = span.get_span_context()
        event_dict["trace_id"] = format(ctx.trace_id, "032x")
        event_dict["span_id"] = format(ctx.span_id, "016x")
    return event_dict


def _process_stamper(process: str) -> Callable[..., dict[str, Any]]:
    def stamp(logger: Any, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
        event_dict.setdefault("process", process)
        return event_dict

    return stamp


def setup_logging(settings: Settings | None = None, process: str = "api") -> None:
    """
    Configure structured logging for one queue process.

    Args:
        settings: Application settings. Defaults to the cached ones.
        process: Which process is logging ("api", "worker", "sweeper").
    """
    settings = settings or get_settings()
    log_level = logging.getLevelName(settings.log_level.upper())
    if not isinstance(log_level, int):
        log_level = logging.INFO

    shared_processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        _process_stamper(process),
        add_trace_context,
        structlog.stdlib.add_logger_name,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.stdlib.ExtraAdder(),
    ]

    if settings.log_format == "json":
        renderer: Any = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=shared_processors,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                renderer,
            ],
        )
    )

    root_logger = logging.getLogger()
    root_logger.handlers = [handler]
    root_logger.setLevel(log_level)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


@contextmanager
def job_log_context(job_id: str, **kwargs: Any) -> Iterator[None]:
    """
    Bind job_id (and any extra fields) to every log line in the block.

    Args:
        job_id: The job being processed.
        **kwargs: Additional fields, e.g. worker_id.
    """
    with structlog.contextvars.bound_contextvars(job_id=job_id, **kwargs):
        yield
