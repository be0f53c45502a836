"""
OpenTelemetry tracing setup.

Spans are always created through the global tracer provider. Until
`setup_tracing` installs an SDK provider they are non-recording no-ops.
"""

import logging
from typing import Any

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.sqlalchemy import SQLAlchemyInstrumentor
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter
from opentelemetry.trace import Tracer

from workqueue import __version__
from workqueue.config import Settings, get_settings

logger = logging.getLogger(__name__)

TRACER_NAME = "workqueue"


def setup_tracing(
    settings: Settings | None = None,
    enable_console_export: bool = False,
) -> Tracer:
    """
    Set up OpenTelemetry tracing.

    Installs an SDK tracer provider with an OTLP exporter when tracing is
    enabled in settings; otherwise leaves the no-op provider in place.

    Args:
        settings: Application settings.
        enable_console_export: If True, also export spans to console.

    Returns:
        Tracer: The tracer instance.
    """
    settings = settings or get_settings()

    if not settings.otel_enabled and not enable_console_export:
        return get_tracer()

    resource = Resource.create(
        {
            "service.name": settings.otel_service_name,
            "service.version": __version__,
        }
    )
    provider = TracerProvider(resource=resource)

    if settings.otel_enabled:
        otlp_exporter = OTLPSpanExporter(
            endpoint=settings.otel_exporter_otlp_endpoint,
            insecure=True,
        )
        provider.add_span_processor(BatchSpanProcessor(otlp_exporter))

    if enable_console_export:
        provider.add_span_processor(BatchSpanProcessor(ConsoleSpanExporter()))

    trace.set_tracer_provider(provider)
    logger.info(
        "Tracing enabled",
        extra={"endpoint": settings.otel_exporter_otlp_endpoint},
    )

    return get_tracer()


def instrument_fastapi(app: Any) -> None:
    """
    Instrument FastAPI application with OpenTelemetry.

    Args:
        app: The FastAPI application instance.
    """
    FastAPIInstrumentor.instrument_app(app)


def instrument_sqlalchemy(engine: Any) -> None:
    """
    Instrument a SQLAlchemy engine with OpenTelemetry.

    Args:
        engine: The SQLAlchemy engine (the sync engine behind an async one).
    """
    SQLAlchemyInstrumentor().instrument(engine=engine)


def get_tracer() -> Tracer:
    """Get the work queue tracer from the current global provider."""
    return trace.get_tracer(TRACER_NAME)
