"""OpenTelemetry distributed tracing configuration"""

import logging

from fastapi import FastAPI
from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import \
    OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.logging import LoggingInstrumentor
from opentelemetry.instrumentation.redis import RedisInstrumentor
from opentelemetry.instrumentation.sqlalchemy import SQLAlchemyInstrumentor
from opentelemetry.sdk.resources import SERVICE_NAME, SERVICE_VERSION, Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import (BatchSpanProcessor,
                                            ConsoleSpanExporter, SpanExporter)
from opentelemetry.sdk.trace.sampling import ParentBased, TraceIdRatioBased
from sqlalchemy.ext.asyncio import AsyncEngine

from src.infrastructure.config.settings import Settings

logger = logging.getLogger(__name__)


def setup_tracing(app: FastAPI, engine: AsyncEngine, settings: Settings) -> TracerProvider | None:
    """
    Install a tracer provider and instrument the app, database, cache and logs.

    Spans from @traced service operations nest under the request span, and
    the publish compare-and-swap shows up as a SQLAlchemy child span.

    Returns:
        The provider to shut down on exit, or None if tracing could not start
    """
    try:
        provider = TracerProvider(
            resource=Resource(
                attributes={
                    SERVICE_NAME: settings.app_name,
                    SERVICE_VERSION: settings.app_version,
                    "deployment.environment": settings.telemetry_environment,
                }
            ),
            sampler=ParentBased(TraceIdRatioBased(settings.telemetry_sample_rate)),
        )
        exporter = _build_exporter(settings.telemetry_exporter, settings.telemetry_otlp_endpoint)
        if exporter is not None:
            provider.add_span_processor(BatchSpanProcessor(exporter))
        trace.set_tracer_provider(provider)
    except Exception as e:
        logger.exception("Failed to initialize telemetry: %s", e)
        return None

    FastAPIInstrumentor.instrument_app(app, tracer_provider=provider, excluded_urls="/health")
    SQLAlchemyInstrumentor().instrument(engine=engine.sync_engine, tracer_provider=provider)
    if settings.redis_enabled:
        RedisInstrumentor().instrument(tracer_provider=provider)
    # Adds trace_id and span_id to records without touching the log format
    LoggingInstrumentor().instrument(tracer_provider=provider, set_logging_format=False)

    logger.info(
        "OpenTelemetry initialized: service=%s, exporter=%s",
        settings.app_name,
        settings.telemetry_exporter,
    )
    return provider


def _build_exporter(exporter_type: str, otlp_endpoint: str | None) -> SpanExporter | None:
    if exporter_type == "none":
        return None
    if exporter_type == "otlp" and otlp_endpoint:
        # TLS unless the endpoint is plain http://
        return OTLPSpanExporter(endpoint=otlp_endpoint, insecure=otlp_endpoint.startswith("http://"))
    if exporter_type == "otlp":
        logger.warning("OTLP exporter selected without an endpoint, using console")
    return ConsoleSpanExporter()


def shutdown_tracing(provider: TracerProvider | None) -> None:
    """Flush remaining spans"""
    if provider is None:
        return
    try:
        provider.shutdown()
        logger.info("Telemetry shutdown complete")
    except Exception as e:
        logger.error("Error during telemetry shutdown: %s", e)
