"""
OpenTelemetry distributed tracing configuration.

Instruments FastAPI request handling and provides a tracer for the
normalization service, which opens one span per normalized document.

Configuration via environment variables:
- OTEL_ENABLED: Enable/disable tracing (default: false)
- OTEL_SERVICE_NAME: Service name for traces (default: graphql-normalize)
- OTEL_EXPORTER_OTLP_ENDPOINT: OTLP collector endpoint (default: http://localhost:4317)
- OTEL_EXPORTER_OTLP_HEADERS: Optional headers for OTLP exporter
- OTEL_TRACES_SAMPLER: Sampling strategy (default: parent_trace_always)
- OTEL_TRACES_SAMPLER_ARG: Sampling rate (default: 1.0)
"""

import logging
from typing import Any

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.sdk.resources import DEPLOYMENT_ENVIRONMENT, SERVICE_NAME, Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from opentelemetry.sdk.trace.sampling import (
    ALWAYS_OFF,
    ALWAYS_ON,
    ParentBased,
    Sampler,
    TraceIdRatioBased,
)

from graphql_normalize import __version__

logger = logging.getLogger(__name__)

TRACER_NAME = "graphql_normalize"

# Global tracer provider reference for shutdown
_tracer_provider: TracerProvider | None = None


def _parse_headers(headers_string: str | None) -> dict[str, str]:
    """
    Parse OTLP headers from environment variable format.

    Args:
        headers_string: Headers in format "key1=value1,key2=value2"

    Returns:
        Dictionary of headers
    """
    if not headers_string:
        return {}

    headers = {}
    for pair in headers_string.split(","):
        pair = pair.strip()
        if "=" in pair:
            key, value = pair.split("=", 1)
            headers[key.strip()] = value.strip()
    return headers


def _create_resource(service_name: str, app_env: str, app_region: str) -> Resource:
    """Create an OpenTelemetry resource describing this service."""
    return Resource.create(
        {
            SERVICE_NAME: service_name,
            DEPLOYMENT_ENVIRONMENT: app_env,
            "app.region": app_region,
            "service.version": __version__,
        }
    )


def _create_sampler(sampler_name: str, sampler_arg: float) -> Sampler:
    """Map a sampler name to an OpenTelemetry sampler."""
    if sampler_name == "always_on":
        return ALWAYS_ON
    if sampler_name == "always_off":
        return ALWAYS_OFF
    if sampler_name == "traceidratio":
        return TraceIdRatioBased(sampler_arg)
    # parent_trace_always (default)
    return ParentBased(root=TraceIdRatioBased(sampler_arg))


def init_telemetry() -> TracerProvider | None:
    """
    Initialize OpenTelemetry distributed tracing from settings.

    Returns:
        TracerProvider instance if enabled, None otherwise
    """
    global _tracer_provider

    from graphql_normalize.core.config import settings

    if not settings.otel_enabled:
        logger.info("OpenTelemetry tracing is disabled (OTEL_ENABLED=false)")
        return None

    try:
        tracer_provider = TracerProvider(
            resource=_create_resource(
                service_name=settings.otel_service_name,
                app_env=settings.app_env.value,
                app_region=settings.app_region,
            ),
            sampler=_create_sampler(
                settings.otel_traces_sampler, settings.otel_traces_sampler_arg
            ),
        )
        tracer_provider.add_span_processor(
            BatchSpanProcessor(
                OTLPSpanExporter(
                    endpoint=settings.otel_exporter_otlp_endpoint,
                    headers=_parse_headers(settings.otel_exporter_otlp_headers),
                )
            )
        )
        trace.set_tracer_provider(tracer_provider)
        _tracer_provider = tracer_provider

        logger.info(
            f"OpenTelemetry initialized: service={settings.otel_service_name}, "
            f"endpoint={settings.otel_exporter_otlp_endpoint}, "
            f"sampler={settings.otel_traces_sampler}"
        )
        return tracer_provider

    except Exception as e:
        logger.error(f"Failed to initialize OpenTelemetry: {e}", exc_info=True)
        return None


def instrument_fastapi(app: Any) -> None:
    """Instrument a FastAPI application with OpenTelemetry."""
    from graphql_normalize.core.config import settings

    if not settings.otel_enabled:
        logger.debug("OpenTelemetry disabled - skipping FastAPI instrumentation")
        return

    try:
        FastAPIInstrumentor.instrument_app(app)
        logger.info("FastAPI instrumentation enabled")
    except Exception as e:
        logger.error(f"Failed to instrument FastAPI: {e}", exc_info=True)


def shutdown_telemetry() -> None:
    """Flush pending spans and shut the tracer provider down."""
    global _tracer_provider

    if _tracer_provider is None:
        logger.debug("OpenTelemetry tracer provider not initialized")
        return

    try:
        _tracer_provider.shutdown()
        _tracer_provider = None
        logger.info("OpenTelemetry shutdown complete")
    except Exception as e:
        logger.error(f"Error during OpenTelemetry shutdown: {e}", exc_info=True)


def get_tracer() -> trace.Tracer:
    """Tracer for spans opened by this package."""
    return trace.get_tracer(TRACER_NAME)


def get_trace_id() -> str | None:
    """
    Get the current trace ID from OpenTelemetry context.

    Returns:
        Trace ID as hex string, or None if no span is recording
    """
    current_span = trace.get_current_span()
    if not current_span.is_recording():
        return None
    return format(current_span.get_span_context().trace_id, "032x")


def get_span_id() -> str | None:
    """
    Get the current span ID from OpenTelemetry context.

    Returns:
        Span ID as hex string, or None if no span is recording
    """
    current_span = trace.get_current_span()
    if not current_span.is_recording():
        return None
    return format(current_span.get_span_context().span_id, "016x")
