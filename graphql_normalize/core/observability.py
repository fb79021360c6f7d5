"""
Observability for the GraphQL normalization service.

Provides:
- Request context (request id, region) carried in context variables
- JSON log formatting that stamps every record with that context
- Prometheus metrics for HTTP traffic and for normalized documents
- Middleware tying the three together per request

Usage:
    from graphql_normalize.core.observability import get_region, metrics

    metrics.normalizer_documents_total.labels(
        operation="normalize", status="success", region=get_region() or "unknown"
    ).inc()
"""

import json
import logging
import time
import uuid
from collections.abc import Callable
from contextvars import ContextVar
from datetime import UTC, datetime
from typing import Any

from fastapi import Request, Response
from prometheus_client import CollectorRegistry, Counter, Histogram, generate_latest
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from graphql_normalize.core.telemetry import get_span_id, get_trace_id

request_logger = logging.getLogger("graphql_normalize.request")

# ============================================================================
# Request Context
# ============================================================================

_request_id_ctx: ContextVar[str] = ContextVar("request_id", default="")
_region_ctx: ContextVar[str] = ContextVar("region", default="")


def generate_request_id() -> str:
    """Generate a unique request ID for correlation."""
    return str(uuid.uuid4())


def get_request_id() -> str:
    return _request_id_ctx.get()


def set_request_id(request_id: str) -> None:
    _request_id_ctx.set(request_id)


def get_region() -> str:
    return _region_ctx.get()


def set_region(region: str) -> None:
    _region_ctx.set(region)


def current_context() -> dict[str, str]:
    """
    Non-empty context values of the current request.

    Returns:
        Mapping with any of request_id, region, trace_id and span_id
    """
    context = {
        "request_id": get_request_id(),
        "region": get_region(),
        "trace_id": get_trace_id(),
        "span_id": get_span_id(),
    }
    return {key: value for key, value in context.items() if value}


def extract_request_context(request: Request) -> dict[str, Any]:
    """Request id and region for `extra=` on error logs raised by handlers."""
    return {"request_id": get_request_id(), "region": get_region()}


# ============================================================================
# Structured Logging
# ============================================================================

# Attributes every LogRecord carries; anything else came from `extra=`
_RESERVED_RECORD_ATTRS = frozenset(
    logging.LogRecord("", logging.INFO, "", 0, "", (), None).__dict__
) | {"message", "asctime", "taskName"}


class StructuredFormatter(logging.Formatter):
    """
    One JSON object per log line.

    Fields: timestamp (UTC ISO 8601), level, logger, message, source
    (`module:line`), the current request context, an `exception` summary
    when exc_info is set, and anything passed through `extra=` under `extra`.
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "source": f"{record.module}:{record.lineno}",
            **current_context(),
        }

        if record.exc_info and record.exc_info[0] is not None:
            exc_type, exc_value, _ = record.exc_info
            entry["exception"] = {"type": exc_type.__name__, "message": str(exc_value)}

        extra = {k: v for k, v in record.__dict__.items() if k not in _RESERVED_RECORD_ATTRS}
        if extra:
            entry["extra"] = extra

        return json.dumps(entry, default=str)


def configure_structured_logging(level: str = "INFO") -> None:
    """
    Route all logging through a single JSON handler on the root logger.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """
    handler = logging.StreamHandler()
    handler.setFormatter(StructuredFormatter())

    root_logger = logging.getLogger()
    root_logger.handlers[:] = [handler]
    root_logger.setLevel(getattr(logging, level.upper(), logging.INFO))


# ============================================================================
# Prometheus Metrics
# ============================================================================

# Private registry so tests and embedding apps never collide on names
_registry = CollectorRegistry()


class Metrics:
    """
    Metric families exported on /metrics.

    - http_*: one sample per request, labelled by route and status
    - normalizer_*: one sample per document, labelled by operation
      ("normalize" or "compare") and outcome
    """

    def __init__(self, registry: CollectorRegistry) -> None:
        self.registry = registry

        self.http_requests_total = Counter(
            "http_requests_total",
            "Total HTTP requests",
            ["method", "route", "status_code", "region"],
            registry=registry,
        )
        self.http_request_duration_seconds = Histogram(
            "http_request_duration_seconds",
            "HTTP request latency in seconds",
            ["method", "route", "region"],
            buckets=(0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5),
            registry=registry,
        )

        self.normalizer_documents_total = Counter(
            "normalizer_documents_total",
            "Documents passed through the normalizer",
            ["operation", "status", "region"],
            registry=registry,
        )
        self.normalizer_duration_seconds = Histogram(
            "normalizer_duration_seconds",
            "Time to parse, canonicalize and print one document",
            ["operation", "region"],
            buckets=(0.0005, 0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 1.0),
            registry=registry,
        )
        self.normalizer_definitions_count = Histogram(
            "normalizer_definitions_count",
            "Top-level definitions per normalized document",
            ["region"],
            buckets=(1, 2, 5, 10, 25, 50, 100),
            registry=registry,
        )
        self.normalizer_output_bytes = Histogram(
            "normalizer_output_bytes",
            "Size of canonical query text in bytes",
            ["region"],
            buckets=(256, 1024, 4096, 16384, 65536, 262144, 1048576),
            registry=registry,
        )


metrics = Metrics(_registry)


def metrics_endpoint() -> Response:
    """Render all registered metrics in Prometheus text format."""
    return Response(
        content=generate_latest(_registry),
        media_type="text/plain; version=0.0.4; charset=utf-8",
    )


# ============================================================================
# Middleware
# ============================================================================

# Health checks and scrapes are logged at DEBUG so it does not drown request logs
QUIET_PATHS = frozenset({"/api/v1/health", "/metrics"})


class ObservabilityMiddleware(BaseHTTPMiddleware):
    """
    Per-request context, metrics and access log.

    Takes the request id from the configured header (or generates one),
    echoes it on the response, and records one `http_requests_total` sample
    and one latency observation per request. Unhandled exceptions count as
    status 500 and are re-raised.
    """

    def __init__(
        self,
        app: ASGIApp,
        metrics_instance: Metrics | None = None,
        quiet_paths: frozenset[str] = QUIET_PATHS,
    ) -> None:
        super().__init__(app)
        self.metrics = metrics_instance or metrics
        self.quiet_paths = quiet_paths

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        from graphql_normalize.core.config import settings

        header = settings.observability_request_id_header
        request_id = request.headers.get(header) or generate_request_id()
        set_request_id(request_id)
        set_region(settings.app_region)

        route = request.url.path
        region = settings.app_region
        status_code = 500
        start = time.perf_counter()

        try:
            response = await call_next(request)
            status_code = response.status_code
            response.headers[header] = request_id
            return response
        except Exception:
            request_logger.exception(f"{request.method} {route} failed")
            raise
        finally:
            elapsed = time.perf_counter() - start
            self.metrics.http_requests_total.labels(
                method=request.method, route=route, status_code=status_code, region=region
            ).inc()
            self.metrics.http_request_duration_seconds.labels(
                method=request.method, route=route, region=region
            ).observe(elapsed)

            level = logging.DEBUG if route in self.quiet_paths else logging.INFO
            request_logger.log(
                level,
                f"{request.method} {route} {status_code}",
                extra={"status_code": status_code, "latency_ms": round(elapsed * 1000, 2)},
            )
