import hmac
import logging
import re
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, HTTPException, Request, Response, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from graphql_normalize import __version__
from graphql_normalize.api.routes.health import router as health_router
from graphql_normalize.api.routes.normalize import router as normalize_router
from graphql_normalize.core.config import AppEnvironment, settings
from graphql_normalize.core.errors import NormalizeError, get_status_code
from graphql_normalize.core.middleware import RequestSizeLimitMiddleware, SecurityHeadersMiddleware
from graphql_normalize.core.observability import (
    ObservabilityMiddleware,
    configure_structured_logging,
    extract_request_context,
    metrics_endpoint,
)
from graphql_normalize.core.telemetry import (
    init_telemetry,
    instrument_fastapi,
    shutdown_telemetry,
)

# Configure structured logging before creating logger
if settings.observability_structured_logs:
    configure_structured_logging(settings.app_log_level)

logger = logging.getLogger(__name__)

API_PREFIX = "/api/v1"

# Detail values matching these are hidden from clients in production
SENSITIVE_PATTERNS = [
    r"[/\\][\w/-]+\.py",  # File paths
    r"Traceback \(most recent call last\)",
]


def _sanitize_error_details(details: dict[str, Any]) -> dict[str, Any]:
    """
    Sanitize error details to prevent information leakage in production.

    Args:
        details: Original error details dictionary

    Returns:
        Sanitized details dictionary
    """
    if settings.app_env != AppEnvironment.PROD:
        return details

    sanitized: dict[str, Any] = {}
    for key, value in details.items():
        if isinstance(value, str):
            if any(re.search(pattern, value, re.IGNORECASE) for pattern in SENSITIVE_PATTERNS):
                sanitized[key] = "[REDACTED]"
            else:
                sanitized[key] = value
        elif isinstance(value, dict):
            sanitized[key] = _sanitize_error_details(value)
        elif isinstance(value, list):
            sanitized[key] = [
                _sanitize_error_details(item) if isinstance(item, dict) else item for item in value
            ]
        else:
            sanitized[key] = value
    return sanitized


def _error_response(status_code: int, error: str, message: Any, details: dict) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"error": error, "message": message, "details": details},
    )


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Sets up:
    - OpenTelemetry distributed tracing
    - Structured logging with correlation IDs
    - Observability, security header, CORS and request size middleware
    - Exception handlers for domain errors
    - API routers
    - Token-protected metrics endpoint for Prometheus scraping
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        init_telemetry()
        instrument_fastapi(app)
        yield
        shutdown_telemetry()

    app = FastAPI(
        title="GraphQL Normalize API",
        description="Canonical, order-independent text for GraphQL documents",
        version=__version__,
        lifespan=lifespan,
    )

    # ============================================================================
    # Middleware (last added runs first)
    # ============================================================================

    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=False,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestSizeLimitMiddleware, max_size_mb=settings.max_request_size_mb)

    if settings.observability_enabled:
        app.add_middleware(ObservabilityMiddleware)

    # ============================================================================
    # Exception Handlers
    # ============================================================================

    @app.exception_handler(NormalizeError)
    async def normalize_error_handler(request: Request, exc: NormalizeError) -> JSONResponse:
        """Map domain errors to their HTTP status with a structured body."""
        status_code = get_status_code(exc)
        context = {
            "details": exc.details,
            "path": request.url.path,
            **extract_request_context(request),
        }

        if status_code >= 500:
            logger.error(f"{exc.__class__.__name__}: {exc.message}", extra=context)
        else:
            logger.warning(f"{exc.__class__.__name__}: {exc.message}", extra=context)

        return _error_response(
            status_code,
            exc.__class__.__name__,
            exc.message,
            _sanitize_error_details(exc.details),
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        """Report malformed request payloads in the common error shape."""
        errors = [
            {"loc": list(error.get("loc", ())), "msg": error.get("msg", "")}
            for error in exc.errors()
        ]
        return _error_response(
            422,
            "RequestValidationError",
            "Request payload is invalid",
            {"errors": errors},
        )

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
        """Provide the common error shape for FastAPI HTTP exceptions."""
        if exc.status_code >= 500:
            logger.error(
                f"HTTP {exc.status_code}: {exc.detail}",
                extra={"path": request.url.path, **extract_request_context(request)},
            )
        response = _error_response(exc.status_code, "HTTPException", exc.detail, {})
        if exc.headers:
            response.headers.update(exc.headers)
        return response

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Catch-all handler: log the failure, return a generic 500."""
        logger.error(
            f"Unhandled exception: {exc}",
            exc_info=True,
            extra={"path": request.url.path, **extract_request_context(request)},
        )
        return _error_response(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "InternalServerError",
            "An unexpected error occurred",
            {},
        )

    # ============================================================================
    # Router Registration
    # ============================================================================

    app.include_router(health_router, prefix=API_PREFIX)
    app.include_router(normalize_router, prefix=API_PREFIX)

    # ============================================================================
    # Metrics Endpoint (Prometheus) - Token Protected
    # ============================================================================

    async def protected_metrics(request: Request) -> Response:
        """Prometheus metrics, readable only with the X-Metrics-Token header."""
        expected_token = settings.metrics_token
        if not expected_token:
            logger.error("Metrics endpoint accessed but METRICS_TOKEN not configured")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Metrics token not configured. Set METRICS_TOKEN environment variable.",
            )

        metrics_token = request.headers.get("X-Metrics-Token")
        if not hmac.compare_digest(metrics_token or "", expected_token):
            logger.warning(
                "Unauthorized metrics access attempt",
                extra={"security_event": True, "event_type": "METRICS_ACCESS_DENIED"},
            )
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Invalid metrics token",
            )

        return metrics_endpoint()

    if settings.observability_enabled:
        app.add_route("/metrics", protected_metrics)

    return app


app = create_app()
