"""HTTP hardening middleware for the FastAPI application."""

import logging
from collections.abc import Callable

from fastapi import Request, Response, status
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

logger = logging.getLogger(__name__)

TOO_LARGE_BODY = (
    '{"error":"RequestTooLarge","message":"Request body exceeds maximum allowed size"}'
)

# Paths that serve the interactive docs and need a relaxed CSP
DOCS_PATHS = {"/docs", "/redoc", "/openapi.json"}


class RequestSizeLimitMiddleware(BaseHTTPMiddleware):
    """
    Reject request bodies larger than a fixed limit with 413.

    Both the Content-Length header and the actual body are checked, so a
    missing or falsified header cannot bypass the limit.
    """

    def __init__(self, app: ASGIApp, max_size_mb: int = 1):
        super().__init__(app)
        self.max_size_bytes = max_size_mb * 1024 * 1024

    def _too_large(self, request: Request, size: int, source: str) -> Response:
        logger.warning(
            f"Request size {size} bytes ({source}) exceeds limit {self.max_size_bytes} bytes",
            extra={"path": request.url.path},
        )
        return Response(
            content=TOO_LARGE_BODY,
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            media_type="application/json",
        )

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        content_length = request.headers.get("content-length")
        if content_length and content_length.isdigit():
            size = int(content_length)
            if size > self.max_size_bytes:
                return self._too_large(request, size, "from header")

        if request.method in ("POST", "PUT", "PATCH"):
            body = await request.body()
            if len(body) > self.max_size_bytes:
                return self._too_large(request, len(body), "actual")

            # The body stream is consumed; replay it for downstream handlers
            async def receive():
                return {"type": "http.request", "body": body}

            request._receive = receive

        return await call_next(request)


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """
    Add standard security headers to every response.

    Headers added:
    - Strict-Transport-Security
    - X-Frame-Options (except on docs)
    - Content-Security-Policy
    - X-Content-Type-Options
    - Referrer-Policy
    """

    def __init__(self, app: ASGIApp, hsts_max_age: int = 31536000) -> None:
        super().__init__(app)
        self.hsts_max_age = hsts_max_age

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        response = await call_next(request)
        is_docs_path = request.url.path in DOCS_PATHS

        response.headers["Strict-Transport-Security"] = (
            f"max-age={self.hsts_max_age}; includeSubDomains"
        )
        if is_docs_path:
            response.headers["Content-Security-Policy"] = (
                "default-src 'self'; "
                "script-src 'self' 'unsafe-inline' https://cdn.jsdelivr.net; "
                "style-src 'self' 'unsafe-inline' https://cdn.jsdelivr.net; "
                "img-src 'self' data: https:"
            )
        else:
            response.headers["X-Frame-Options"] = "DENY"
            response.headers["Content-Security-Policy"] = (
                "default-src 'none'; frame-ancestors 'none'"
            )
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        return response
