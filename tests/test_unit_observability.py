"""
Unit tests for observability features.

Tests cover:
- Structured logging with JSON format
- Request correlation ID (request_id) generation and propagation
- Region context
- Prometheus metrics collection
- Request tracking middleware
- Metrics endpoint
"""

import json
import logging
import re
import sys

import pytest
from fastapi import FastAPI, Request
from fastapi.testclient import TestClient
from prometheus_client import generate_latest

from graphql_normalize.core.observability import (
    ObservabilityMiddleware,
    StructuredFormatter,
    configure_structured_logging,
    extract_request_context,
    generate_request_id,
    get_region,
    get_request_id,
    metrics,
    metrics_endpoint,
    set_region,
    set_request_id,
)


def _record(msg: str = "Test message", exc_info=None) -> logging.LogRecord:
    return logging.LogRecord(
        name="test.logger",
        level=logging.INFO,
        pathname="/test/path.py",
        lineno=42,
        msg=msg,
        args=(),
        exc_info=exc_info,
    )


class TestRequestContext:
    """Tests for request ID generation and context management."""

    @pytest.mark.anyio
    async def test_generate_request_id_returns_uuid_format(self):
        uuid_pattern = re.compile(
            r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$"
        )
        assert uuid_pattern.match(generate_request_id())

    @pytest.mark.anyio
    async def test_request_ids_are_unique(self):
        assert generate_request_id() != generate_request_id()

    @pytest.mark.anyio
    async def test_request_id_and_region_context(self):
        set_request_id("request-1")
        set_region("EU-WEST-1")
        try:
            assert get_request_id() == "request-1"
            assert get_region() == "EU-WEST-1"
        finally:
            set_request_id("")
            set_region("")


class TestStructuredLogging:
    """Tests for structured JSON logging."""

    @pytest.mark.anyio
    async def test_structured_formatter_outputs_json(self):
        parsed = json.loads(StructuredFormatter().format(_record()))

        assert parsed["level"] == "INFO"
        assert parsed["logger"] == "test.logger"
        assert parsed["message"] == "Test message"
        assert parsed["source"].endswith(":42")
        assert parsed["timestamp"].endswith("+00:00")
        assert "extra" not in parsed

    @pytest.mark.anyio
    async def test_structured_formatter_includes_context_vars(self):
        set_request_id("req-123")
        set_region("US-EAST-1")
        try:
            parsed = json.loads(StructuredFormatter().format(_record()))
        finally:
            set_request_id("")
            set_region("")

        assert parsed["request_id"] == "req-123"
        assert parsed["region"] == "US-EAST-1"

    @pytest.mark.anyio
    async def test_structured_formatter_includes_extra_fields(self):
        record = _record()
        record.checksum = "sha256:abc"
        record.definition_count = 2

        parsed = json.loads(StructuredFormatter().format(record))

        assert parsed["extra"] == {"checksum": "sha256:abc", "definition_count": 2}

    @pytest.mark.anyio
    async def test_structured_formatter_includes_exception(self):
        try:
            raise ValueError("boom")
        except ValueError:
            record = _record(exc_info=sys.exc_info())

        parsed = json.loads(StructuredFormatter().format(record))

        assert parsed["exception"] == {"type": "ValueError", "message": "boom"}

    @pytest.mark.anyio
    async def test_configure_structured_logging(self):
        root_logger = logging.getLogger()
        original_handlers = list(root_logger.handlers)
        original_level = root_logger.level
        try:
            configure_structured_logging("DEBUG")

            assert root_logger.level == logging.DEBUG
            assert len(root_logger.handlers) == 1
            assert isinstance(root_logger.handlers[0].formatter, StructuredFormatter)
        finally:
            root_logger.handlers[:] = original_handlers
            root_logger.setLevel(original_level)


class TestObservabilityMiddleware:
    """Tests for ObservabilityMiddleware."""

    @pytest.mark.anyio
    async def test_middleware_generates_request_id(self):
        app = FastAPI()
        app.add_middleware(ObservabilityMiddleware)

        @app.get("/test")
        async def test_route():
            return {"request_id": get_request_id()}

        response = TestClient(app).get("/test")

        assert response.status_code == 200
        assert response.json()["request_id"]
        assert response.headers["X-Request-ID"] == response.json()["request_id"]

    @pytest.mark.anyio
    async def test_middleware_propagates_request_id_from_header(self):
        app = FastAPI()
        app.add_middleware(ObservabilityMiddleware)

        @app.get("/test")
        async def test_route():
            return {"request_id": get_request_id()}

        response = TestClient(app).get("/test", headers={"X-Request-ID": "custom-id-123"})

        assert response.json()["request_id"] == "custom-id-123"
        assert response.headers["X-Request-ID"] == "custom-id-123"

    @pytest.mark.anyio
    async def test_middleware_sets_region_from_settings(self):
        from graphql_normalize.core.config import settings

        app = FastAPI()
        app.add_middleware(ObservabilityMiddleware)

        @app.get("/test")
        async def test_route(request: Request):
            return extract_request_context(request)

        response = TestClient(app).get("/test", headers={"X-Request-ID": "ctx-1"})

        assert response.json() == {"request_id": "ctx-1", "region": settings.app_region}

    @pytest.mark.anyio
    async def test_middleware_records_http_metrics(self):
        app = FastAPI()
        app.add_middleware(ObservabilityMiddleware)

        @app.post("/observed")
        async def observed():
            return {"ok": True}

        TestClient(app).post("/observed")

        metrics_output = generate_latest(metrics.registry).decode("utf-8")
        assert "http_requests_total{" in metrics_output
        assert 'route="/observed"' in metrics_output
        assert 'status_code="200"' in metrics_output

    @pytest.mark.anyio
    async def test_quiet_paths_logged_at_debug(self, caplog):
        app = FastAPI()
        app.add_middleware(ObservabilityMiddleware, quiet_paths=frozenset({"/health"}))

        @app.get("/health")
        def health():
            return {"ok": True}

        @app.get("/api")
        def api_route():
            return {"ok": True}

        client = TestClient(app)
        with caplog.at_level(logging.DEBUG, logger="graphql_normalize.request"):
            client.get("/health")
            client.get("/api")

        levels = {
            r.getMessage(): r.levelno for r in caplog.records if r.name == "graphql_normalize.request"
        }
        assert levels == {"GET /health 200": logging.DEBUG, "GET /api 200": logging.INFO}

    @pytest.mark.anyio
    async def test_unhandled_exception_counted_as_500(self):
        app = FastAPI()
        app.add_middleware(ObservabilityMiddleware)

        @app.get("/explode")
        def explode():
            raise RuntimeError("boom")

        client = TestClient(app, raise_server_exceptions=False)
        response = client.get("/explode")

        assert response.status_code == 500
        metrics_output = generate_latest(metrics.registry).decode("utf-8")
        sample = next(
            line
            for line in metrics_output.splitlines()
            if line.startswith("http_requests_total{") and 'route="/explode"' in line
        )
        assert 'status_code="500"' in sample


class TestMetricsEndpoint:
    """Tests for metrics_endpoint()."""

    @pytest.mark.anyio
    async def test_metrics_endpoint_returns_prometheus_format(self):
        response = metrics_endpoint()

        assert response.media_type.startswith("text/plain")
        body = response.body.decode("utf-8")
        assert "# HELP normalizer_documents_total" in body
        assert "# HELP normalizer_duration_seconds" in body
