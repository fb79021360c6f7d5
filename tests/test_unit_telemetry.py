"""
Tests for OpenTelemetry distributed tracing configuration.

Tests cover:
- Header parsing for OTLP exporters
- Resource creation with service metadata
- Sampler selection
- Disabled telemetry is a no-op
- Trace ID and span ID extraction
"""

from unittest.mock import Mock, patch

import pytest
from opentelemetry.sdk.resources import DEPLOYMENT_ENVIRONMENT, SERVICE_NAME
from opentelemetry.sdk.trace.sampling import ALWAYS_OFF, ALWAYS_ON, ParentBased, TraceIdRatioBased

from graphql_normalize import __version__
from graphql_normalize.core.telemetry import (
    _create_resource,
    _create_sampler,
    _parse_headers,
    get_span_id,
    get_trace_id,
    init_telemetry,
    instrument_fastapi,
    shutdown_telemetry,
)


class TestParseHeaders:
    """Tests for the _parse_headers function."""

    @pytest.mark.anyio
    async def test_parse_headers_valid_multiple_pairs(self):
        result = _parse_headers("key1=value1,key2=value2")
        assert result == {"key1": "value1", "key2": "value2"}

    @pytest.mark.anyio
    async def test_parse_headers_with_spaces(self):
        result = _parse_headers(" key1 = value1 , key2 = value2 ")
        assert result == {"key1": "value1", "key2": "value2"}

    @pytest.mark.anyio
    @pytest.mark.parametrize("value", ["", None])
    async def test_parse_headers_empty(self, value):
        assert _parse_headers(value) == {}

    @pytest.mark.anyio
    async def test_parse_headers_value_containing_equals(self):
        result = _parse_headers("token=abc=123,header=value")
        assert result == {"token": "abc=123", "header": "value"}

    @pytest.mark.anyio
    async def test_parse_headers_malformed_skips_invalid(self):
        result = _parse_headers("key1=value1,invalidpair,key2=value2")
        assert result == {"key1": "value1", "key2": "value2"}


class TestCreateResource:
    """Tests for the _create_resource function."""

    @pytest.mark.anyio
    async def test_create_resource_attributes(self):
        resource = _create_resource(
            service_name="test-service", app_env="test", app_region="EU-WEST-1"
        )

        assert resource.attributes[SERVICE_NAME] == "test-service"
        assert resource.attributes[DEPLOYMENT_ENVIRONMENT] == "test"
        assert resource.attributes["app.region"] == "EU-WEST-1"
        assert resource.attributes["service.version"] == __version__


class TestCreateSampler:
    """Tests for the _create_sampler function."""

    @pytest.mark.anyio
    async def test_always_on(self):
        assert _create_sampler("always_on", 1.0) is ALWAYS_ON

    @pytest.mark.anyio
    async def test_always_off(self):
        assert _create_sampler("always_off", 1.0) is ALWAYS_OFF

    @pytest.mark.anyio
    async def test_trace_id_ratio(self):
        sampler = _create_sampler("traceidratio", 0.25)
        assert isinstance(sampler, TraceIdRatioBased)
        assert sampler.rate == 0.25

    @pytest.mark.anyio
    async def test_default_is_parent_based(self):
        assert isinstance(_create_sampler("parent_trace_always", 1.0), ParentBased)


class TestDisabledTelemetry:
    """Tests for behaviour with OTEL_ENABLED=false."""

    @pytest.mark.anyio
    async def test_init_returns_none_when_disabled(self):
        with patch("graphql_normalize.core.config.settings") as mock_settings:
            mock_settings.otel_enabled = False
            assert init_telemetry() is None

    @pytest.mark.anyio
    async def test_instrument_fastapi_skipped_when_disabled(self):
        app = Mock()
        with (
            patch("graphql_normalize.core.config.settings") as mock_settings,
            patch("graphql_normalize.core.telemetry.FastAPIInstrumentor") as instrumentor,
        ):
            mock_settings.otel_enabled = False
            instrument_fastapi(app)

        instrumentor.instrument_app.assert_not_called()

    @pytest.mark.anyio
    async def test_shutdown_without_provider_is_noop(self):
        with patch("graphql_normalize.core.telemetry._tracer_provider", None):
            shutdown_telemetry()

    @pytest.mark.anyio
    async def test_shutdown_flushes_provider(self):
        provider = Mock()
        with patch("graphql_normalize.core.telemetry._tracer_provider", provider):
            shutdown_telemetry()

        provider.shutdown.assert_called_once()


class TestTraceContext:
    """Tests for get_trace_id and get_span_id."""

    @pytest.mark.anyio
    async def test_no_recording_span_returns_none(self):
        assert get_trace_id() is None
        assert get_span_id() is None

    @pytest.mark.anyio
    async def test_recording_span_ids_are_hex(self):
        span = Mock()
        span.is_recording.return_value = True
        span.get_span_context.return_value = Mock(trace_id=0xABC, span_id=0x12)

        with patch("graphql_normalize.core.telemetry.trace.get_current_span", return_value=span):
            assert get_trace_id() == format(0xABC, "032x")
            assert get_span_id() == format(0x12, "016x")
