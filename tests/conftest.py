"""
Pytest configuration and shared fixtures.

Provides:
- Import path setup for the repository root
- AnyIO backend selection
- FastAPI TestClient for the application
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]

# Add repository root to path for imports
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

# Set test environment before importing the app
os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("OTEL_ENABLED", "false")
os.environ.setdefault("METRICS_TOKEN", "test-metrics-token-0123456789")

import pytest  # noqa: E402 (import after path setup)
from fastapi.testclient import TestClient  # noqa: E402 (import after path setup)

from graphql_normalize.main import create_app  # noqa: E402 (import after env setup)


# =============================================================================
# AnyIO Backend Configuration
# =============================================================================
@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def client() -> TestClient:
    """TestClient for a freshly created application."""
    return TestClient(create_app())
