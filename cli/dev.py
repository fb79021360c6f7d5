"""CLI wrapper: Serve the normalization API with auto-reload."""

from __future__ import annotations

import sys

from cli._runner import run

APP_PATH = "graphql_normalize.main:app"


def build_command(argv: list[str]) -> list[str]:
    """
    Uvicorn command line for local development.

    ObservabilityMiddleware already writes one JSON line per request, so
    uvicorn's own access log is switched off.
    """
    from graphql_normalize.core.config import settings

    return [
        sys.executable,
        "-m",
        "uvicorn",
        APP_PATH,
        "--reload",
        "--reload-dir",
        "graphql_normalize",
        "--log-level",
        settings.app_log_level.lower(),
        "--no-access-log",
        *argv,
    ]


def main() -> None:
    run(build_command(sys.argv[1:]))
