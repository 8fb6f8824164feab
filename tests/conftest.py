"""Pytest configuration and fixtures."""

from __future__ import annotations

import asyncio
import inspect
import os
import sys
from typing import Any

import pytest

# Ensure src/ is on sys.path for tests so the src layout is used during test runs
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
SRC = os.path.join(ROOT, "src")
if SRC not in sys.path:
    sys.path.insert(0, SRC)

_ENV_VARS = (
    "ELECTRICITY_MAPS_API_KEY",
    "CARBON_EDGE_ELECTRICITY_MAPS_URL",
    "CARBON_EDGE_PROVIDERS",
    "CARBON_EDGE_CACHE_TTL",
    "CARBON_EDGE_HTTP_TIMEOUT",
    "CARBON_EDGE_REQUEST_DEADLINE",
    "CARBON_EDGE_MAX_EDGE_WORKERS",
    "CARBON_EDGE_DEFAULT_LATITUDE",
    "CARBON_EDGE_DEFAULT_LONGITUDE",
    "CARBON_EDGE_DEFAULTS_FILE",
)


def pytest_configure(config: pytest.Config) -> None:
    config.addinivalue_line("markers", "asyncio: mark test as requiring an event loop")
    # Run the suite without carbon-edge overrides from the calling shell.
    for name in _ENV_VARS:
        os.environ.pop(name, None)


def pytest_pyfunc_call(pyfuncitem: Any) -> bool | None:
    """Execute async test functions without requiring pytest-asyncio."""

    if inspect.iscoroutinefunction(pyfuncitem.obj):
        call_kwargs = {
            name: pyfuncitem.funcargs[name]
            for name in pyfuncitem._fixtureinfo.argnames  # type: ignore[attr-defined]
        }

        event_loop = asyncio.new_event_loop()
        try:
            event_loop.run_until_complete(pyfuncitem.obj(**call_kwargs))
        finally:
            event_loop.close()
        return True
    return None

