# tests/integration/conftest.py — v8
"""Shared fixtures for integration tests.

Everything runs in-process against file-backed stores under tmp_path.
The Redis test is opt-in through the ``ACADIMPORT_TEST_REDIS_URL``
environment variable.
"""

from __future__ import annotations

import os
from pathlib import Path

import pytest

from acadimport.config.settings import Settings


def pytest_configure(config):
    config.addinivalue_line("markers", "redis: marks tests requiring a Redis server")


@pytest.fixture
def redis_url() -> str:
    url = os.environ.get("ACADIMPORT_TEST_REDIS_URL", "")
    if not url:
        pytest.skip("ACADIMPORT_TEST_REDIS_URL not set")
    return url


@pytest.fixture(params=["json", "sqlite"])
def file_settings(request, tmp_path: Path) -> Settings:
    """JSON record store plus a file-backed cache backend."""
    return Settings(
        _env_file=None,
        cache_backend=request.param,
        cache_root=tmp_path / "cache",
        record_store_backend="json",
        record_store_path=tmp_path / "records.json",
    )
