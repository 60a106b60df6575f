"""Shared test fixtures for the spmhost test suite.

Every test gets its own artifacts directory under pytest's `tmp_path`, so
nothing is written to the working directory. TLS certificate paths point
at files that do not exist, which keeps the app in HTTP mode.

Eviction runs on a background thread pool. The `client` fixture drains the
scheduler on teardown so no pass outlives its test.
"""

import os
import time
from collections.abc import AsyncGenerator
from pathlib import Path

import pytest
from httpx import ASGITransport, AsyncClient

from spmhost.core.config import Settings
from spmhost.main import create_app

BASE_URL = "http://localhost:8080"


def make_settings(tmp_path: Path, **overrides) -> Settings:
    """Settings isolated to *tmp_path*."""
    values = {
        "artifacts_path": str(tmp_path / "artifacts"),
        "cert_path": str(tmp_path / "missing-cert.pem"),
        "key_path": str(tmp_path / "missing-key.pem"),
        "sentry_dsn": "",
        "debug": False,
    }
    values.update(overrides)
    return Settings(**values)


def write_artifact(directory: Path, name: str, size: int, age_seconds: float = 0) -> Path:
    """Create a file of *size* zero bytes whose timestamp is *age_seconds* in the past."""
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / name
    path.write_bytes(b"\x00" * size)
    stamp = time.time() - age_seconds
    os.utime(path, (stamp, stamp))
    return path


@pytest.fixture
def artifacts_dir(tmp_path: Path) -> Path:
    return tmp_path / "artifacts"


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return make_settings(tmp_path)


@pytest.fixture
def app(settings):
    """A fresh app per test.

    The SlowAPI limiter keeps its counters in a module-level in-memory store,
    so it is reset before each test to keep rate-limit buckets isolated.
    """
    from spmhost.core.limiter import limiter

    limiter.reset()
    test_app = create_app(settings)
    yield test_app
    test_app.state.eviction_scheduler.shutdown()


@pytest.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client wired to the test app."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url=BASE_URL) as ac:
        yield ac
    app.state.eviction_scheduler.drain(timeout=10)
