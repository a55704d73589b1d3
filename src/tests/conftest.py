"""
Shared test fixtures for Cosmic MCP.
"""
import pytest
import structlog

from cosmic_mcp.config import reset_settings
from tests.fixtures.cosmic import (  # noqa: F401
    clock,
    dispatcher,
    fake_client,
    rate_limiter,
)

CREDENTIAL_ENV = {
    "COSMIC_BUCKET_SLUG": "test-bucket",
    "COSMIC_READ_KEY": "test-read-key",
    "COSMIC_WRITE_KEY": "test-write-key",
}

OPTIONAL_ENV = (
    "DEBUG",
    "LOG_LEVEL",
    "LOG_FORMAT",
    "COSMIC_API_URL",
    "COSMIC_UPLOAD_URL",
    "COSMIC_REQUEST_TIMEOUT",
    "RATE_LIMIT_WINDOW_MS",
    "RATE_LIMIT_MAX_REQUESTS",
)


@pytest.fixture(autouse=True, scope="session")
def quiet_logging():
    """Send log events nowhere so they never mix with captured output."""
    structlog.configure(logger_factory=structlog.ReturnLoggerFactory())


@pytest.fixture(autouse=True)
def fresh_settings():
    """Never let one test's settings leak into the next."""
    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def cosmic_env(monkeypatch):
    """Set the required Cosmic credentials and clear the optional settings."""
    for key in OPTIONAL_ENV:
        monkeypatch.delenv(key, raising=False)
    for key, value in CREDENTIAL_ENV.items():
        monkeypatch.setenv(key, value)
    return CREDENTIAL_ENV
