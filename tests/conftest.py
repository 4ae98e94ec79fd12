"""
Pytest configuration and shared fixtures.
"""
import pytest

from app.core.config import reset_settings

from alto_stub import AltoStub


@pytest.fixture(scope="function")
def clean_env(monkeypatch):
    """
    Clean environment for testing.

    Removes all app-related env vars to ensure clean state.
    """
    env_vars = [
        "PORT",
        "ALTO_USERNAME",
        "ALTO_PASSWORD",
        "ALTO_DATAFEED_ID",
        "ALTO_BRANCH_ID",
        "ALTO_API_HOST",
        "ALTO_TOKEN_TTL_SECONDS",
        "ALTO_HTTP_TIMEOUT_SECONDS",
        "ALTO_STRICT_STUDENT_MATCH",
        "PROXY_SECRET",
        "LOG_LEVEL",
    ]
    for var in env_vars:
        monkeypatch.delenv(var, raising=False)

    # Reset settings singleton
    reset_settings()

    yield

    # Reset again after test
    reset_settings()


@pytest.fixture(scope="function")
def configured_env(clean_env, monkeypatch):
    """Environment with every required setting present."""
    monkeypatch.setenv("ALTO_USERNAME", "agent")
    monkeypatch.setenv("ALTO_PASSWORD", "secret")
    monkeypatch.setenv("ALTO_DATAFEED_ID", "feed1")
    monkeypatch.setenv("PROXY_SECRET", "proxy-secret")
    reset_settings()
    yield


@pytest.fixture
def stub():
    return AltoStub()
