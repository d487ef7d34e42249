from __future__ import annotations

import contextlib
from pathlib import Path
from typing import Callable, Generator

import pytest

from appconfig import get_settings

_ENV_VARS = (
    "DISABLE_OPENAI",
    "OPENAI_API_KEY",
    "OPENAI_MODEL",
    "FALLBACK_ON_ERROR",
    "EXTRACTIVE_MAX_SENTENCES",
    "REQUIRE_AUTH",
    "AUTH_USER_URL",
    "AUTH_API_KEY",
    "RATE_LIMIT",
    "RATE_LIMIT_WINDOW_SECONDS",
    "MAX_BODY_BYTES",
)


@pytest.fixture()
def temp_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    # Fresh database per test; keep any developer .env / shell settings out
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("DB_PATH", str(tmp_path / "data" / "instanotes.db"))
    for var in _ENV_VARS:
        monkeypatch.delenv(var, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture()
def make_client(temp_env, monkeypatch: pytest.MonkeyPatch) -> Generator[Callable, None, None]:
    """
    Build a started TestClient after applying extra environment variables.

    Example:
        def test_x(make_client):
            client = make_client(OPENAI_API_KEY="sk-test")
    """
    from fastapi.testclient import TestClient
    import api

    stack = contextlib.ExitStack()

    def _make(**env: str) -> TestClient:
        for key, value in env.items():
            monkeypatch.setenv(key, value)
        get_settings.cache_clear()
        return stack.enter_context(TestClient(api.app))

    try:
        yield _make
    finally:
        stack.close()


@pytest.fixture()
def client(make_client):
    return make_client()
