from __future__ import annotations

import pytest

from mvi_flow.config import get_settings

ENV_VARS = (
    "OPENAI_API_KEY",
    "ANTHROPIC_API_KEY",
    "OPENAI_MODEL",
    "OPENAI_BASE_URL",
    "OPENAI_REQUEST_TIMEOUT",
    "HOST",
    "PORT",
    "FRONTEND_URL",
    "MVI_ALLOWED_ORIGINS",
    "MVI_LOG_LEVEL",
    "MVI_DEBUG",
)


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch: pytest.MonkeyPatch):
    """Start every test without provider keys or cached settings."""

    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
