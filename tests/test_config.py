import pytest

from mvi_flow.config import DEFAULT_ALLOWED_ORIGINS, get_settings


def test_defaults_without_environment() -> None:
    settings = get_settings()

    assert settings.openai_model == "gpt-4"
    assert settings.request_timeout == 40.0
    assert settings.host == "127.0.0.1"
    assert settings.port == 3002
    assert settings.allowed_origins == DEFAULT_ALLOWED_ORIGINS
    assert settings.log_level == "INFO"
    assert settings.debug is False
    assert settings.primary_provider is None
    assert settings.available_providers == []


def test_primary_provider_prefers_openai(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("OPENAI_API_KEY", "test-openai")
    monkeypatch.setenv("ANTHROPIC_API_KEY", "test-anthropic")

    settings = get_settings()

    assert settings.primary_provider == "openai"
    assert settings.available_providers == ["openai", "anthropic"]
    assert settings.llm_enabled


def test_anthropic_only_is_reported_but_not_used_for_completions(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ANTHROPIC_API_KEY", "test-anthropic")

    settings = get_settings()

    assert settings.primary_provider == "anthropic"
    assert not settings.llm_enabled


def test_invalid_numbers_fall_back_to_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("OPENAI_REQUEST_TIMEOUT", "soon")
    monkeypatch.setenv("PORT", "http")

    settings = get_settings()

    assert settings.request_timeout == 40.0
    assert settings.port == 3002


def test_overrides_are_read(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("OPENAI_MODEL", "gpt-4o-mini")
    monkeypatch.setenv("OPENAI_REQUEST_TIMEOUT", "12.5")
    monkeypatch.setenv("PORT", "8080")
    monkeypatch.setenv("MVI_LOG_LEVEL", "debug")
    monkeypatch.setenv("MVI_DEBUG", "true")

    settings = get_settings()

    assert settings.openai_model == "gpt-4o-mini"
    assert settings.request_timeout == 12.5
    assert settings.port == 8080
    assert settings.log_level == "DEBUG"
    assert settings.debug is True


def test_allowed_origins_merge_and_dedupe(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("MVI_ALLOWED_ORIGINS", "https://app.example.com, https://beta.example.com/")
    monkeypatch.setenv("FRONTEND_URL", "https://app.example.com")

    settings = get_settings()

    assert settings.allowed_origins == ("https://app.example.com", "https://beta.example.com")


def test_settings_are_cached(monkeypatch: pytest.MonkeyPatch) -> None:
    first = get_settings()
    monkeypatch.setenv("OPENAI_MODEL", "changed")

    assert get_settings() is first
