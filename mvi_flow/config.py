"""Configuration helpers for the DevbrainAI MVI backend."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from functools import lru_cache
from typing import List, Mapping, Tuple

from dotenv import load_dotenv

DEFAULT_ALLOWED_ORIGINS: Tuple[str, ...] = ("http://localhost:5173", "http://localhost:5174")
LOCALHOST_ORIGIN_REGEX = r"https?://(localhost|127\.0\.0\.1)(:\d+)?"

load_dotenv(override=False)


def _env_float(environ: Mapping[str, str], key: str, default: float) -> float:
    try:
        return float(environ.get(key, default))
    except ValueError:
        return default


def _env_int(environ: Mapping[str, str], key: str, default: int) -> int:
    try:
        return int(environ.get(key, default))
    except ValueError:
        return default


def _env_flag(environ: Mapping[str, str], key: str) -> bool:
    return environ.get(key, "").strip().lower() in {"1", "true", "yes", "on"}


def _split_origins(raw: str | None) -> Tuple[str, ...]:
    if not raw:
        return ()
    return tuple(origin.strip().rstrip("/") for origin in raw.split(",") if origin.strip())


@dataclass(frozen=True)
class Settings:
    """Settings container for provider credentials and server options.

    OpenAI is the primary provider; Anthropic is only reported as available
    since every completion goes through the OpenAI-compatible client.
    """

    openai_api_key: str | None = None
    anthropic_api_key: str | None = None
    openai_model: str = "gpt-4"
    openai_base_url: str | None = None
    request_timeout: float = 40.0
    host: str = "127.0.0.1"
    port: int = 3002
    allowed_origins: Tuple[str, ...] = field(default=DEFAULT_ALLOWED_ORIGINS)
    log_level: str = "INFO"
    debug: bool = False

    @property
    def primary_provider(self) -> str | None:
        """Return the provider used for completions, if any key is set."""

        if self.openai_api_key:
            return "openai"
        if self.anthropic_api_key:
            return "anthropic"
        return None

    @property
    def available_providers(self) -> List[str]:
        providers = []
        if self.openai_api_key:
            providers.append("openai")
        if self.anthropic_api_key:
            providers.append("anthropic")
        return providers

    @property
    def llm_enabled(self) -> bool:
        """True when the OpenAI-compatible client can be built."""

        return bool(self.openai_api_key)


def _read_origins(environ: Mapping[str, str]) -> Tuple[str, ...]:
    origins = _split_origins(environ.get("MVI_ALLOWED_ORIGINS")) + _split_origins(environ.get("FRONTEND_URL"))
    return tuple(dict.fromkeys(origins)) or DEFAULT_ALLOWED_ORIGINS


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Read environment variables and return cached settings."""

    environ = os.environ
    return Settings(
        openai_api_key=environ.get("OPENAI_API_KEY") or None,
        anthropic_api_key=environ.get("ANTHROPIC_API_KEY") or None,
        openai_model=environ.get("OPENAI_MODEL", "").strip() or "gpt-4",
        openai_base_url=environ.get("OPENAI_BASE_URL") or None,
        request_timeout=_env_float(environ, "OPENAI_REQUEST_TIMEOUT", 40.0),
        host=environ.get("HOST", "").strip() or "127.0.0.1",
        port=_env_int(environ, "PORT", 3002),
        allowed_origins=_read_origins(environ),
        log_level=environ.get("MVI_LOG_LEVEL", "").strip().upper() or "INFO",
        debug=_env_flag(environ, "MVI_DEBUG"),
    )
