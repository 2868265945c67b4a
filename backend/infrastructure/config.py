"""Configuration utilities for infrastructure layer.

Settings are read once at application startup (see `app.lifespan`) and
passed explicitly to the orchestrator; request handling never touches the
environment.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

DEFAULT_BASE_URL = "https://ai.sumopod.com/v1"
DEFAULT_GEMINI_MODEL = "gemini/gemini-2.5-flash"
DEFAULT_GEMINI_FALLBACK_MODEL = "gemini/gemini-2.0-flash"
DEFAULT_GPT_MODEL = "gpt-5-mini"
DEFAULT_TIMEOUT_S = 60.0
DEFAULT_RETRY_DELAY_S = 0.5
# 10MB, same body limit as the public API
DEFAULT_MAX_DATA_URL_BYTES = 10 * 1024 * 1024


def _env(name: str) -> Optional[str]:
    """Environment value, with empty/blank strings treated as unset."""
    value = os.getenv(name)
    if value is None or not value.strip():
        return None
    return value.strip()


def _env_float(name: str, default: float) -> float:
    raw = _env(name)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be a number, got {raw!r}") from exc


def _env_int(name: str, default: int) -> int:
    raw = _env(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from exc


def mask_key(key: Optional[str]) -> Optional[str]:
    """Mask an API key for logging (first/last 4 chars)."""
    if not key:
        return None
    if len(key) > 8:
        return key[:4] + "..." + key[-4:]
    return "***"


@dataclass(frozen=True)
class Settings:
    """
    Process-wide configuration.

    Attributes:
        gemini_api_key: Key for the Gemini model family
        gpt_api_key: Key for the GPT model family
        shared_api_key: Fallback key accepted for both families
        base_url: OpenAI-compatible endpoint root (without /chat/completions)
        gemini_model: Preferred Gemini model id
        gemini_fallback_model: Second Gemini model id (upload path)
        gpt_model: GPT model id
        timeout_s: Per-request upstream timeout
        retry_delay_s: Wait before retrying a transient failure
        max_data_url_bytes: Largest accepted data URL
    """

    gemini_api_key: Optional[str] = None
    gpt_api_key: Optional[str] = None
    shared_api_key: Optional[str] = None
    base_url: str = DEFAULT_BASE_URL
    gemini_model: str = DEFAULT_GEMINI_MODEL
    gemini_fallback_model: str = DEFAULT_GEMINI_FALLBACK_MODEL
    gpt_model: str = DEFAULT_GPT_MODEL
    timeout_s: float = DEFAULT_TIMEOUT_S
    retry_delay_s: float = DEFAULT_RETRY_DELAY_S
    max_data_url_bytes: int = DEFAULT_MAX_DATA_URL_BYTES
    log_level: str = "INFO"
    app_version: str = "0.0.0-dev"

    @property
    def resolved_gemini_key(self) -> Optional[str]:
        return self.gemini_api_key or self.shared_api_key

    @property
    def resolved_gpt_key(self) -> Optional[str]:
        return self.gpt_api_key or self.shared_api_key

    @property
    def has_any_key(self) -> bool:
        return bool(self.resolved_gemini_key or self.resolved_gpt_key)

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from the current environment (no .env loading)."""
        return cls(
            gemini_api_key=_env("SUMOPOD_GEMINI_API_KEY"),
            gpt_api_key=_env("SUMOPOD_GPT5_API_KEY"),
            shared_api_key=_env("SUMOPOD_API_KEY"),
            base_url=(_env("SUMOPOD_BASE_URL") or DEFAULT_BASE_URL).rstrip("/"),
            gemini_model=_env("SUMOPOD_GEMINI_MODEL") or DEFAULT_GEMINI_MODEL,
            gemini_fallback_model=(
                _env("SUMOPOD_GEMINI_FALLBACK_MODEL") or DEFAULT_GEMINI_FALLBACK_MODEL
            ),
            gpt_model=_env("SUMOPOD_GPT_MODEL") or DEFAULT_GPT_MODEL,
            timeout_s=_env_float("VISION_TIMEOUT_S", DEFAULT_TIMEOUT_S),
            retry_delay_s=_env_float("VISION_RETRY_DELAY_S", DEFAULT_RETRY_DELAY_S),
            max_data_url_bytes=_env_int("MAX_DATA_URL_BYTES", DEFAULT_MAX_DATA_URL_BYTES),
            log_level=(_env("LOG_LEVEL") or "INFO").upper(),
            app_version=_env("APP_VERSION") or "0.0.0-dev",
        )


def load_settings() -> Settings:
    """
    Load settings once at startup.

    Values from a local .env file are loaded first; variables already set
    in the process environment win.

    Returns:
        Immutable Settings instance
    """
    load_dotenv()
    return Settings.from_env()
