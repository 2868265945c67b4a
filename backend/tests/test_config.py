"""Tests for environment-driven Settings."""

import pytest

from infrastructure.config import (
    DEFAULT_BASE_URL,
    DEFAULT_MAX_DATA_URL_BYTES,
    Settings,
    mask_key,
)

_ENV_VARS = [
    "SUMOPOD_API_KEY",
    "SUMOPOD_GEMINI_API_KEY",
    "SUMOPOD_GPT5_API_KEY",
    "SUMOPOD_BASE_URL",
    "SUMOPOD_GEMINI_MODEL",
    "SUMOPOD_GEMINI_FALLBACK_MODEL",
    "SUMOPOD_GPT_MODEL",
    "VISION_TIMEOUT_S",
    "VISION_RETRY_DELAY_S",
    "MAX_DATA_URL_BYTES",
    "LOG_LEVEL",
    "APP_VERSION",
]


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


def test_defaults(clean_env: pytest.MonkeyPatch) -> None:
    cfg = Settings.from_env()
    assert cfg.base_url == DEFAULT_BASE_URL
    assert cfg.gemini_model == "gemini/gemini-2.5-flash"
    assert cfg.gemini_fallback_model == "gemini/gemini-2.0-flash"
    assert cfg.gpt_model == "gpt-5-mini"
    assert cfg.timeout_s == 60.0
    assert cfg.retry_delay_s == 0.5
    assert cfg.max_data_url_bytes == DEFAULT_MAX_DATA_URL_BYTES == 10 * 1024 * 1024
    assert cfg.log_level == "INFO"
    assert not cfg.has_any_key


def test_keys_from_env(clean_env: pytest.MonkeyPatch) -> None:
    clean_env.setenv("SUMOPOD_GEMINI_API_KEY", "gem")
    clean_env.setenv("SUMOPOD_GPT5_API_KEY", "gpt")
    cfg = Settings.from_env()
    assert cfg.resolved_gemini_key == "gem"
    assert cfg.resolved_gpt_key == "gpt"
    assert cfg.has_any_key


def test_shared_key_fallback(clean_env: pytest.MonkeyPatch) -> None:
    clean_env.setenv("SUMOPOD_API_KEY", "shared")
    clean_env.setenv("SUMOPOD_GPT5_API_KEY", "gpt")
    cfg = Settings.from_env()
    assert cfg.resolved_gemini_key == "shared"
    assert cfg.resolved_gpt_key == "gpt"


def test_blank_values_are_unset(clean_env: pytest.MonkeyPatch) -> None:
    clean_env.setenv("SUMOPOD_GEMINI_API_KEY", "   ")
    clean_env.setenv("SUMOPOD_BASE_URL", "")
    cfg = Settings.from_env()
    assert cfg.resolved_gemini_key is None
    assert cfg.base_url == DEFAULT_BASE_URL


def test_overrides(clean_env: pytest.MonkeyPatch) -> None:
    clean_env.setenv("SUMOPOD_BASE_URL", "https://proxy.local/v1/")
    clean_env.setenv("VISION_TIMEOUT_S", "12.5")
    clean_env.setenv("VISION_RETRY_DELAY_S", "0")
    clean_env.setenv("MAX_DATA_URL_BYTES", "2048")
    clean_env.setenv("LOG_LEVEL", "debug")
    clean_env.setenv("APP_VERSION", "1.2.3")
    cfg = Settings.from_env()
    assert cfg.base_url == "https://proxy.local/v1"
    assert cfg.timeout_s == 12.5
    assert cfg.retry_delay_s == 0.0
    assert cfg.max_data_url_bytes == 2048
    assert cfg.log_level == "DEBUG"
    assert cfg.app_version == "1.2.3"


@pytest.mark.parametrize(
    "name,value",
    [("VISION_TIMEOUT_S", "soon"), ("MAX_DATA_URL_BYTES", "10MB")],
)
def test_invalid_numbers_name_the_variable(
    clean_env: pytest.MonkeyPatch, name: str, value: str
) -> None:
    clean_env.setenv(name, value)
    with pytest.raises(ValueError, match=name):
        Settings.from_env()


def test_settings_are_frozen() -> None:
    cfg = Settings()
    with pytest.raises(AttributeError):
        cfg.gpt_model = "other"  # type: ignore[misc]


@pytest.mark.parametrize(
    "key,expected",
    [
        (None, None),
        ("", None),
        ("short", "***"),
        ("sk-1234567890abcd", "sk-1...abcd"),
    ],
)
def test_mask_key(key, expected) -> None:
    assert mask_key(key) == expected
