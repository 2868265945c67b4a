import pytest

from domain.errors import NotConfiguredError
from infrastructure.config import Settings
from inference.candidates import (
    ModelCandidate,
    build_candidates,
    camera_candidates,
    upload_candidates,
)


def _pairs(candidates):
    return [(c.model, c.api_key) for c in candidates]


def test_upload_order_with_both_keys(settings: Settings) -> None:
    assert _pairs(upload_candidates(settings)) == [
        ("gemini/gemini-2.5-flash", "gemini-key-1234"),
        ("gemini/gemini-2.0-flash", "gemini-key-1234"),
        ("gpt-5-mini", "gpt-key-5678"),
    ]


def test_camera_order_with_both_keys(settings: Settings) -> None:
    assert _pairs(camera_candidates(settings)) == [
        ("gpt-5-mini", "gpt-key-5678"),
        ("gemini/gemini-2.5-flash", "gemini-key-1234"),
    ]


def test_missing_family_key_is_skipped() -> None:
    only_gemini = Settings(gemini_api_key="g-key")
    assert [c.provider for c in upload_candidates(only_gemini)] == ["gemini", "gemini"]
    assert _pairs(camera_candidates(only_gemini)) == [("gemini/gemini-2.5-flash", "g-key")]


def test_shared_key_covers_both_families() -> None:
    shared = Settings(shared_api_key="shared-key")
    assert {c.api_key for c in upload_candidates(shared)} == {"shared-key"}
    assert len(camera_candidates(shared)) == 2


def test_family_key_wins_over_shared_key() -> None:
    cfg = Settings(gpt_api_key="gpt-only", shared_api_key="shared-key")
    assert _pairs(camera_candidates(cfg)) == [
        ("gpt-5-mini", "gpt-only"),
        ("gemini/gemini-2.5-flash", "shared-key"),
    ]


def test_model_ids_come_from_settings() -> None:
    cfg = Settings(shared_api_key="k", gpt_model="gpt-custom", gemini_model="gemini/custom")
    assert [c.model for c in camera_candidates(cfg)] == ["gpt-custom", "gemini/custom"]


@pytest.mark.parametrize("factory", [upload_candidates, camera_candidates])
def test_no_keys_raises_not_configured(factory) -> None:
    with pytest.raises(NotConfiguredError) as exc_info:
        factory(Settings())
    assert exc_info.value.message == "API keys not configured"
    assert exc_info.value.status_code == 500


def test_build_candidates_custom_plan() -> None:
    cfg = Settings(shared_api_key="k")
    candidates = build_candidates(cfg, [("gpt", "gpt_model"), ("gpt", "gpt_model")])
    assert len(candidates) == 2


def test_api_key_hidden_from_repr() -> None:
    candidate = ModelCandidate(model="gpt-5-mini", api_key="secret-value", provider="gpt")
    assert "secret-value" not in repr(candidate)
