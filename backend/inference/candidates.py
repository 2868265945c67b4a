"""Model candidates: ordered (model, key) pairs per entry point.

Upload prefers the Gemini family (two variants) and falls back to GPT;
camera prefers GPT and falls back to the primary Gemini model. A candidate
is only listed when a key for its family is configured (family key first,
shared key as fallback).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence, Tuple

from domain.errors import NotConfiguredError
from infrastructure.config import Settings

API_KEYS_NOT_CONFIGURED = "API keys not configured"

GEMINI = "gemini"
GPT = "gpt"


@dataclass(frozen=True)
class ModelCandidate:
    model: str
    api_key: str = field(repr=False)
    provider: str


# (provider, settings attribute holding the model id)
_Plan = Sequence[Tuple[str, str]]

UPLOAD_PLAN: _Plan = (
    (GEMINI, "gemini_model"),
    (GEMINI, "gemini_fallback_model"),
    (GPT, "gpt_model"),
)
CAMERA_PLAN: _Plan = (
    (GPT, "gpt_model"),
    (GEMINI, "gemini_model"),
)


def _key_for(settings: Settings, provider: str) -> Optional[str]:
    if provider == GEMINI:
        return settings.resolved_gemini_key
    return settings.resolved_gpt_key


def build_candidates(settings: Settings, plan: _Plan) -> List[ModelCandidate]:
    """Candidates for `plan`, skipping families without a key.

    Raises:
        NotConfiguredError: if no candidate has a key
    """
    candidates: List[ModelCandidate] = []
    for provider, model_attr in plan:
        key = _key_for(settings, provider)
        if key:
            candidates.append(
                ModelCandidate(model=getattr(settings, model_attr), api_key=key, provider=provider)
            )
    if not candidates:
        raise NotConfiguredError(API_KEYS_NOT_CONFIGURED)
    return candidates


def upload_candidates(settings: Settings) -> List[ModelCandidate]:
    return build_candidates(settings, UPLOAD_PLAN)


def camera_candidates(settings: Settings) -> List[ModelCandidate]:
    return build_candidates(settings, CAMERA_PLAN)


CandidateFactory = Callable[[Settings], List[ModelCandidate]]

__all__ = [
    "API_KEYS_NOT_CONFIGURED",
    "ModelCandidate",
    "CandidateFactory",
    "build_candidates",
    "upload_candidates",
    "camera_candidates",
]
