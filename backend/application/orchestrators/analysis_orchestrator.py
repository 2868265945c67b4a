"""Food analysis orchestrator.

Coordinates input validation, candidate selection and the fallback loop for
the two analysis entry points (gallery upload and camera capture).
"""

from __future__ import annotations

from typing import Any

import structlog

from ai_models.food_analysis_models import AnalysisResult
from ai_models.food_analysis_prompt import extract_json
from ai_models.normalization import normalize_analysis
from domain.errors import BadRequestError, PayloadTooLargeError
from infrastructure.config import Settings
from inference.candidates import (
    CandidateFactory,
    ModelCandidate,
    camera_candidates,
    upload_candidates,
)
from inference.fallback import run_with_fallback
from inference.vision_client import VisionClient

logger = structlog.get_logger(__name__)

DATA_URL_REQUIRED = "dataURL is required"


class FoodAnalysisOrchestrator:
    """
    Orchestrate food photo analysis.

    Flow:
    1. Validate the data URL (required, size limit)
    2. Build the ordered (model, key) candidates for the entry point
    3. Run the fallback loop: call model → extract JSON → normalize

    Example:
        >>> async with VisionClient(base_url=settings.base_url) as client:
        ...     orchestrator = FoodAnalysisOrchestrator(settings, client)
        ...     result = await orchestrator.analyze_upload("data:image/jpeg;base64,...")
        >>> print(f"{len(result.composition)} items, {result.totals.calories_kcal} kcal")
    """

    def __init__(self, settings: Settings, vision_client: VisionClient) -> None:
        """
        Initialize orchestrator.

        Args:
            settings: Process-wide configuration (keys, models, retry delay)
            vision_client: Initialized model client
        """
        self._settings = settings
        self._vision = vision_client

    async def analyze_upload(self, data_url: Any) -> AnalysisResult:
        """Analyze a gallery upload (Gemini first, GPT as last resort)."""
        return await self._analyze(data_url, upload_candidates, entry_point="upload")

    async def analyze_camera(self, data_url: Any) -> AnalysisResult:
        """Analyze a camera capture (GPT first, Gemini as fallback)."""
        return await self._analyze(data_url, camera_candidates, entry_point="camera")

    def _validate(self, data_url: Any) -> str:
        if not isinstance(data_url, str) or not data_url.strip():
            raise BadRequestError(DATA_URL_REQUIRED)
        if len(data_url) > self._settings.max_data_url_bytes:
            raise PayloadTooLargeError(
                f"dataURL exceeds maximum size of {self._settings.max_data_url_bytes} bytes"
            )
        return data_url

    async def _analyze(
        self,
        data_url: Any,
        candidate_factory: CandidateFactory,
        *,
        entry_point: str,
    ) -> AnalysisResult:
        valid_url = self._validate(data_url)
        candidates = candidate_factory(self._settings)
        logger.info(
            "analysis.start",
            entry_point=entry_point,
            candidates=[c.model for c in candidates],
            data_url_len=len(valid_url),
        )

        async def _attempt(candidate: ModelCandidate) -> AnalysisResult:
            raw_text = await self._vision.analyze_image(
                api_key=candidate.api_key,
                model=candidate.model,
                data_url=valid_url,
            )
            return normalize_analysis(extract_json(raw_text))

        result = await run_with_fallback(
            candidates,
            _attempt,
            retry_delay_s=self._settings.retry_delay_s,
        )
        logger.info(
            "analysis.completed",
            entry_point=entry_point,
            items=len(result.composition),
            calories_kcal=result.totals.calories_kcal,
        )
        return result
