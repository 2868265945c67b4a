"""REST API endpoints for food photo analysis.

Both endpoints take `{"dataURL": "<data URL>"}` and answer with the
normalized AnalysisResult; they differ only in model preference order.
Errors are rendered as `{"message": ...}` by the handlers in `app.py`.
"""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel, ConfigDict

from application.orchestrators import FoodAnalysisOrchestrator


class AnalyzeImageRequest(BaseModel):
    """Request body; `dataURL` is validated by the orchestrator."""

    model_config = ConfigDict(extra="ignore")

    dataURL: Optional[Any] = None


def get_orchestrator(request: Request) -> FoodAnalysisOrchestrator:
    """Orchestrator built by the app lifespan.

    Raises:
        RuntimeError: If the application has not been started.
    """
    orchestrator = getattr(request.app.state, "orchestrator", None)
    if orchestrator is None:
        raise RuntimeError("Analysis orchestrator not initialized")
    return orchestrator


router = APIRouter(prefix="/api", tags=["analysis"])


@router.post("/analyze-image")
async def analyze_image(
    payload: Optional[AnalyzeImageRequest] = None,
    orchestrator: FoodAnalysisOrchestrator = Depends(get_orchestrator),
) -> Dict[str, Any]:
    """Analyze an uploaded photo."""
    data_url = payload.dataURL if payload else None
    result = await orchestrator.analyze_upload(data_url)
    return result.to_response()


@router.post("/analyze-camera")
async def analyze_camera(
    payload: Optional[AnalyzeImageRequest] = None,
    orchestrator: FoodAnalysisOrchestrator = Depends(get_orchestrator),
) -> Dict[str, Any]:
    """Analyze a camera capture."""
    data_url = payload.dataURL if payload else None
    result = await orchestrator.analyze_camera(data_url)
    return result.to_response()
