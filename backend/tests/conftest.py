"""Shared fixtures for food analysis tests.

The upstream provider is faked with `httpx.MockTransport`, so the real
openai SDK request/response path is exercised without network access.
The FastAPI app is driven through httpx `ASGITransport`; the lifespan is
not run, the orchestrator is assigned to `app.state` directly.
"""

from __future__ import annotations

import copy
import json
from typing import Any, AsyncIterator, Callable, Dict, List, Optional, cast

import httpx
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from app import create_app
from application.orchestrators import FoodAnalysisOrchestrator
from infrastructure.config import Settings
from inference.vision_client import VisionClient

BASE_URL = "https://llm.test/v1"
DATA_URL = "data:image/jpeg;base64,/9j/4AAQSkZJRgABAQAAAQABAAD"

SAMPLE_ANALYSIS: Dict[str, Any] = {
    "image_meta": {"width": 800, "height": 600, "orientation": "landscape"},
    "composition": [
        {
            "label": "Nasi Goreng",
            "confidence": 0.95,
            "serving_est_g": 200,
            "bbox_norm": {"x": 0.1, "y": 0.1, "w": 0.8, "h": 0.6},
            "nutrition": {
                "calories_kcal": 350,
                "macros": {
                    "protein_g": 12,
                    "carbs_g": 45,
                    "fat_g": 8,
                    "fiber_g": 2,
                    "sugar_g": 3,
                },
                "micros": {
                    "sodium_mg": 800,
                    "potassium_mg": 300,
                    "calcium_mg": 50,
                    "iron_mg": 2,
                    "vitamin_a_mcg": 100,
                    "vitamin_c_mg": 15,
                    "cholesterol_mg": 25,
                },
                "allergens": ["gluten"],
            },
        }
    ],
    "notes": "Analysis completed successfully",
}


def chat_completion(content: Optional[str]) -> Dict[str, Any]:
    """Minimal OpenAI chat.completion payload."""
    return {
        "id": "chatcmpl-test",
        "object": "chat.completion",
        "created": 1700000000,
        "model": "test-model",
        "choices": [
            {
                "index": 0,
                "message": {"role": "assistant", "content": content},
                "finish_reason": "stop",
            }
        ],
    }


class FakeUpstream:
    """Records requests and replays queued responses (or exceptions)."""

    def __init__(self) -> None:
        self.requests: List[httpx.Request] = []
        self._queue: List[Callable[[httpx.Request], httpx.Response]] = []

    def reply_text(self, content: Optional[str]) -> None:
        self._queue.append(lambda _: httpx.Response(200, json=chat_completion(content)))

    def reply_json(self, payload: Dict[str, Any]) -> None:
        self._queue.append(lambda _: httpx.Response(200, json=payload))

    def reply_status(self, status: int, body: str = "") -> None:
        self._queue.append(lambda _: httpx.Response(status, text=body))

    def reply_error(self, factory: Callable[[httpx.Request], Exception]) -> None:
        def _raise(request: httpx.Request) -> httpx.Response:
            raise factory(request)

        self._queue.append(_raise)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if not self._queue:
            return httpx.Response(500, text="no response queued")
        return self._queue.pop(0)(request)

    def payloads(self) -> List[Dict[str, Any]]:
        return [json.loads(r.content) for r in self.requests]

    def models(self) -> List[str]:
        return [p["model"] for p in self.payloads()]


@pytest.fixture
def data_url() -> str:
    return DATA_URL


@pytest.fixture
def sample_analysis() -> Dict[str, Any]:
    return copy.deepcopy(SAMPLE_ANALYSIS)


@pytest.fixture
def upstream() -> FakeUpstream:
    return FakeUpstream()


@pytest.fixture
def settings() -> Settings:
    """Both provider keys configured, no retry delay."""
    return Settings(
        gemini_api_key="gemini-key-1234",
        gpt_api_key="gpt-key-5678",
        base_url=BASE_URL,
        retry_delay_s=0.0,
    )


@pytest_asyncio.fixture
async def vision_client(upstream: FakeUpstream) -> AsyncIterator[VisionClient]:
    async with httpx.AsyncClient(transport=httpx.MockTransport(upstream.handler)) as http:
        yield VisionClient(base_url=BASE_URL, http_client=http)


@pytest.fixture
def orchestrator(settings: Settings, vision_client: VisionClient) -> FoodAnalysisOrchestrator:
    return FoodAnalysisOrchestrator(settings, vision_client)


@pytest.fixture
def make_client(
    vision_client: VisionClient,
) -> Callable[[Settings], AsyncClient]:
    """Factory: HTTP client for an app built with the given settings."""

    def _make(app_settings: Settings) -> AsyncClient:
        app = create_app(app_settings)
        app.state.orchestrator = FoodAnalysisOrchestrator(app_settings, vision_client)
        transport = ASGITransport(app=cast(Any, app))
        return AsyncClient(transport=transport, base_url="http://testserver")

    return _make


@pytest_asyncio.fixture
async def client(
    settings: Settings, make_client: Callable[[Settings], AsyncClient]
) -> AsyncIterator[AsyncClient]:
    async with make_client(settings) as ac:
        yield ac
