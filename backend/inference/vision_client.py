"""Vision model client (OpenAI-compatible chat completions).

One call = one request to the provider, no retries: retry and fallback
across candidates live in `inference.fallback`. Provider failures are
mapped to `UpstreamError` so the fallback loop can classify them:

* non-2xx response → status code, status text and body as structured data
* timeout → message carries "timeout"
* connection failure → message carries "UNAVAILABLE"
"""

from __future__ import annotations

from typing import Any, Iterable, List, Optional, cast
import time

import httpx
import structlog
from openai import APIConnectionError, APIStatusError, APITimeoutError, AsyncOpenAI

from ai_models.food_analysis_prompt import MAX_TOKENS, TEMPERATURE, build_vision_messages
from domain.errors import UpstreamError

__all__ = ["VisionClient"]

logger = structlog.get_logger(__name__)


class VisionClient:
    """
    Async client for food photo analysis over an OpenAI-compatible API.

    The HTTP connection pool is shared across calls; the API key and model
    are per call, so one client serves every (model, key) candidate.

    Example:
        >>> async with VisionClient(base_url="https://ai.sumopod.com/v1") as client:
        ...     text = await client.analyze_image(
        ...         api_key="sk-...",
        ...         model="gemini/gemini-2.5-flash",
        ...         data_url="data:image/jpeg;base64,...",
        ...     )
    """

    def __init__(
        self,
        base_url: str,
        timeout_s: float = 60.0,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        """
        Initialize vision client.

        Args:
            base_url: Provider root URL, e.g. https://ai.sumopod.com/v1
            timeout_s: Request timeout in seconds
            http_client: Optional pre-configured httpx client (for testing)
        """
        self.base_url = base_url.rstrip("/")
        self.timeout_s = timeout_s
        self._http = http_client
        self._owns_http = http_client is None

    async def __aenter__(self) -> "VisionClient":
        """Async context manager entry."""
        if self._http is None:
            self._http = httpx.AsyncClient(timeout=httpx.Timeout(self.timeout_s))
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Async context manager exit."""
        if self._http is not None and self._owns_http:
            await self._http.aclose()
            self._http = None

    def _openai(self, api_key: str) -> AsyncOpenAI:
        if self._http is None:
            raise RuntimeError("Client not initialized. Use async with.")
        return AsyncOpenAI(
            api_key=api_key,
            base_url=self.base_url,
            timeout=self.timeout_s,
            max_retries=0,
            http_client=self._http,
        )

    async def analyze_image(self, *, api_key: str, model: str, data_url: str) -> str:
        """
        Send one analysis request and return the raw reply text.

        Args:
            api_key: Bearer key for this candidate
            model: Provider model id
            data_url: Image as data URL (or plain URL)

        Returns:
            Content of the first choice's message, "" if absent

        Raises:
            UpstreamError: On non-success status, timeout or connection failure
        """
        client = self._openai(api_key)
        messages = cast(Iterable[Any], build_vision_messages(data_url))
        start = time.perf_counter()
        outcome = "error"
        try:
            completion = await client.chat.completions.create(
                model=model,
                messages=messages,
                temperature=TEMPERATURE,
                max_tokens=MAX_TOKENS,
            )
            outcome = "ok"
        except APIStatusError as exc:
            response = exc.response
            raise UpstreamError.from_response(
                response.status_code, response.reason_phrase, response.text
            ) from exc
        except APITimeoutError as exc:
            raise UpstreamError(f"Request timeout: {exc}") from exc
        except APIConnectionError as exc:
            raise UpstreamError(f"UNAVAILABLE: {exc}") from exc
        finally:
            logger.info(
                "vision.call",
                model=model,
                outcome=outcome,
                elapsed_ms=int((time.perf_counter() - start) * 1000.0),
            )

        choices: List[Any] = getattr(completion, "choices", None) or []
        if not choices:
            return ""
        message = getattr(choices[0], "message", None)
        content = getattr(message, "content", None) if message is not None else None
        return content or ""
