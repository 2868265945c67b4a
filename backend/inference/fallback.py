"""Ordered candidate fallback with one retry on transient failures.

Candidates are tried strictly in order; the first success wins. A failure
classified as transient (5xx, UNAVAILABLE, timeout) is retried once on the
same candidate after a fixed delay; any other failure, or a second
transient one, moves on to the next candidate.
"""

from __future__ import annotations

from typing import Any, Awaitable, Callable, Optional, Sequence
import asyncio
import re

import structlog
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception,
    stop_after_attempt,
    wait_fixed,
)

from ai_models.food_analysis_models import AnalysisResult
from domain.errors import (
    AllCandidatesFailedError,
    NotConfiguredError,
    ParseError,
    UpstreamError,
)
from inference.candidates import API_KEYS_NOT_CONFIGURED, ModelCandidate

__all__ = [
    "MAX_ATTEMPTS_PER_CANDIDATE",
    "is_transient_error",
    "run_with_fallback",
]

logger = structlog.get_logger(__name__)

MAX_ATTEMPTS_PER_CANDIDATE = 2

_TRANSIENT_MESSAGE_RE = re.compile(r"\b5\d\d\b|UNAVAILABLE|(?i:timeout)")

AttemptFn = Callable[[ModelCandidate], Awaitable[AnalysisResult]]


def is_transient_error(exc: BaseException) -> bool:
    """True if the failure is worth one retry on the same candidate.

    Upstream errors with an HTTP status are classified on the status code;
    anything else falls back to markers in the message.
    """
    if isinstance(exc, ParseError):
        return False
    if isinstance(exc, UpstreamError) and exc.upstream_status is not None:
        return 500 <= exc.upstream_status < 600
    return bool(_TRANSIENT_MESSAGE_RE.search(str(exc)))


def _log_retry(candidate: ModelCandidate) -> Callable[[RetryCallState], None]:
    def _before_sleep(state: RetryCallState) -> None:
        error = state.outcome.exception() if state.outcome else None
        logger.warning(
            "fallback.retry",
            model=candidate.model,
            provider=candidate.provider,
            attempt=state.attempt_number,
            error=str(error),
        )

    return _before_sleep


async def run_with_fallback(
    candidates: Sequence[ModelCandidate],
    attempt: AttemptFn,
    *,
    retry_delay_s: float = 0.5,
    sleep: Optional[Callable[[float], Awaitable[Any]]] = None,
) -> AnalysisResult:
    """
    Try each candidate in order until one succeeds.

    Args:
        candidates: Ordered (model, key) candidates
        attempt: Coroutine running one full attempt (call, extract, normalize)
        retry_delay_s: Fixed wait before the single transient retry
        sleep: Sleep coroutine (override in tests)

    Returns:
        Result of the first successful attempt

    Raises:
        NotConfiguredError: if `candidates` is empty
        AllCandidatesFailedError: if every candidate failed; carries the
            last underlying error
    """
    if not candidates:
        raise NotConfiguredError(API_KEYS_NOT_CONFIGURED)

    last_error: Optional[BaseException] = None
    for position, candidate in enumerate(candidates, start=1):
        logger.info(
            "fallback.try",
            model=candidate.model,
            provider=candidate.provider,
            position=position,
            total=len(candidates),
        )
        retrying = AsyncRetrying(
            stop=stop_after_attempt(MAX_ATTEMPTS_PER_CANDIDATE),
            wait=wait_fixed(retry_delay_s),
            retry=retry_if_exception(is_transient_error),
            before_sleep=_log_retry(candidate),
            sleep=sleep or asyncio.sleep,
            reraise=True,
        )
        try:
            async for try_ in retrying:
                with try_:
                    result = await attempt(candidate)
        except Exception as exc:
            last_error = exc
            logger.warning(
                "fallback.candidate_failed",
                model=candidate.model,
                provider=candidate.provider,
                error_type=type(exc).__name__,
                error=str(exc),
            )
            continue
        logger.info("fallback.success", model=candidate.model, provider=candidate.provider)
        return result

    raise AllCandidatesFailedError(last_error) from last_error
