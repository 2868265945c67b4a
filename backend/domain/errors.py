"""
Domain exceptions.

Typed exceptions for the food analysis flow. Every error carries the HTTP
status the API layer answers with, so routers never branch on type.
"""

from __future__ import annotations

from typing import Optional


# ═══════════════════════════════════════════════════════════
# BASE EXCEPTION
# ═══════════════════════════════════════════════════════════


class FoodAnalysisError(Exception):
    """
    Base exception for all food analysis errors.

    Attributes:
        message: Human readable message, returned to the caller as-is
        status_code: HTTP status used at the API boundary
    """

    status_code: int = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


# ═══════════════════════════════════════════════════════════
# REQUEST / CONFIGURATION EXCEPTIONS (never retried)
# ═══════════════════════════════════════════════════════════


class BadRequestError(FoodAnalysisError):
    """
    Required input missing or malformed.

    Example:
        >>> raise BadRequestError("dataURL is required")
    """

    status_code = 400


class PayloadTooLargeError(BadRequestError):
    """Image payload exceeds the configured maximum size."""

    status_code = 413


class NotConfiguredError(FoodAnalysisError):
    """
    No usable provider credentials.

    Raised when no model candidate can be built because every provider
    key is missing.

    Example:
        >>> raise NotConfiguredError("API keys not configured")
    """

    status_code = 500


# ═══════════════════════════════════════════════════════════
# EXTERNAL SERVICE EXCEPTIONS
# ═══════════════════════════════════════════════════════════


class UpstreamError(FoodAnalysisError):
    """
    Model provider call failed.

    Carries the provider's HTTP status as structured data when the
    provider answered; `upstream_status` is None for timeouts and
    connection failures.

    Example:
        >>> err = UpstreamError(
        ...     "503 Service Unavailable: overloaded",
        ...     upstream_status=503,
        ...     status_text="Service Unavailable",
        ...     body="overloaded",
        ... )
        >>> err.upstream_status
        503
    """

    status_code = 502

    def __init__(
        self,
        message: str,
        *,
        upstream_status: Optional[int] = None,
        status_text: str = "",
        body: str = "",
    ) -> None:
        super().__init__(message)
        self.upstream_status = upstream_status
        self.status_text = status_text
        self.body = body

    @classmethod
    def from_response(cls, status: int, status_text: str, body: str) -> "UpstreamError":
        """Build the error for a non-success HTTP response."""
        return cls(
            f"{status} {status_text}: {body}",
            upstream_status=status,
            status_text=status_text,
            body=body,
        )


# ═══════════════════════════════════════════════════════════
# PARSE EXCEPTIONS (cause fallthrough to the next candidate)
# ═══════════════════════════════════════════════════════════


class ParseError(FoodAnalysisError):
    """Model reply could not be turned into structured data."""

    status_code = 502


class NoJsonFoundError(ParseError):
    """No recoverable JSON object in the model reply."""


# ═══════════════════════════════════════════════════════════
# ORCHESTRATION EXCEPTIONS
# ═══════════════════════════════════════════════════════════


class AllCandidatesFailedError(FoodAnalysisError):
    """
    Every model candidate was exhausted without success.

    The message is the last underlying error's message; the error itself
    is kept on `last_error`.
    """

    status_code = 500
    DEFAULT_MESSAGE = "All model candidates failed"

    def __init__(self, last_error: Optional[BaseException] = None) -> None:
        message = str(last_error) if last_error is not None else ""
        super().__init__(message or self.DEFAULT_MESSAGE)
        self.last_error = last_error


__all__ = [
    "FoodAnalysisError",
    "BadRequestError",
    "PayloadTooLargeError",
    "NotConfiguredError",
    "UpstreamError",
    "ParseError",
    "NoJsonFoundError",
    "AllCandidatesFailedError",
]
