"""Error kinds raised by the LLM gateway client."""

from __future__ import annotations

from typing import Any


class GatewayError(Exception):
    """Base class for gateway errors."""


class CredentialMissingError(GatewayError):
    """No API key could be resolved but a real upstream call was requested."""

    def __init__(self, message: str = "MOONSHOT_API_KEY or OPENAI_API_KEY must be set to call the LLM API"):
        super().__init__(message)


class UpstreamError(GatewayError):
    """The upstream provider call failed."""

    retryable = False

    def __init__(self, message: str, status_code: int | None = None, body: Any = None):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class UpstreamRateLimitedError(UpstreamError):
    """HTTP 429 from the provider."""

    retryable = True


class UpstreamServerError(UpstreamError):
    """HTTP 5xx from the provider."""

    retryable = True


class UpstreamNetworkError(UpstreamError):
    """Connection-level failure: reset, refused, timeout. Carries no status."""

    retryable = True


class UpstreamClientError(UpstreamError):
    """Any other 4xx. Never retried."""


class UpstreamExhaustedError(UpstreamError):
    """All retry attempts failed; wraps the last underlying error."""

    def __init__(self, last_error: BaseException, attempts: int):
        super().__init__(
            f"Upstream call failed after {attempts} attempts: {last_error}",
            status_code=getattr(last_error, "status_code", None),
            body=getattr(last_error, "body", None),
        )
        self.last_error = last_error
        self.attempts = attempts


def error_for_status(status_code: int, message: str, body: Any = None) -> UpstreamError:
    """Map an upstream HTTP status to its error kind."""
    if status_code == 429:
        return UpstreamRateLimitedError(message, status_code=status_code, body=body)
    if 500 <= status_code < 600:
        return UpstreamServerError(message, status_code=status_code, body=body)
    return UpstreamClientError(message, status_code=status_code, body=body)
