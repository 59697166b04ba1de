"""Retry Executor — bounded application-level retries for upstream calls.

Backoff is linear in the attempt number:
  delay before attempt n (n >= 2) = base_delay_ms * (n - 1)

No jitter and no state shared between calls: every call gets its own budget
of ``max_retries + 1`` attempts. Waits use ``asyncio.sleep`` so other
in-flight requests keep running during a backoff window.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

import httpx

from app.core.metrics import LLM_UPSTREAM_RETRIES
from app.gateway.errors import UpstreamExhaustedError, UpstreamNetworkError
from app.gateway.types import RetryPolicy

logger = logging.getLogger(__name__)

T = TypeVar("T")

_NETWORK_ERRORS = (UpstreamNetworkError, httpx.TransportError, ConnectionError, TimeoutError)


def _status_of(exc: BaseException) -> int | None:
    if isinstance(exc, httpx.HTTPStatusError):
        return exc.response.status_code
    status = getattr(exc, "status_code", None)
    return status if isinstance(status, int) else None


def retry_reason(exc: BaseException) -> str | None:
    """Return why *exc* is worth retrying, or None if it is fatal."""
    status = _status_of(exc)
    if status is not None:
        if status == 429:
            return "rate_limited"
        if 500 <= status < 600:
            return "server_error"
        return None
    if isinstance(exc, _NETWORK_ERRORS):
        return "network_error"
    return None


async def with_retry(
    operation: Callable[[], Awaitable[T]],
    policy: RetryPolicy,
    *,
    wrap_exhausted: bool = False,
) -> T:
    """Run *operation* until it succeeds or the retry budget runs out.

    Fatal errors propagate on the attempt that raised them. When every
    attempt fails the last error is re-raised unchanged, or wrapped in
    UpstreamExhaustedError if *wrap_exhausted* is set.
    """
    total_attempts = policy.max_retries + 1
    schedule: list[int] = []

    for attempt in range(1, total_attempts + 1):
        try:
            return await operation()
        except Exception as e:
            reason = retry_reason(e)
            if reason is None:
                raise

            if attempt >= total_attempts:
                logger.error(
                    "Upstream call failed after %d attempts (delays ms: %s): %s",
                    attempt,
                    schedule or "none",
                    e,
                )
                if wrap_exhausted:
                    raise UpstreamExhaustedError(e, attempts=attempt) from e
                raise

            delay_ms = policy.delay_before(attempt + 1)
            schedule.append(delay_ms)
            LLM_UPSTREAM_RETRIES.labels(reason=reason).inc()
            logger.warning(
                "Upstream call failed (%s), retry %d/%d in %dms: %s",
                reason,
                attempt,
                policy.max_retries,
                delay_ms,
                e,
            )
            await asyncio.sleep(delay_ms / 1000)

    raise AssertionError("unreachable")  # pragma: no cover
