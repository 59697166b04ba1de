"""Connectivity Prober — one real request at startup to confirm the provider works.

    START   -> mock mode          -> MOCK_ENABLED  (True, no network call)
    START   -> no credential      -> DISABLED      (False)
    START   -> credential present -> PROBING
    PROBING -> success            -> CONNECTED     (True)
    PROBING -> failure            -> DEGRADED      (False)

A failed probe is logged and never raised; the process keeps starting and
requests fall back to the mock responder.
"""

from __future__ import annotations

import logging

from app.core.config import Settings
from app.gateway.client import LlmClient
from app.gateway.credentials import check_key_format
from app.gateway.errors import UpstreamError
from app.gateway.retry import with_retry
from app.gateway.types import ConnectivityState, RetryPolicy

logger = logging.getLogger(__name__)

PROBE_POLICY = RetryPolicy(max_retries=2, base_delay_ms=2000)
PROBE_MESSAGE = "Test connection"
PROBE_MAX_TOKENS = 5


async def probe_connectivity_state(client: LlmClient, settings: Settings) -> ConnectivityState:
    """Run the probe and return the state it ended in."""
    logger.info("Verifying LLM API connectivity...")

    if settings.mock_openai:
        logger.warning("MOCK_OPENAI is enabled; chat requests will get local mock responses")
        return ConnectivityState.MOCK_ENABLED

    credential = client.credential
    if not credential.is_set:
        logger.warning("No LLM API key configured; chat falls back to mock responses")
        return ConnectivityState.DISABLED

    if not check_key_format(credential.raw_key):
        if settings.llm_strict_key_format:
            logger.warning("API key format is invalid and LLM_STRICT_KEY_FORMAT is set; LLM calls disabled")
            return ConnectivityState.DISABLED
        logger.warning("Trying the unrecognised API key anyway")

    model = client.profile.default_model
    logger.info("Probing %s with model %s", client.provider.value, model)

    try:
        result = await with_retry(
            lambda: client.chat_completion(
                [{"role": "user", "content": PROBE_MESSAGE}],
                model=model,
                max_tokens=PROBE_MAX_TOKENS,
            ),
            PROBE_POLICY,
        )
    except Exception as e:
        logger.error("LLM API connectivity test failed: %s", e)
        if isinstance(e, UpstreamError) and e.status_code is not None:
            logger.error("API error details: status=%s, body=%s", e.status_code, e.body)
        logger.warning("Startup continues; chat requests will use mock responses")
        return ConnectivityState.DEGRADED

    logger.info('LLM API connected. Response: "%s"', result.content)
    return ConnectivityState.CONNECTED


async def probe_connectivity(client: LlmClient, settings: Settings) -> bool:
    """True when chat requests can be served (real upstream or explicit mock mode)."""
    state = await probe_connectivity_state(client, settings)
    return state in (ConnectivityState.MOCK_ENABLED, ConnectivityState.CONNECTED)
