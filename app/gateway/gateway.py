"""LLM gateway — process-scoped owner of the upstream client.

Built once in the application lifespan:

    gateway = await LlmGateway.startup(settings)
    app.state.llm_gateway = gateway

and handed to request handlers through ``app.core.dependencies.get_llm_gateway``.
Nothing on it changes after startup; a restart builds a new one.
"""

from __future__ import annotations

import logging

import httpx

from app.core.config import Settings
from app.core.metrics import LLM_MOCK_RESPONSES
from app.gateway.client import LlmClient, build_client
from app.gateway.credentials import resolve_credential
from app.gateway.errors import CredentialMissingError, UpstreamExhaustedError
from app.gateway.mock import mock_completion
from app.gateway.probe import probe_connectivity_state
from app.gateway.retry import with_retry
from app.gateway.types import CompletionResult, ConnectivityState, ProviderCredential, RetryPolicy

logger = logging.getLogger(__name__)

CHAT_POLICY = RetryPolicy(max_retries=3, base_delay_ms=1000)

_MOCK_REASONS = {
    ConnectivityState.MOCK_ENABLED: "mock_mode",
    ConnectivityState.DISABLED: "disabled",
    ConnectivityState.DEGRADED: "degraded",
}


class LlmGateway:
    """Credential, client and connectivity state for one process."""

    def __init__(
        self,
        credential: ProviderCredential,
        client: LlmClient,
        state: ConnectivityState = ConnectivityState.NOT_PROBED,
    ):
        self._credential = credential
        self._client = client
        self._state = state

    @classmethod
    async def startup(
        cls,
        settings: Settings,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> LlmGateway:
        """Resolve the credential, build the client and probe the provider."""
        credential = resolve_credential(settings)
        client = build_client(credential, settings, transport=transport)
        state = await probe_connectivity_state(client, settings)
        logger.info("LLM gateway ready: state=%s", state.value)
        return cls(credential, client, state)

    @property
    def state(self) -> ConnectivityState:
        return self._state

    @property
    def use_mock(self) -> bool:
        return self._state in _MOCK_REASONS

    def get_client(self) -> LlmClient:
        """Return the shared client; raises CredentialMissingError if no key is set."""
        if not self._credential.is_set:
            raise CredentialMissingError()
        return self._client

    async def complete(
        self,
        messages: list[dict[str, str]],
        model: str | None = None,
        max_tokens: int | None = None,
    ) -> CompletionResult:
        """Answer a chat request from the upstream, or from the mock responder.

        Upstream failures that survive every retry fall back to the mock;
        non-retryable ones (bad request, auth) propagate to the caller.
        """
        last_user_message = next(
            (m.get("content", "") for m in reversed(messages) if m.get("role") == "user"),
            "",
        )

        if self.use_mock:
            LLM_MOCK_RESPONSES.labels(reason=_MOCK_REASONS[self._state]).inc()
            return mock_completion(last_user_message)

        client = self.get_client()
        try:
            return await with_retry(
                lambda: client.chat_completion(messages, model=model, max_tokens=max_tokens),
                CHAT_POLICY,
                wrap_exhausted=True,
            )
        except UpstreamExhaustedError as e:
            logger.warning("Upstream unavailable after %d attempts, serving mock response", e.attempts)
            LLM_MOCK_RESPONSES.labels(reason="exhausted").inc()
            return mock_completion(last_user_message)

    def status(self) -> dict:
        """Gateway status for the status endpoint. Never includes the key."""
        return {
            "provider": self._client.provider.value,
            "base_url": self._client.base_url,
            "model": self._client.profile.default_model,
            "credential_source": self._credential.source.value,
            "state": self._state.value,
            "mock": self.use_mock,
            "verify_ssl": self._client.transport_settings.verify_ssl,
        }

    async def aclose(self) -> None:
        await self._client.aclose()
