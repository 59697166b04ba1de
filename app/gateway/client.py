"""Client Factory — builds the process-wide HTTP client for the LLM provider.

Provider selection is an ordered decision table. A credential is routed to
Moonshot when ANY row matches, checked in this order:

  1. the key came from MOONSHOT_API_KEY
  2. the key is longer than 40 characters
  3. the key starts with the legacy ``sk-ant-`` prefix
  4. the base URL override points at a moonshot domain

Otherwise the credential is treated as an OpenAI key. Downstream model
selection depends on this exact precedence.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

import httpx

from app.core.config import Settings
from app.gateway.errors import CredentialMissingError, UpstreamNetworkError, error_for_status
from app.gateway.types import (
    LEGACY_MOONSHOT_PREFIX,
    MOONSHOT_BASE_URL,
    MOONSHOT_DEFAULT_MODEL,
    MOONSHOT_DOMAIN_MARKER,
    MOONSHOT_KEY_MIN_LENGTH,
    OPENAI_BASE_URL,
    OPENAI_DEFAULT_MODEL,
    CompletionResult,
    CredentialSource,
    ProviderCredential,
    ProviderName,
    ProviderProfile,
)

logger = logging.getLogger(__name__)

USER_AGENT = f"kb-chat-backend/1.0 python-httpx/{httpx.__version__}"

_MOONSHOT_RULES: tuple[tuple[str, Callable[[ProviderCredential, str], bool]], ...] = (
    ("moonshot_env_var", lambda cred, url: cred.source == CredentialSource.PRIMARY_ENV_VAR),
    ("long_key", lambda cred, url: len(cred.raw_key) > MOONSHOT_KEY_MIN_LENGTH),
    ("legacy_prefix", lambda cred, url: cred.raw_key.startswith(LEGACY_MOONSHOT_PREFIX)),
    ("moonshot_base_url", lambda cred, url: MOONSHOT_DOMAIN_MARKER in url),
)


@dataclass(frozen=True)
class TransportSettings:
    """Connection policy for the upstream HTTP transport."""

    timeout_seconds: float = 60.0
    max_retries: int = 5  # connection retries inside the transport, not application retries
    keep_alive: bool = True
    verify_ssl: bool = True


def infer_provider(
    credential: ProviderCredential,
    settings: Settings,
    override_base_url: str | None = None,
) -> ProviderProfile:
    """Classify *credential* as Moonshot or OpenAI and pick its base URL and model."""
    url = override_base_url if override_base_url is not None else settings.openai_base_url
    url = url or ""

    for rule, matches in _MOONSHOT_RULES:
        if matches(credential, url):
            return ProviderProfile(
                name=ProviderName.MOONSHOT,
                base_url=MOONSHOT_BASE_URL,
                default_model=settings.moonshot_model or MOONSHOT_DEFAULT_MODEL,
                matched_rule=rule,
            )

    return ProviderProfile(
        name=ProviderName.OPENAI,
        base_url=OPENAI_BASE_URL,
        default_model=settings.openai_model or OPENAI_DEFAULT_MODEL,
        matched_rule="default",
    )


class LlmClient:
    """Handle on the upstream chat-completions API.

    Built once at startup and shared read-only by every request handler.
    Construction never fails; using a client without a credential does.
    """

    def __init__(
        self,
        credential: ProviderCredential,
        profile: ProviderProfile,
        base_url: str,
        transport_settings: TransportSettings,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._credential = credential
        self._profile = profile
        self._base_url = base_url.rstrip("/")
        self._transport_settings = transport_settings

        headers = {"User-Agent": USER_AGENT, "Content-Type": "application/json"}
        if credential.is_set:
            headers["Authorization"] = f"Bearer {credential.raw_key}"

        if transport is None:
            transport = httpx.AsyncHTTPTransport(
                verify=transport_settings.verify_ssl,
                retries=transport_settings.max_retries,
                limits=httpx.Limits(
                    max_connections=100,
                    max_keepalive_connections=20 if transport_settings.keep_alive else 0,
                ),
            )

        self._http = httpx.AsyncClient(
            base_url=self._base_url,
            headers=headers,
            timeout=httpx.Timeout(transport_settings.timeout_seconds),
            transport=transport,
        )

    @property
    def credential(self) -> ProviderCredential:
        return self._credential

    @property
    def profile(self) -> ProviderProfile:
        return self._profile

    @property
    def provider(self) -> ProviderName:
        return self._profile.name

    @property
    def base_url(self) -> str:
        return self._base_url

    @property
    def transport_settings(self) -> TransportSettings:
        return self._transport_settings

    @property
    def is_closed(self) -> bool:
        return self._http.is_closed

    async def chat_completion(
        self,
        messages: list[dict[str, str]],
        model: str | None = None,
        max_tokens: int | None = None,
    ) -> CompletionResult:
        """Send a chat-completion request and return the parsed result.

        Raises CredentialMissingError before any I/O when no key is set, and
        one of the Upstream* errors for transport or HTTP failures.
        """
        if not self._credential.is_set:
            raise CredentialMissingError()

        payload: dict[str, Any] = {
            "model": model or self._profile.default_model,
            "messages": messages,
        }
        if max_tokens is not None:
            payload["max_tokens"] = max_tokens

        try:
            resp = await self._http.post("/chat/completions", json=payload)
        except httpx.TransportError as e:
            raise UpstreamNetworkError(f"{type(e).__name__}: {e}") from e

        if resp.status_code >= 400:
            try:
                body = resp.json()
                error_msg = body.get("error", {}).get("message", resp.text[:500])
            except Exception:
                body = resp.text[:500]
                error_msg = body
            logger.error(
                "%s API %d for model=%s: %s",
                self._profile.name.value,
                resp.status_code,
                payload["model"],
                error_msg,
            )
            raise error_for_status(resp.status_code, error_msg, body=body)

        return CompletionResult.from_dict(resp.json())

    async def aclose(self) -> None:
        await self._http.aclose()


def build_client(
    credential: ProviderCredential,
    settings: Settings,
    override_base_url: str | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> LlmClient:
    """Construct the LLM client.

    Base URL precedence: explicit override, then the inferred provider's URL.
    *transport* replaces the default pooled HTTPS transport (tests inject
    ``httpx.MockTransport`` here).
    """
    override = override_base_url if override_base_url is not None else settings.openai_base_url
    profile = infer_provider(credential, settings, override)
    base_url = override or profile.base_url

    transport_settings = TransportSettings(verify_ssl=not settings.llm_disable_ssl_verify)
    if not transport_settings.verify_ssl:
        logger.warning("TLS certificate verification is DISABLED for %s (LLM_DISABLE_SSL_VERIFY)", base_url)

    logger.info(
        "LLM client: provider=%s (rule=%s) base_url=%s model=%s",
        profile.name.value,
        profile.matched_rule,
        base_url,
        profile.default_model,
    )
    return LlmClient(credential, profile, base_url, transport_settings, transport=transport)
