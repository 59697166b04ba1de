"""Credential Resolver — picks the provider API key and checks its shape."""

from __future__ import annotations

import logging

from app.core.config import Settings
from app.gateway.types import (
    LEGACY_MOONSHOT_PREFIX,
    MOONSHOT_KEY_MIN_LENGTH,
    CredentialSource,
    ProviderCredential,
)

logger = logging.getLogger(__name__)


def resolve_credential(settings: Settings) -> ProviderCredential:
    """Return the API key to use, checking MOONSHOT_API_KEY before OPENAI_API_KEY.

    Empty and whitespace-only values count as unset. Never raises: when no key
    is configured the credential comes back with ``source=UNSET``.
    """
    candidates = (
        (CredentialSource.PRIMARY_ENV_VAR, settings.moonshot_api_key),
        (CredentialSource.FALLBACK_ENV_VAR, settings.openai_api_key),
    )
    for source, value in candidates:
        key = (value or "").strip()
        if key:
            logger.info("Using API key from %s", source.value)
            return ProviderCredential(raw_key=key, source=source)

    logger.warning("Neither MOONSHOT_API_KEY nor OPENAI_API_KEY is set; LLM calls will be unavailable")
    return ProviderCredential()


def mask_key(key: str) -> str:
    """Render a key for logs without exposing it."""
    if len(key) > 12:
        return f"{key[:4]}...{key[-4:]}"
    return "********"


def check_key_format(key: str) -> bool:
    """Check that *key* looks like a known provider key.

    Returns False for an empty key or one that matches no known family; the
    latter only logs a warning, callers decide whether to use it anyway.
    """
    if not key:
        logger.error("No API key configured")
        return False

    if len(key) > MOONSHOT_KEY_MIN_LENGTH:
        logger.info("Detected long-form Moonshot key: %s", mask_key(key))
        return True

    if key.startswith("sk-"):
        if key.startswith("sk-org-"):
            logger.info("Detected OpenAI organisation key")
        elif key.startswith("sk-proj-"):
            logger.info("Detected OpenAI project key")
        elif key.startswith(LEGACY_MOONSHOT_PREFIX):
            logger.info("Detected legacy Moonshot-format key")
        else:
            logger.info("Detected standard key format: %s", mask_key(key))
        return True

    logger.warning("API key format not recognised, expected an 'sk-' prefix: %s", mask_key(key))
    return False
