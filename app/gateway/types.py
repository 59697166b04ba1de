"""Core types and DTOs for the LLM gateway client."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


# ---------------------------------------------------------------------------
# Provider constants
# ---------------------------------------------------------------------------

OPENAI_BASE_URL = "https://api.openai.com/v1"
MOONSHOT_BASE_URL = "https://api.moonshot.cn/v1"

OPENAI_DEFAULT_MODEL = "gpt-3.5-turbo"
MOONSHOT_DEFAULT_MODEL = "moonshot-v1-8k"

# Moonshot keys are considerably longer than OpenAI ones
MOONSHOT_KEY_MIN_LENGTH = 40
LEGACY_MOONSHOT_PREFIX = "sk-ant-"
MOONSHOT_DOMAIN_MARKER = "moonshot"


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class ProviderName(str, Enum):
    """Supported upstream LLM providers."""

    OPENAI = "openai"
    MOONSHOT = "moonshot"


class CredentialSource(str, Enum):
    """Where the API key was read from."""

    PRIMARY_ENV_VAR = "MOONSHOT_API_KEY"
    FALLBACK_ENV_VAR = "OPENAI_API_KEY"
    UNSET = "unset"


class ConnectivityState(str, Enum):
    """Outcome of the startup connectivity probe."""

    NOT_PROBED = "not_probed"
    MOCK_ENABLED = "mock_enabled"
    DISABLED = "disabled"
    PROBING = "probing"
    CONNECTED = "connected"
    DEGRADED = "degraded"


# ---------------------------------------------------------------------------
# Credential & provider
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ProviderCredential:
    """API key resolved once per process."""

    raw_key: str = ""
    source: CredentialSource = CredentialSource.UNSET

    @property
    def is_set(self) -> bool:
        return self.source != CredentialSource.UNSET and bool(self.raw_key)


@dataclass(frozen=True)
class ProviderProfile:
    """Provider selected for a credential: where to send requests and with which model."""

    name: ProviderName
    base_url: str
    default_model: str
    matched_rule: str = ""  # decision-table row that selected the provider


@dataclass(frozen=True)
class RetryPolicy:
    """Application-level retry budget for a single call site."""

    max_retries: int = 3
    base_delay_ms: int = 1000

    def __post_init__(self) -> None:
        if self.max_retries < 0:
            raise ValueError("max_retries must be >= 0")
        if self.base_delay_ms <= 0:
            raise ValueError("base_delay_ms must be > 0")

    def delay_before(self, attempt: int) -> int:
        """Delay in ms before *attempt* (1-based). The first attempt is immediate."""
        if attempt <= 1:
            return 0
        return self.base_delay_ms * (attempt - 1)


# ---------------------------------------------------------------------------
# Completion envelope — same shape for upstream and mock results
# ---------------------------------------------------------------------------


@dataclass
class ChatMessage:
    role: str = "assistant"
    content: str = ""

    def to_dict(self) -> dict:
        return {"role": self.role, "content": self.content}


@dataclass
class CompletionChoice:
    index: int = 0
    message: ChatMessage = field(default_factory=ChatMessage)
    finish_reason: str | None = "stop"

    def to_dict(self) -> dict:
        return {
            "index": self.index,
            "message": self.message.to_dict(),
            "finish_reason": self.finish_reason,
        }


@dataclass
class CompletionUsage:
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0

    def to_dict(self) -> dict:
        return {
            "prompt_tokens": self.prompt_tokens,
            "completion_tokens": self.completion_tokens,
            "total_tokens": self.total_tokens,
        }


@dataclass
class CompletionResult:
    """Chat completion returned to callers, whichever path produced it."""

    id: str = ""
    object: str = "chat.completion"
    created: int = 0
    model: str = ""
    choices: list[CompletionChoice] = field(default_factory=list)
    usage: CompletionUsage = field(default_factory=CompletionUsage)

    @property
    def content(self) -> str:
        """Text of the first choice, or an empty string."""
        if not self.choices:
            return ""
        return self.choices[0].message.content

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CompletionResult:
        """Parse an upstream chat-completion body."""
        choices = []
        for i, raw in enumerate(data.get("choices") or []):
            message = raw.get("message") or {}
            choices.append(
                CompletionChoice(
                    index=raw.get("index", i),
                    message=ChatMessage(
                        role=message.get("role", "assistant"),
                        content=message.get("content") or "",
                    ),
                    finish_reason=raw.get("finish_reason"),
                )
            )

        usage = data.get("usage") or {}
        prompt_tokens = usage.get("prompt_tokens", 0)
        completion_tokens = usage.get("completion_tokens", 0)

        return cls(
            id=data.get("id", ""),
            object=data.get("object", "chat.completion"),
            created=data.get("created", 0),
            model=data.get("model", ""),
            choices=choices,
            usage=CompletionUsage(
                prompt_tokens=prompt_tokens,
                completion_tokens=completion_tokens,
                total_tokens=usage.get("total_tokens", prompt_tokens + completion_tokens),
            ),
        )

    def to_dict(self) -> dict:
        """Serialize to the wire shape of a chat completion."""
        return {
            "id": self.id,
            "object": self.object,
            "created": self.created,
            "model": self.model,
            "choices": [c.to_dict() for c in self.choices],
            "usage": self.usage.to_dict(),
        }
