"""Mock Responder — local stand-in for the upstream when it is disabled or down."""

from __future__ import annotations

import time
from datetime import datetime, timezone

from app.gateway.types import ChatMessage, CompletionChoice, CompletionResult, CompletionUsage

MOCK_MODEL = "gpt-3.5-turbo-mock"
MOCK_COMPLETION_TOKENS = 50  # fixed, not a real tokenizer count
ECHO_LIMIT = 100


def mock_completion(message: str) -> CompletionResult:
    """Build a chat completion that echoes *message*.

    Token usage is approximate: prompt tokens are the character count of the
    input.
    """
    now = time.time()
    timestamp = datetime.fromtimestamp(now, timezone.utc).isoformat()
    echo = message[:ECHO_LIMIT] + ("..." if len(message) > ECHO_LIMIT else "")

    content = (
        f"[Mock response {timestamp}] I am a mock AI assistant. The LLM API is currently "
        f'unavailable, so this reply was generated locally. Your message was: "{echo}"'
    )

    return CompletionResult(
        id=f"mock-{int(now * 1000)}",
        created=int(now),
        model=MOCK_MODEL,
        choices=[
            CompletionChoice(
                index=0,
                message=ChatMessage(role="assistant", content=content),
                finish_reason="stop",
            )
        ],
        usage=CompletionUsage(
            prompt_tokens=len(message),
            completion_tokens=MOCK_COMPLETION_TOKENS,
            total_tokens=len(message) + MOCK_COMPLETION_TOKENS,
        ),
    )
