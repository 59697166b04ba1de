"""Pydantic models for the chat endpoints."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field


class ChatHistoryItem(BaseModel):
    role: Literal["system", "user", "assistant"]
    content: str


class ChatRequest(BaseModel):
    message: str = Field(..., min_length=1, max_length=32_000)
    history: list[ChatHistoryItem] = Field(default_factory=list)
    model: str | None = None
    max_tokens: int | None = Field(None, ge=1, le=32_768)

    def to_messages(self) -> list[dict[str, str]]:
        """History followed by the new user message, in wire format."""
        messages = [item.model_dump() for item in self.history]
        messages.append({"role": "user", "content": self.message})
        return messages


class ChatMessageOut(BaseModel):
    role: str
    content: str


class ChatChoiceOut(BaseModel):
    index: int
    message: ChatMessageOut
    finish_reason: str | None = None


class ChatUsageOut(BaseModel):
    prompt_tokens: int
    completion_tokens: int
    total_tokens: int


class ChatCompletionResponse(BaseModel):
    """Chat completion, identical for upstream and mock answers."""

    id: str
    object: str
    created: int
    model: str
    choices: list[ChatChoiceOut]
    usage: ChatUsageOut


class GatewayStatusResponse(BaseModel):
    provider: str
    base_url: str
    model: str
    credential_source: str
    state: str
    mock: bool
    verify_ssl: bool
