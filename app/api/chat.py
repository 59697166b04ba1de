"""Chat API — thin handlers over the LLM gateway."""

from fastapi import APIRouter, Depends, Request

from app.core.config import settings
from app.core.dependencies import get_current_user_id, get_llm_gateway
from app.core.rate_limit import limiter
from app.gateway.gateway import LlmGateway
from app.schemas.chat import ChatCompletionResponse, ChatRequest, GatewayStatusResponse

router = APIRouter(prefix="/chat", tags=["chat"])


@router.post("", response_model=ChatCompletionResponse)
@limiter.limit(settings.chat_rate_limit)
async def chat(
    request: Request,
    body: ChatRequest,
    user_id: str = Depends(get_current_user_id),
    gateway: LlmGateway = Depends(get_llm_gateway),
):
    """Send a message (with optional history) and return the completion."""
    result = await gateway.complete(body.to_messages(), model=body.model, max_tokens=body.max_tokens)
    return result.to_dict()


@router.get("/status", response_model=GatewayStatusResponse)
async def chat_status(
    user_id: str = Depends(get_current_user_id),
    gateway: LlmGateway = Depends(get_llm_gateway),
):
    """Which provider is configured and whether chat is served by it or by the mock."""
    return gateway.status()
