import jwt
from fastapi import Cookie, Header, Request

from app.core.config import settings
from app.core.exceptions import ServiceUnavailableError, UnauthorizedError
from app.core.security import decode_token
from app.gateway.gateway import LlmGateway


async def get_current_user_id(
    token: str | None = Cookie(None, alias=settings.auth_cookie_name),
    authorization: str | None = Header(None, description="Bearer <token>"),
) -> str:
    """Authenticate from the auth cookie, falling back to a Bearer header."""
    raw = token
    if not raw and authorization:
        if not authorization.startswith("Bearer "):
            raise UnauthorizedError("Invalid authorization header")
        raw = authorization[7:]
    if not raw:
        raise UnauthorizedError("Not authenticated")

    try:
        payload = decode_token(raw)
    except jwt.PyJWTError:
        raise UnauthorizedError("Invalid or expired token")

    if payload.get("type") != "access":
        raise UnauthorizedError("Invalid token type")

    user_id = payload.get("sub")
    if not user_id:
        raise UnauthorizedError("Invalid token payload")

    return str(user_id)


def get_llm_gateway(request: Request) -> LlmGateway:
    """The gateway built during startup."""
    gateway = getattr(request.app.state, "llm_gateway", None)
    if gateway is None:
        raise ServiceUnavailableError("LLM gateway is not initialised")
    return gateway
