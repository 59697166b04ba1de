from collections.abc import AsyncGenerator, Callable
from datetime import datetime, timedelta, timezone

import httpx
import jwt
import pytest
from httpx import ASGITransport, AsyncClient

from app.core.config import Settings, settings

# Override settings for tests
settings.jwt_secret_key = "test-secret-key-that-is-at-least-32-bytes-long"
settings.app_env = "development"
settings.app_debug = True
settings.chat_rate_limit = "1000/minute"

from app.gateway.client import build_client  # noqa: E402
from app.gateway.credentials import resolve_credential  # noqa: E402
from app.gateway.gateway import LlmGateway  # noqa: E402
from app.gateway.types import ConnectivityState  # noqa: E402
from app.main import app  # noqa: E402
from tests.helpers import OPENAI_KEY, completion_body  # noqa: E402


@pytest.fixture
def make_settings() -> Callable[..., Settings]:
    """Settings isolated from the developer's environment and .env file."""

    def _make(**overrides) -> Settings:
        values = {
            "moonshot_api_key": "",
            "openai_api_key": "",
            "openai_base_url": "",
            "moonshot_model": "",
            "openai_model": "",
            "mock_openai": False,
            "llm_disable_ssl_verify": False,
            "llm_strict_key_format": False,
        }
        values.update(overrides)
        return Settings(_env_file=None, **values)

    return _make


@pytest.fixture
def make_gateway(make_settings) -> Callable[..., LlmGateway]:
    """Build a gateway with a fixed connectivity state and a mock transport."""

    def _make(
        state: ConnectivityState = ConnectivityState.CONNECTED,
        handler: Callable[[httpx.Request], httpx.Response] | None = None,
        **overrides,
    ) -> LlmGateway:
        overrides.setdefault("openai_api_key", OPENAI_KEY)
        s = make_settings(**overrides)
        credential = resolve_credential(s)
        transport = httpx.MockTransport(handler or (lambda request: httpx.Response(200, json=completion_body())))
        client = build_client(credential, s, transport=transport)
        return LlmGateway(credential, client, state)

    return _make


@pytest.fixture
def access_token() -> str:
    now = datetime.now(timezone.utc)
    payload = {"sub": "user-1", "type": "access", "iat": now, "exp": now + timedelta(minutes=5)}
    return jwt.encode(payload, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


@pytest.fixture
async def client() -> AsyncGenerator[AsyncClient, None]:
    # ASGITransport does not run the lifespan; tests install the gateway themselves
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
    if hasattr(app.state, "llm_gateway"):
        del app.state.llm_gateway
