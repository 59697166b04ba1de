import logging
import traceback
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from app.api.router import api_router
from app.core.config import settings, validate_settings_for_production
from app.core.exceptions import register_exception_handlers
from app.core.logging import setup_logging
from app.core.metrics import PrometheusMiddleware, metrics_response
from app.core.middleware import RequestLoggingMiddleware
from app.core.rate_limit import limiter
from app.core.sentry import init_sentry
from app.db.postgres import check_database, database_health, engine
from app.gateway.gateway import LlmGateway

# Configure logging before anything else
setup_logging()

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: database -> credential -> client -> probe, strictly in order
    validate_settings_for_production()
    init_sentry()
    logger.info("Starting knowledge-base chat backend...")

    try:
        await check_database()
    except Exception as e:
        logger.error("Database connection failed, shutting down: %s", e)
        raise SystemExit(1) from e
    logger.info("Connected to PostgreSQL")

    # A failed probe only degrades chat to mock responses
    app.state.llm_gateway = await LlmGateway.startup(settings)

    logger.info("Server ready on http://%s:%d (docs at /api-docs)", settings.app_host, settings.app_port)
    yield

    # Shutdown
    await app.state.llm_gateway.aclose()
    await engine.dispose()
    logger.info("Knowledge-base chat backend shut down")


app = FastAPI(
    title="Knowledge Base Chat",
    description="Knowledge-base chat backend with an OpenAI-compatible LLM gateway",
    version="1.0.0",
    lifespan=lifespan,
    docs_url="/api-docs" if settings.app_debug else None,
    openapi_url="/api-docs.json" if settings.app_debug else None,
    redoc_url=None,
)


@app.exception_handler(Exception)
async def _unhandled_exception_handler(request: Request, exc: Exception):
    tb = traceback.format_exception(type(exc), exc, exc.__traceback__)
    logger.error("Unhandled %s on %s %s:\n%s", type(exc).__name__, request.method, request.url.path, "".join(tb))
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


register_exception_handlers(app)

# Rate limiter
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(PrometheusMiddleware)

# CORS — parse allowed_origins from settings (comma-separated)
_origins = [o.strip() for o in settings.allowed_origins.split(",") if o.strip()]
app.add_middleware(
    CORSMiddleware,
    allow_origins=_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router)


@app.get("/health")
async def health(request: Request):
    gateway = getattr(request.app.state, "llm_gateway", None)
    return {
        "status": "ok",
        "database": await database_health(),
        "llm": gateway.state.value if gateway else "not_initialised",
    }


@app.get("/metrics", include_in_schema=False)
async def metrics():
    return metrics_response()
