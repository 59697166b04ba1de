"""HTTP errors raised by route handlers and the mapping of gateway errors to responses."""

import logging

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.responses import JSONResponse

from app.gateway.errors import CredentialMissingError, UpstreamClientError, UpstreamError

logger = logging.getLogger(__name__)


class UnauthorizedError(HTTPException):
    def __init__(self, detail: str = "Not authenticated"):
        super().__init__(status_code=status.HTTP_401_UNAUTHORIZED, detail=detail)


class ServiceUnavailableError(HTTPException):
    def __init__(self, detail: str = "Service unavailable"):
        super().__init__(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=detail)


async def _credential_missing_handler(request: Request, exc: CredentialMissingError) -> JSONResponse:
    logger.error("LLM credential missing on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=503, content={"detail": "LLM API key is not configured"})


async def _upstream_error_handler(request: Request, exc: UpstreamError) -> JSONResponse:
    # 4xx from the provider means our request or key is wrong, not the client's
    kind = "rejected the request" if isinstance(exc, UpstreamClientError) else "is unavailable"
    logger.error(
        "LLM upstream %s on %s %s: status=%s %s",
        kind,
        request.method,
        request.url.path,
        exc.status_code,
        exc,
    )
    return JSONResponse(
        status_code=502,
        content={"detail": f"LLM provider {kind}", "upstream_status": exc.status_code},
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(CredentialMissingError, _credential_missing_handler)
    app.add_exception_handler(UpstreamError, _upstream_error_handler)
