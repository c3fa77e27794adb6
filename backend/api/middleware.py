"""
API middleware stack.

RequestContextMiddleware gives every request an id, binds it into the
structlog context for the duration of the request (so board and standings
logs emitted while serving it carry the id), echoes it back as X-Request-ID
and writes one access line. Feed failures that escape a handler become 502s;
anything else becomes a 500.
"""
from __future__ import annotations

import time
import uuid

import structlog
from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from shared.config import get_settings
from shared.errors import LiveBoardError, TransportError
from shared.utils.logging import get_logger

logger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"
_UNLOGGED_PATHS = frozenset({"/health", "/ready", "/metrics"})


def _request_id(request: Request) -> str:
    return getattr(request.state, "request_id", None) or "unknown"


class RequestContextMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex[:16]
        request.state.request_id = request_id
        started = time.monotonic()

        with structlog.contextvars.bound_contextvars(request_id=request_id):
            response = await call_next(request)
            if request.url.path not in _UNLOGGED_PATHS:
                logger.info(
                    "http_request",
                    method=request.method,
                    path=request.url.path,
                    status=response.status_code,
                    duration_ms=round((time.monotonic() - started) * 1000, 2),
                )

        response.headers[REQUEST_ID_HEADER] = request_id
        return response


def setup_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(LiveBoardError)
    async def feed_error_handler(request: Request, exc: LiveBoardError) -> JSONResponse:
        upstream_status = exc.status_code if isinstance(exc, TransportError) else None
        logger.warning(
            "feed_error_response",
            path=request.url.path,
            error=str(exc),
            upstream_status=upstream_status,
            request_id=_request_id(request),
        )
        return JSONResponse(
            status_code=502,
            content={
                "error": "feed_unavailable",
                "message": str(exc),
                "request_id": _request_id(request),
            },
        )

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.error(
            "unhandled_exception",
            path=request.url.path,
            error=str(exc),
            request_id=_request_id(request),
            exc_info=True,
        )
        return JSONResponse(
            status_code=500,
            content={
                "error": "internal_server_error",
                "message": "An unexpected error occurred",
                "request_id": _request_id(request),
            },
        )


def setup_middleware(app: FastAPI) -> None:
    """Install CORS (read-only methods) and the request context middleware."""
    settings = get_settings()
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=False,
        allow_methods=["GET", "OPTIONS"],
        allow_headers=["*"],
        expose_headers=[REQUEST_ID_HEADER],
    )
    app.add_middleware(RequestContextMiddleware)
    setup_exception_handlers(app)
