"""FastAPI application factory (create_app)."""

from __future__ import annotations

import time
from collections.abc import Awaitable, Callable

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.responses import Response

from moviedeck.infrastructure.config import AppConfig
from moviedeck.infrastructure.graceful_shutdown import GracefulShutdown
from moviedeck.interfaces.api.hls.router import router as hls_router
from moviedeck.interfaces.app_state import AppState
from moviedeck.interfaces.composition import API_PREFIX, lifespan

log = structlog.get_logger(__name__)


def create_app(config: AppConfig) -> FastAPI:
    """Create FastAPI app: configuration ONLY, NO resource initialization.

    Resources (HTTP client, proxy use case) are created in lifespan().
    """
    app = FastAPI(
        title="MovieDeck",
        description="Streaming manifest and segment proxy for the MovieDeck player",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.state = AppState()
    app.state.config = config
    app.state.graceful_shutdown = GracefulShutdown()

    app.include_router(hls_router, prefix=API_PREFIX)

    @app.get(f"{API_PREFIX}/healthz")
    async def healthz() -> dict[str, str]:
        """Liveness check: returns 200 as long as the process is running."""
        return {"status": "ok"}

    @app.get(f"{API_PREFIX}/readyz")
    async def readyz() -> Response:
        """Readiness check: 200 after startup complete, 503 otherwise."""
        gs: GracefulShutdown = app.state.graceful_shutdown
        if gs.is_ready:
            return JSONResponse({"status": "ready"}, status_code=200)
        return JSONResponse({"status": "not_ready"}, status_code=503)

    @app.middleware("http")
    async def log_requests(
        request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        gs: GracefulShutdown = app.state.graceful_shutdown
        start = time.perf_counter()
        status_code = 500
        try:
            with gs.track():
                response = await call_next(request)
            status_code = response.status_code
            return response
        finally:
            duration_ms = (time.perf_counter() - start) * 1000.0
            log.info(
                "http_request",
                method=request.method,
                path=request.url.path,
                status_code=status_code,
                duration_ms=round(duration_ms, 2),
                client_host=(request.client.host if request.client else None),
                ranged="range" in request.headers,
            )

    return app
