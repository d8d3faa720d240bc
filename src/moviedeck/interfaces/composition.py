"""Composition root: dependency injection via FastAPI lifespan."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator, cast

import structlog
from fastapi import FastAPI

from moviedeck.application.use_cases.hls_proxy import HlsProxyUseCase
from moviedeck.infrastructure.hls.classifier import (
    classify_url,
    is_hls_playlist,
    refine_kind,
    response_content_type,
)
from moviedeck.infrastructure.hls.fetcher import (
    HttpxUpstreamFetcher,
    create_upstream_client,
)
from moviedeck.infrastructure.hls.rewriter import rewrite_manifest
from moviedeck.infrastructure.hls.url_validator import validate_upstream_url
from moviedeck.interfaces.api.hls.router import PROXY_ROUTE
from moviedeck.interfaces.app_state import AppState

log = structlog.get_logger(__name__)

API_PREFIX = "/api"


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Lifespan Hook: initialize and clean up all resources (DI Composition Root).

    Order matters:
        1. HTTP client (shared upstream connection pool)
        2. Upstream fetcher (uses HTTP client)
        3. Proxy use case (uses fetcher + HLS helpers)
    """
    state = cast(AppState, app.state)
    config = state.config

    # 1) HTTP client. No retry transport: the proxy never retries.
    state.http_client = create_upstream_client(
        user_agent=config.http_user_agent,
        timeout=config.http_timeout_seconds,
        follow_redirects=config.http_follow_redirects,
    )
    log.info(
        "http_client_initialized",
        timeout_seconds=config.http_timeout_seconds,
        follow_redirects=config.http_follow_redirects,
    )

    # 2) Upstream fetcher
    fetcher = HttpxUpstreamFetcher(http_client=state.http_client)

    # 3) Proxy use case
    state.hls_proxy_uc = HlsProxyUseCase(
        fetcher=fetcher,
        validate_fn=validate_upstream_url,
        classify_fn=classify_url,
        refine_kind_fn=refine_kind,
        content_type_fn=response_content_type,
        is_playlist_fn=is_hls_playlist,
        rewrite_fn=rewrite_manifest,
        proxy_path=f"{API_PREFIX}{PROXY_ROUTE}",
        allowed_domains=config.hls_proxy.allowed_domains,
    )
    log.info(
        "hls_proxy_initialized",
        proxy_path=state.hls_proxy_uc.proxy_path,
        allowed_domains=config.hls_proxy.allowed_domains or "*",
    )

    state.graceful_shutdown.mark_ready()
    log.info("app_startup_complete")

    try:
        yield
    finally:
        await state.graceful_shutdown.wait_for_drain(timeout=10.0)

        await state.http_client.aclose()
        log.info("http_client_closed")

        log.info("app_shutdown_complete")
