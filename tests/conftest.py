"""Shared test fixtures for the MovieDeck test suite."""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from moviedeck.application.use_cases.hls_proxy import HlsProxyUseCase
from moviedeck.domain.entities.proxy import UpstreamResponse
from moviedeck.infrastructure.config import AppConfig, HlsProxyConfig
from moviedeck.infrastructure.hls.classifier import (
    classify_url,
    is_hls_playlist,
    refine_kind,
    response_content_type,
)
from moviedeck.infrastructure.hls.rewriter import rewrite_manifest
from moviedeck.infrastructure.hls.url_validator import validate_upstream_url

PROXY_PATH = "/api/hls-proxy"

# ---------------------------------------------------------------------------
# Config fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def app_config() -> AppConfig:
    """Test config: all hosts allowed, fast disconnect polling."""
    return AppConfig(
        environment="test",
        hls_proxy=HlsProxyConfig(disconnect_poll_seconds=0.05),
    )


# ---------------------------------------------------------------------------
# Use case fixtures
# ---------------------------------------------------------------------------


def make_upstream(
    body: bytes | str,
    *,
    status_code: int = 200,
    content_type: str | None = None,
    content_range: str | None = None,
) -> UpstreamResponse:
    return UpstreamResponse(
        status_code=status_code,
        content_type=content_type,
        content_range=content_range,
        body=body,
    )


@pytest.fixture()
def mock_fetcher() -> AsyncMock:
    """UpstreamFetcherPort mock returning an empty playlist by default."""
    fetcher = AsyncMock()
    fetcher.fetch.return_value = make_upstream(
        "#EXTM3U\n", content_type="application/vnd.apple.mpegurl"
    )
    return fetcher


def build_use_case(
    fetcher: AsyncMock, allowed_domains: tuple[str, ...] = ()
) -> HlsProxyUseCase:
    return HlsProxyUseCase(
        fetcher=fetcher,
        validate_fn=validate_upstream_url,
        classify_fn=classify_url,
        refine_kind_fn=refine_kind,
        content_type_fn=response_content_type,
        is_playlist_fn=is_hls_playlist,
        rewrite_fn=rewrite_manifest,
        proxy_path=PROXY_PATH,
        allowed_domains=allowed_domains,
    )


@pytest.fixture()
def upstream_factory():
    """Factory for UpstreamResponse values."""
    return make_upstream


@pytest.fixture()
def use_case_factory():
    """Factory for HlsProxyUseCase wired with the real HLS helpers."""
    return build_use_case
