"""Upstream fetcher backed by a shared ``httpx.AsyncClient``."""

from __future__ import annotations

import httpx
import structlog

from moviedeck.domain.entities.proxy import (
    ContentKind,
    ProxyRequest,
    TransportFailure,
    UpstreamError,
    UpstreamResponse,
)
from moviedeck.infrastructure.hls.classifier import accept_header, is_binary_payload

log = structlog.get_logger(__name__)


def create_upstream_client(
    *, user_agent: str, timeout: float, follow_redirects: bool
) -> httpx.AsyncClient:
    """Build the shared upstream client.

    Proxy identity, timeout and redirect policy live here and nowhere else;
    the fetcher only adds per-request headers.
    """
    return httpx.AsyncClient(
        headers={"User-Agent": user_agent},
        timeout=httpx.Timeout(timeout),
        follow_redirects=follow_redirects,
    )


class HttpxUpstreamFetcher:
    """Fetch one upstream resource per call, buffered, never retried.

    Args:
        http_client: Shared client (connection pool) owned by the app lifespan,
            usually built by :func:`create_upstream_client`.
    """

    def __init__(self, *, http_client: httpx.AsyncClient) -> None:
        self._client = http_client

    def build_headers(
        self, request: ProxyRequest, kind: ContentKind
    ) -> dict[str, str]:
        headers = {"Accept": accept_header(kind)}
        if request.range_header:
            headers["Range"] = request.range_header
        return headers

    async def fetch(
        self, request: ProxyRequest, kind: ContentKind
    ) -> UpstreamResponse:
        try:
            resp = await self._client.get(
                request.upstream_url, headers=self.build_headers(request, kind)
            )
        except httpx.RequestError as e:
            log.warning(
                "hls_proxy_transport_failure",
                url=request.upstream_url,
                error=type(e).__name__,
                detail=str(e),
            )
            raise TransportFailure("Failed to fetch from upstream server") from e

        if not resp.is_success:
            log.info(
                "hls_proxy_upstream_error",
                url=request.upstream_url,
                status_code=resp.status_code,
            )
            raise UpstreamError(resp.status_code)

        content_type = resp.headers.get("content-type")
        body: bytes | str
        if is_binary_payload(kind, content_type):
            body = resp.content
        else:
            body = resp.text

        log.debug(
            "hls_proxy_upstream_fetched",
            url=request.upstream_url,
            status_code=resp.status_code,
            content_type=content_type,
            binary=isinstance(body, bytes),
        )

        return UpstreamResponse(
            status_code=resp.status_code,
            content_type=content_type,
            content_range=resp.headers.get("content-range"),
            body=body,
        )
