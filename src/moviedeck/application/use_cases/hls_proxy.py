"""Streaming proxy use case.

raw ``url`` parameter -> validate -> classify -> fetch upstream
-> (text playlists only) rewrite -> ProxyResult.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from typing import Protocol

import structlog

from moviedeck.domain.entities.proxy import (
    ContentKind,
    ProxyRequest,
    ProxyResult,
    RewriteContext,
)
from moviedeck.domain.ports.upstream import UpstreamFetcherPort

log = structlog.get_logger(__name__)

# ---------------------------------------------------------------------------
# Protocols: what this use case needs from the HLS helpers.
# The infrastructure functions satisfy these structurally.
# ---------------------------------------------------------------------------


class _ValidateFn(Protocol):
    def __call__(self, raw: str | None, allowed_domains: Iterable[str] = ...) -> str: ...


class _RewriteFn(Protocol):
    def __call__(self, content: str, context: RewriteContext) -> str: ...


class HlsProxyUseCase:
    def __init__(
        self,
        *,
        fetcher: UpstreamFetcherPort,
        validate_fn: _ValidateFn,
        classify_fn: Callable[[str], ContentKind],
        refine_kind_fn: Callable[[ContentKind, str | None], ContentKind],
        content_type_fn: Callable[[str, ContentKind, str | None], str],
        is_playlist_fn: Callable[[str, str | None, str], bool],
        rewrite_fn: _RewriteFn,
        proxy_path: str,
        allowed_domains: Iterable[str] = (),
    ) -> None:
        self._fetcher = fetcher
        self._validate = validate_fn
        self._classify = classify_fn
        self._refine_kind = refine_kind_fn
        self._content_type = content_type_fn
        self._is_playlist = is_playlist_fn
        self._rewrite = rewrite_fn
        self._proxy_path = proxy_path
        self._allowed_domains = tuple(allowed_domains)

    @property
    def proxy_path(self) -> str:
        return self._proxy_path

    async def execute(
        self, raw_url: str | None, range_header: str | None = None
    ) -> ProxyResult:
        """Proxy one request.

        Raises:
            InvalidUrl: ``raw_url`` missing or not an absolute http(s) URL.
            DomainNotAllowed: Host not in a non-empty allowlist.
            UpstreamError: Upstream answered non-2xx.
            TransportFailure: Upstream unreachable or timed out.
        """
        url = self._validate(raw_url, self._allowed_domains)
        request = ProxyRequest(upstream_url=url, range_header=range_header or None)
        kind = self._classify(url)

        upstream = await self._fetcher.fetch(request, kind)
        content_type = self._content_type(url, kind, upstream.content_type)
        # The fetcher chose bytes or text from the same refinement.
        served_kind = self._refine_kind(kind, upstream.content_type)

        body = upstream.body
        rewritten = False
        if isinstance(body, str) and self._is_playlist(url, upstream.content_type, body):
            body = self._rewrite(
                body, RewriteContext(base_url=url, proxy_path=self._proxy_path)
            )
            rewritten = True

        log.debug(
            "hls_proxy_prepared",
            kind=served_kind.value,
            binary=isinstance(body, bytes),
            rewritten=rewritten,
        )
        return ProxyResult(
            kind=served_kind,
            upstream=upstream,
            content_type=content_type,
            body=body,
        )
