"""Port for fetching a resource from the upstream origin."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from moviedeck.domain.entities.proxy import ContentKind, ProxyRequest, UpstreamResponse


@runtime_checkable
class UpstreamFetcherPort(Protocol):
    """Issues exactly one GET against the upstream origin per call.

    Implementations never retry.
    """

    async def fetch(
        self, request: ProxyRequest, kind: ContentKind
    ) -> UpstreamResponse:
        """Fetch ``request.upstream_url``.

        Args:
            request: Validated proxy request (URL + optional Range header).
            kind: Extension-derived kind, used to pick the ``Accept`` header.

        Returns:
            The upstream status, selected headers and buffered body.

        Raises:
            UpstreamError: Upstream answered with a non-2xx status.
            TransportFailure: The request never completed (DNS, connect, timeout).
        """
        ...
