"""Domain values for the streaming proxy.

Pure value objects with no framework dependencies or I/O. Every value here
lives for the duration of a single proxied request.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class ContentKind(str, Enum):
    """Payload kind inferred from the upstream URL's file extension."""

    VIDEO_SEGMENT = "video_segment"
    MANIFEST = "manifest"
    IMAGE = "image"
    OTHER = "other"

    @property
    def is_binary(self) -> bool:
        """Segments and images are relayed as bytes; everything else as text."""
        return self in (ContentKind.VIDEO_SEGMENT, ContentKind.IMAGE)


@dataclass(frozen=True)
class ProxyRequest:
    """A validated inbound proxy request."""

    upstream_url: str  # absolute http(s) URL
    range_header: str | None = None  # forwarded verbatim


@dataclass(frozen=True)
class UpstreamResponse:
    """Raw result of the single upstream GET."""

    status_code: int
    content_type: str | None
    content_range: str | None
    body: bytes | str  # bytes on the binary path, str on the text path

    @property
    def is_binary(self) -> bool:
        return isinstance(self.body, bytes)


@dataclass(frozen=True)
class RewriteContext:
    """Inputs needed to rewrite one manifest body."""

    base_url: str  # upstream manifest URL, never the proxy's own URL
    proxy_path: str  # e.g. "/api/hls-proxy"


@dataclass(frozen=True)
class ProxyResult:
    """Output of the proxy use case, consumed by the response presenter.

    ``kind`` is the extension kind refined by the upstream-declared type; it
    selects the response shape.
    """

    kind: ContentKind
    upstream: UpstreamResponse
    content_type: str
    body: bytes | str

    @property
    def is_binary(self) -> bool:
        return self.kind.is_binary


class ProxyError(Exception):
    """Base error for the streaming proxy. Carries the HTTP status to return."""

    status_code: int = 500

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class InvalidUrl(ProxyError):
    status_code = 400


class DomainNotAllowed(ProxyError):
    status_code = 403


class UpstreamError(ProxyError):
    """Upstream answered with a non-2xx status; surfaced with that status."""

    def __init__(self, status_code: int) -> None:
        super().__init__(
            f"Upstream server error: {status_code}", status_code=status_code
        )


class TransportFailure(ProxyError):
    """Network-level failure (DNS, connect, read, timeout)."""

    status_code = 500
