from .proxy import (
    ContentKind,
    DomainNotAllowed,
    InvalidUrl,
    ProxyError,
    ProxyRequest,
    ProxyResult,
    RewriteContext,
    TransportFailure,
    UpstreamError,
    UpstreamResponse,
)

__all__ = [
    "ContentKind",
    "DomainNotAllowed",
    "InvalidUrl",
    "ProxyError",
    "ProxyRequest",
    "ProxyResult",
    "RewriteContext",
    "TransportFailure",
    "UpstreamError",
    "UpstreamResponse",
]
