from .classifier import (
    accept_header,
    classify_url,
    default_content_type,
    is_binary_payload,
    is_hls_playlist,
    refine_kind,
    response_content_type,
)
from .fetcher import HttpxUpstreamFetcher, create_upstream_client
from .rewriter import proxy_url_for, rewrite_manifest
from .url_validator import validate_upstream_url

__all__ = [
    "HttpxUpstreamFetcher",
    "accept_header",
    "classify_url",
    "create_upstream_client",
    "default_content_type",
    "is_binary_payload",
    "is_hls_playlist",
    "proxy_url_for",
    "refine_kind",
    "response_content_type",
    "rewrite_manifest",
    "validate_upstream_url",
]
