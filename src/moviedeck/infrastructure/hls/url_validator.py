"""Validation of the ``url`` query parameter before any network access."""

from __future__ import annotations

from collections.abc import Iterable
from urllib.parse import urlsplit

from moviedeck.domain.entities.proxy import DomainNotAllowed, InvalidUrl

_ALLOWED_SCHEMES = frozenset({"http", "https"})


def validate_upstream_url(
    raw: str | None, allowed_domains: Iterable[str] = ()
) -> str:
    """Return *raw* if it is an absolute http(s) URL on an allowed host.

    The allowlist matches by substring on the hostname, so ``"mux.dev"``
    permits ``test-streams.mux.dev``. An empty allowlist permits every host.

    >>> validate_upstream_url("https://cdn.example.com/a/index.m3u8")
    'https://cdn.example.com/a/index.m3u8'
    """
    if raw is None or not raw.strip():
        raise InvalidUrl("URL parameter is required")

    try:
        parts = urlsplit(raw)
        hostname = parts.hostname
        parts.port  # raises ValueError on a malformed port
    except ValueError as e:
        raise InvalidUrl("Invalid URL format") from e

    if parts.scheme.lower() not in _ALLOWED_SCHEMES or not hostname:
        raise InvalidUrl("Invalid URL format")

    domains = [d.strip().lower() for d in allowed_domains if d.strip()]
    if domains and not any(d in hostname for d in domains):
        raise DomainNotAllowed("Domain not allowed")

    return raw
