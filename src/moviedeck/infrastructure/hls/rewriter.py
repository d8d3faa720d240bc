"""HLS manifest rewriting.

Every URI line of a playlist is replaced by a proxy URL carrying the
resolved absolute target, so the player fetches variant playlists, segments
and keys through the proxy as well. Tag and comment lines are left alone.
"""

from __future__ import annotations

import re
from urllib.parse import quote, urljoin

from moviedeck.domain.entities.proxy import RewriteContext

# Same unreserved set as JavaScript's encodeURIComponent.
_URI_COMPONENT_SAFE = "!~*'()"

_SCHEME_RE = re.compile(r"^[A-Za-z][A-Za-z0-9+.\-]*://")


def proxy_url_for(target: str, proxy_path: str) -> str:
    """Build the proxy URL that fetches *target*.

    >>> proxy_url_for("https://cdn.x/seg0.ts", "/api/hls-proxy")
    '/api/hls-proxy?url=https%3A%2F%2Fcdn.x%2Fseg0.ts'
    """
    return f"{proxy_path}?url={quote(target, safe=_URI_COMPONENT_SAFE)}"


def resolve_uri_line(line: str, base_url: str) -> str:
    """Resolve a playlist URI line to an absolute URL.

    Relative references (including query-only and root-relative ones) are
    resolved against the upstream manifest URL.
    """
    uri = line.strip()
    if _SCHEME_RE.match(uri):
        return uri
    return urljoin(base_url, uri)


def rewrite_manifest(content: str, context: RewriteContext) -> str:
    """Rewrite all URI lines in *content* to go through the proxy.

    Pure function of ``(content, context)``: line order and line separators
    are preserved, and a body without URI lines comes back unchanged.
    """
    lines: list[str] = []
    for line in content.split("\n"):
        eol = ""
        if line.endswith("\r"):
            line, eol = line[:-1], "\r"

        stripped = line.strip()
        if stripped and not stripped.startswith("#"):
            target = resolve_uri_line(stripped, context.base_url)
            line = proxy_url_for(target, context.proxy_path)

        lines.append(line + eol)
    return "\n".join(lines)
