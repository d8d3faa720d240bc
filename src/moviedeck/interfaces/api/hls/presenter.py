"""Response composition for the streaming proxy.

Binary payloads (segments, images) are passed through with range metadata
and a public cache directive. Text payloads (playlists) always carry
no-cache headers because live playlists change as the stream progresses.
"""

from __future__ import annotations

import re

from fastapi.responses import JSONResponse
from starlette.responses import Response

from moviedeck.domain.entities.proxy import ProxyError, ProxyResult

CORS_HEADERS: dict[str, str] = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, HEAD, OPTIONS",
    "Access-Control-Allow-Headers": "Range, Content-Type",
    "Access-Control-Expose-Headers": "Content-Length, Content-Range, Accept-Ranges",
}

NO_CACHE_HEADERS: dict[str, str] = {
    "Cache-Control": "no-cache, no-store, must-revalidate",
    "Pragma": "no-cache",
    "Expires": "0",
}

GENERIC_ERROR_MESSAGE = "Failed to fetch from upstream server"

_CHARSET_PARAM = re.compile(r";\s*charset=[^;]*", re.IGNORECASE)


def utf8_content_type(content_type: str) -> str:
    """Relabel a text Content-Type as UTF-8, the encoding the body is sent in.

    >>> utf8_content_type("application/vnd.apple.mpegurl; charset=ISO-8859-1")
    'application/vnd.apple.mpegurl; charset=utf-8'
    """
    if not _CHARSET_PARAM.search(content_type):
        return content_type
    return _CHARSET_PARAM.sub("; charset=utf-8", content_type, count=1)


def render_binary(result: ProxyResult, *, max_age: int) -> Response:
    """Pass a segment/image through with the upstream status (200 or 206)."""
    body = result.body if isinstance(result.body, bytes) else result.body.encode()
    headers = {
        **CORS_HEADERS,
        "Content-Type": result.content_type,
        # Length of the decoded body; equals upstream's unless it sent a
        # Content-Encoding that httpx removed.
        "Content-Length": str(len(body)),
        "Accept-Ranges": "bytes",
        "Cache-Control": f"public, max-age={max_age}",
    }
    if result.upstream.content_range:
        headers["Content-Range"] = result.upstream.content_range
    return Response(
        content=body, status_code=result.upstream.status_code, headers=headers
    )


def render_text(result: ProxyResult) -> Response:
    """Return a (possibly rewritten) playlist with status 200.

    Starlette encodes ``str`` bodies as UTF-8; the declared charset follows.
    """
    return Response(
        content=result.body,
        status_code=200,
        headers={
            **CORS_HEADERS,
            **NO_CACHE_HEADERS,
            "Content-Type": utf8_content_type(result.content_type),
        },
    )


def render_result(result: ProxyResult, *, max_age: int) -> Response:
    if result.kind.is_binary:
        return render_binary(result, max_age=max_age)
    return render_text(result)


def render_error(message: str, *, status_code: int) -> JSONResponse:
    return JSONResponse(
        content={"error": message}, status_code=status_code, headers=CORS_HEADERS
    )


def render_proxy_error(error: ProxyError) -> JSONResponse:
    return render_error(error.message, status_code=error.status_code)


def render_preflight() -> Response:
    return Response(status_code=200, headers=CORS_HEADERS)
