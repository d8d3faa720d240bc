"""Streaming proxy endpoints (``/hls-proxy``)."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable
from contextlib import suppress
from typing import TypeVar, cast

import structlog
from fastapi import APIRouter, Request
from starlette.responses import Response

from moviedeck.domain.entities.proxy import ProxyError
from moviedeck.interfaces.api.hls.presenter import (
    GENERIC_ERROR_MESSAGE,
    render_error,
    render_preflight,
    render_proxy_error,
    render_result,
)
from moviedeck.interfaces.app_state import AppState

log = structlog.get_logger(__name__)

router = APIRouter(tags=["hls-proxy"])

PROXY_ROUTE = "/hls-proxy"

# nginx's "client closed request"; never seen by the (gone) client.
_CLIENT_CLOSED_STATUS = 499

T = TypeVar("T")


class ClientDisconnected(Exception):
    """The inbound client went away while the upstream fetch was running."""


async def run_until_disconnect(
    request: Request, work: Awaitable[T], *, poll_seconds: float
) -> T:
    """Await *work*, cancelling it if the inbound client disconnects."""
    task = asyncio.ensure_future(work)
    try:
        while True:
            done, _ = await asyncio.wait({task}, timeout=poll_seconds)
            if done:
                return task.result()
            if await request.is_disconnected():
                raise ClientDisconnected
    finally:
        if not task.done():
            task.cancel()
            with suppress(asyncio.CancelledError):
                await task


@router.api_route(PROXY_ROUTE, methods=["GET", "HEAD"])
async def hls_proxy(request: Request) -> Response:
    """Fetch ``url`` upstream and relay it, rewriting HLS playlists."""
    state = cast(AppState, request.app.state)
    settings = state.config.hls_proxy
    raw_url = request.query_params.get("url")
    range_header = request.headers.get("range")

    # Every event logged while serving this request carries url and ranged.
    with structlog.contextvars.bound_contextvars(
        url=raw_url, ranged=range_header is not None
    ):
        try:
            result = await run_until_disconnect(
                request,
                state.hls_proxy_uc.execute(raw_url, range_header),
                poll_seconds=settings.disconnect_poll_seconds,
            )
        except ProxyError as e:
            log.info(
                "hls_proxy_rejected", status_code=e.status_code, error=e.message
            )
            return render_proxy_error(e)
        except ClientDisconnected:
            log.info("hls_proxy_client_disconnected")
            return Response(status_code=_CLIENT_CLOSED_STATUS)
        except Exception:
            log.exception("hls_proxy_unhandled_error")
            return render_error(GENERIC_ERROR_MESSAGE, status_code=500)

        log.info("hls_proxy_served", kind=result.kind.value)
        return render_result(result, max_age=settings.segment_cache_max_age)


@router.options(PROXY_ROUTE)
async def hls_proxy_preflight() -> Response:
    """Answer CORS preflight requests, whatever the query string says."""
    return render_preflight()
