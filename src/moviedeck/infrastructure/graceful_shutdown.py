"""In-flight request tracking, readiness flag and shutdown drain."""

from __future__ import annotations

import asyncio
from collections.abc import Iterator
from contextlib import contextmanager

import structlog

log = structlog.get_logger(__name__)


class GracefulShutdown:
    """Track active proxy requests so shutdown can let them finish.

    Usage::

        gs = GracefulShutdown()

        # In middleware:
        with gs.track():
            response = await call_next(request)

        # In lifespan:
        gs.mark_ready()
        ...
        await gs.wait_for_drain(timeout=10.0)
    """

    def __init__(self) -> None:
        self._active = 0
        self._ready = False
        self._shutting_down = False
        self._drained = asyncio.Event()
        self._drained.set()

    @property
    def active_requests(self) -> int:
        return self._active

    @property
    def is_shutting_down(self) -> bool:
        return self._shutting_down

    @property
    def is_ready(self) -> bool:
        """True between startup completion and the start of shutdown."""
        return self._ready and not self._shutting_down

    def mark_ready(self) -> None:
        self._ready = True

    @contextmanager
    def track(self) -> Iterator[None]:
        self._active += 1
        self._drained.clear()
        try:
            yield
        finally:
            self._active = max(self._active - 1, 0)
            if self._active == 0:
                self._drained.set()

    async def wait_for_drain(self, *, timeout: float = 10.0) -> None:
        """Stop reporting ready and wait up to *timeout* for active requests."""
        self._shutting_down = True
        if self._active == 0:
            return
        log.info("graceful_shutdown_draining", active_requests=self._active)
        try:
            await asyncio.wait_for(self._drained.wait(), timeout=timeout)
            log.info("graceful_shutdown_drained")
        except TimeoutError:
            log.warning(
                "graceful_shutdown_timeout",
                remaining_requests=self._active,
                timeout=timeout,
            )
