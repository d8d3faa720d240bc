"""Tests for GracefulShutdown."""

from __future__ import annotations

import asyncio

import pytest

from moviedeck.infrastructure.graceful_shutdown import GracefulShutdown


class TestRequestTracking:
    def test_starts_with_zero_active(self) -> None:
        assert GracefulShutdown().active_requests == 0

    def test_track_counts_while_inside(self) -> None:
        gs = GracefulShutdown()
        with gs.track():
            assert gs.active_requests == 1
            with gs.track():
                assert gs.active_requests == 2
        assert gs.active_requests == 0

    def test_track_releases_on_error(self) -> None:
        gs = GracefulShutdown()
        with pytest.raises(RuntimeError):
            with gs.track():
                raise RuntimeError("handler failed")
        assert gs.active_requests == 0


class TestReadiness:
    def test_not_ready_initially(self) -> None:
        assert GracefulShutdown().is_ready is False

    def test_ready_after_mark(self) -> None:
        gs = GracefulShutdown()
        gs.mark_ready()
        assert gs.is_ready is True

    @pytest.mark.asyncio()
    async def test_not_ready_once_draining(self) -> None:
        gs = GracefulShutdown()
        gs.mark_ready()
        await gs.wait_for_drain(timeout=0.1)
        assert gs.is_ready is False
        assert gs.is_shutting_down is True


class TestDrain:
    @pytest.mark.asyncio()
    async def test_drain_waits_for_active_request(self) -> None:
        gs = GracefulShutdown()
        release = asyncio.Event()

        async def _request() -> None:
            with gs.track():
                await release.wait()

        task = asyncio.create_task(_request())
        await asyncio.sleep(0)
        assert gs.active_requests == 1

        async def _finish_later() -> None:
            await asyncio.sleep(0.05)
            release.set()

        await asyncio.gather(_finish_later(), gs.wait_for_drain(timeout=2.0))
        await task
        assert gs.active_requests == 0

    @pytest.mark.asyncio()
    async def test_drain_times_out(self) -> None:
        gs = GracefulShutdown()
        release = asyncio.Event()

        async def _request() -> None:
            with gs.track():
                await release.wait()

        task = asyncio.create_task(_request())
        await asyncio.sleep(0)
        await gs.wait_for_drain(timeout=0.05)
        assert gs.active_requests == 1

        release.set()
        await task
