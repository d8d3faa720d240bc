"""Application state container for FastAPI dependency injection."""

from __future__ import annotations

from typing import TYPE_CHECKING

import httpx
from starlette.datastructures import State

from moviedeck.infrastructure.config import AppConfig
from moviedeck.infrastructure.graceful_shutdown import GracefulShutdown

if TYPE_CHECKING:
    from moviedeck.application.use_cases.hls_proxy import HlsProxyUseCase


class AppState(State):
    """FastAPI application state with all DI resources.

    Lifecycle managed by composition.py::lifespan().
    """

    # Configuration
    config: AppConfig

    # Infrastructure
    http_client: httpx.AsyncClient

    # Application Services
    hls_proxy_uc: HlsProxyUseCase

    # Graceful shutdown (request tracking + drain)
    graceful_shutdown: GracefulShutdown
