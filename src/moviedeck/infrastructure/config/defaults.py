"""Hardcoded default configuration values."""

from __future__ import annotations

from typing import Any

DEFAULT_CONFIG: dict[str, Any] = {
    "app_name": "moviedeck",
    "environment": "dev",
    "http": {
        "timeout_seconds": 30.0,
        "follow_redirects": True,
        "user_agent": "MovieDeck-HLS-Proxy/1.0",
    },
    "logging": {
        "level": "INFO",
        "format": None,  # Derived from environment in schema.py
    },
    "hls_proxy": {
        # Empty = every host allowed. Entries match by substring on hostname.
        "allowed_domains": [],
        "segment_cache_max_age": 3600,
        "disconnect_poll_seconds": 0.5,
    },
}
