from __future__ import annotations

from .load import load_config
from .schema import AppConfig, EnvOverrides, HlsProxyConfig

__all__ = ["AppConfig", "EnvOverrides", "HlsProxyConfig", "load_config"]
