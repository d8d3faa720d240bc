"""Pydantic configuration models with validation."""

from __future__ import annotations

import json
from typing import Annotated, Any, Literal, Optional

from pydantic import (
    AliasChoices,
    AliasPath,
    BaseModel,
    Field,
    field_validator,
    model_validator,
)
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

Environment = Literal["dev", "test", "prod"]
LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR"]
LogFormat = Literal["json", "console"]


def _normalize_domains(value: Any) -> list[str]:
    """Accept a list or a comma-separated string of hostnames."""
    if value is None:
        return []
    if isinstance(value, str):
        value = value.split(",")
    if not isinstance(value, (list, tuple, set, frozenset)):
        raise TypeError(f"Expected list of domains, got: {type(value)!r}")
    return [str(d).strip().lower() for d in value if str(d).strip()]


class HlsProxyConfig(BaseModel):
    """Configuration for the streaming proxy endpoint.

    All values configurable via YAML (hls_proxy section) or ENV vars
    (MOVIEDECK_HLS_*).
    """

    allowed_domains: list[str] = Field(
        default_factory=list,
        description=(
            "Hostnames the proxy may fetch from (substring match). "
            "Empty = allow every host."
        ),
    )
    segment_cache_max_age: int = Field(
        default=3600,
        description="max-age (seconds) sent with proxied segments and images.",
    )
    disconnect_poll_seconds: float = Field(
        default=0.5,
        description="How often to check for a disconnected client during a fetch.",
    )

    @field_validator("allowed_domains", mode="before")
    @classmethod
    def _validate_domains(cls, v: Any) -> list[str]:
        return _normalize_domains(v)

    @field_validator("segment_cache_max_age")
    @classmethod
    def _validate_max_age(cls, v: int) -> int:
        if v < 0:
            raise ValueError("segment_cache_max_age must be >= 0")
        return v

    @field_validator("disconnect_poll_seconds")
    @classmethod
    def _validate_poll(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("disconnect_poll_seconds must be > 0")
        return v


class AppConfig(BaseModel):
    """
    Canonical application configuration (validated, final).

    Note:
    - YAML is expected to be sectioned (http/logging/hls_proxy).
    - Environment variables are handled by EnvOverrides(BaseSettings) to allow strict
      precedence control (defaults < YAML < ENV < CLI) in load.py.
    """

    # General
    app_name: str = Field(default="moviedeck", description="Application name.")
    environment: Environment = Field(
        default="dev",
        description="Runtime environment (affects defaults like log format).",
    )

    # Upstream HTTP client (YAML section: http.*)
    http_timeout_seconds: float = Field(
        default=30.0,
        validation_alias=AliasChoices(
            "http_timeout_seconds",
            AliasPath("http", "timeout_seconds"),
        ),
        description="Per-request timeout in seconds for upstream fetches.",
    )
    http_follow_redirects: bool = Field(
        default=True,
        validation_alias=AliasChoices(
            "http_follow_redirects",
            AliasPath("http", "follow_redirects"),
        ),
        description="Whether the upstream client follows redirects.",
    )
    http_user_agent: str = Field(
        default="MovieDeck-HLS-Proxy/1.0",
        validation_alias=AliasChoices(
            "http_user_agent",
            AliasPath("http", "user_agent"),
        ),
        description="Proxy identity sent as User-Agent to upstream servers.",
    )

    # Logging (YAML section: logging.*)
    log_level: LogLevel = Field(
        default="INFO",
        validation_alias=AliasChoices(
            "log_level",
            AliasPath("logging", "level"),
        ),
        description="Log level.",
    )
    log_format: Optional[LogFormat] = Field(
        default=None,
        validation_alias=AliasChoices(
            "log_format",
            AliasPath("logging", "format"),
        ),
        description=(
            "Log renderer format (console/json). If unset, derived from environment."
        ),
    )

    # Streaming proxy (YAML section: hls_proxy.*)
    hls_proxy: HlsProxyConfig = Field(default_factory=HlsProxyConfig)

    @field_validator("http_timeout_seconds")
    @classmethod
    def _validate_http_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("http_timeout_seconds must be > 0")
        return v

    @model_validator(mode="after")
    def _derive_defaults(self) -> "AppConfig":
        # Default log format: console in dev/test, json in prod.
        if self.log_format is None:
            self.log_format = "json" if self.environment == "prod" else "console"
        return self

    def to_sectioned_dict(self) -> dict[str, Any]:
        """
        Dump configuration in the sectioned shape used by config.yaml/docs.
        """
        return {
            "app_name": self.app_name,
            "environment": self.environment,
            "http": {
                "timeout_seconds": self.http_timeout_seconds,
                "follow_redirects": self.http_follow_redirects,
                "user_agent": self.http_user_agent,
            },
            "logging": {"level": self.log_level, "format": self.log_format},
            "hls_proxy": self.hls_proxy.model_dump(),
        }


class EnvOverrides(BaseSettings):
    """
    Environment-variable overrides (all optional).

    Intended usage:
    - load.py creates EnvOverrides() to read MOVIEDECK_* variables,
      converts to dict of set values, merges into YAML/defaults,
      then validates AppConfig.

    Supported env var examples (flat, explicit):
    - MOVIEDECK_HTTP_TIMEOUT_SECONDS
    - MOVIEDECK_LOG_LEVEL
    - MOVIEDECK_HLS_ALLOWED_DOMAINS (JSON list or comma-separated hostnames)
    - MOVIEDECK_HLS_SEGMENT_CACHE_MAX_AGE
    """

    model_config = SettingsConfigDict(
        env_prefix="MOVIEDECK_",
        extra="ignore",
        case_sensitive=False,
    )

    app_name: Optional[str] = None
    environment: Optional[Environment] = None

    http_timeout_seconds: Optional[float] = None
    http_follow_redirects: Optional[bool] = None
    http_user_agent: Optional[str] = None

    log_level: Optional[LogLevel] = None
    log_format: Optional[LogFormat] = None

    hls_allowed_domains: Annotated[Optional[list[str]], NoDecode] = None
    hls_segment_cache_max_age: Optional[int] = None
    hls_disconnect_poll_seconds: Optional[float] = None

    @field_validator("hls_allowed_domains", mode="before")
    @classmethod
    def _parse_domains(cls, v: Any) -> Any:
        # Raw env string: a JSON list or comma-separated hostnames.
        if isinstance(v, str):
            v = v.strip()
            if v.startswith("["):
                return json.loads(v)
            return v.split(",")
        return v

    def to_update_dict(self) -> dict[str, Any]:
        """
        Return only values that were actually provided (non-None), for merging.
        """
        return self.model_dump(exclude_none=True)
