"""Integration tests for configuration loading with layered precedence.

Tests the real load_config() function with actual YAML files, environment
variables, and CLI overrides to verify precedence: defaults < YAML < ENV < CLI.
"""

from __future__ import annotations

from pathlib import Path

import pytest
import yaml
from pydantic import ValidationError

from moviedeck.infrastructure.config.load import load_config

pytestmark = pytest.mark.integration


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep the developer's MOVIEDECK_* variables out of these tests."""
    import os

    for name in list(os.environ):
        if name.startswith("MOVIEDECK_"):
            monkeypatch.delenv(name)


@pytest.fixture()
def yaml_config(tmp_path: Path) -> Path:
    """Write a minimal YAML config and return its path."""
    config = {
        "app_name": "moviedeck-test",
        "environment": "test",
        "http": {
            "timeout_seconds": 15.0,
            "user_agent": "TestProxy/1.0",
        },
        "logging": {"level": "DEBUG", "format": "console"},
        "hls_proxy": {
            "allowed_domains": ["test-streams.mux.dev", "apple.com"],
            "segment_cache_max_age": 120,
        },
    }
    path = tmp_path / "config.yaml"
    path.write_text(yaml.dump(config), encoding="utf-8")
    return path


class TestDefaultsOnly:
    """Load with no YAML, no ENV, no CLI: pure defaults."""

    def test_defaults_produce_valid_config(self) -> None:
        config = load_config()
        assert config.app_name == "moviedeck"
        assert config.environment == "dev"
        assert config.http_timeout_seconds == 30.0
        assert config.http_user_agent == "MovieDeck-HLS-Proxy/1.0"
        assert config.log_level == "INFO"
        assert config.log_format == "console"  # dev → console

    def test_allowlist_empty_by_default(self) -> None:
        config = load_config()
        assert config.hls_proxy.allowed_domains == []
        assert config.hls_proxy.segment_cache_max_age == 3600

    def test_defaults_derive_log_format_from_environment(self) -> None:
        config = load_config(cli_overrides={"environment": "prod"})
        assert config.log_format == "json"


class TestYamlOverrides:
    """YAML values override defaults."""

    def test_yaml_overrides_defaults(self, yaml_config: Path) -> None:
        config = load_config(config_path=yaml_config)
        assert config.app_name == "moviedeck-test"
        assert config.http_timeout_seconds == 15.0
        assert config.http_user_agent == "TestProxy/1.0"
        assert config.log_level == "DEBUG"
        assert config.hls_proxy.allowed_domains == ["test-streams.mux.dev", "apple.com"]
        assert config.hls_proxy.segment_cache_max_age == 120
        # Untouched key in the same section keeps its default
        assert config.hls_proxy.disconnect_poll_seconds == 0.5

    def test_yaml_file_not_found_raises(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            load_config(config_path=tmp_path / "nonexistent.yaml")

    def test_yaml_must_be_mapping(self, tmp_path: Path) -> None:
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n", encoding="utf-8")
        with pytest.raises(ValueError, match="mapping"):
            load_config(config_path=path)

    def test_invalid_values_rejected(self, tmp_path: Path) -> None:
        path = tmp_path / "bad.yaml"
        path.write_text(
            yaml.dump({"hls_proxy": {"segment_cache_max_age": -1}}), encoding="utf-8"
        )
        with pytest.raises(ValidationError):
            load_config(config_path=path)


class TestEnvOverrides:
    """Environment variables override YAML and defaults."""

    def test_env_overrides_yaml(
        self, yaml_config: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("MOVIEDECK_LOG_LEVEL", "WARNING")
        monkeypatch.setenv("MOVIEDECK_HTTP_TIMEOUT_SECONDS", "60.0")
        monkeypatch.setenv("MOVIEDECK_HLS_ALLOWED_DOMAINS", '["cdn.example.com"]')

        config = load_config(config_path=yaml_config)
        assert config.log_level == "WARNING"
        assert config.http_timeout_seconds == 60.0
        assert config.hls_proxy.allowed_domains == ["cdn.example.com"]
        # YAML values not overridden by ENV stay
        assert config.app_name == "moviedeck-test"
        assert config.hls_proxy.segment_cache_max_age == 120

    def test_env_allowlist_comma_separated(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("MOVIEDECK_HLS_ALLOWED_DOMAINS", "a.example.com, B.example.com")

        config = load_config()
        assert config.hls_proxy.allowed_domains == ["a.example.com", "b.example.com"]

    def test_env_allowlist_single_host(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("MOVIEDECK_HLS_ALLOWED_DOMAINS", "mux.dev")

        config = load_config()
        assert config.hls_proxy.allowed_domains == ["mux.dev"]

    def test_env_overrides_defaults(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("MOVIEDECK_ENVIRONMENT", "prod")

        config = load_config()
        assert config.environment == "prod"
        assert config.log_format == "json"  # prod → json

    def test_dotenv_file(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        dotenv = tmp_path / ".env"
        dotenv.write_text("MOVIEDECK_HLS_SEGMENT_CACHE_MAX_AGE=30\n", encoding="utf-8")
        # load_dotenv writes os.environ directly; let monkeypatch undo it.
        monkeypatch.setenv("MOVIEDECK_HLS_SEGMENT_CACHE_MAX_AGE", "")
        monkeypatch.delenv("MOVIEDECK_HLS_SEGMENT_CACHE_MAX_AGE")

        config = load_config(dotenv_path=dotenv)
        assert config.hls_proxy.segment_cache_max_age == 30

    def test_missing_dotenv_raises(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            load_config(dotenv_path=tmp_path / "missing.env")


class TestCliOverrides:
    """CLI overrides beat everything (highest precedence)."""

    def test_cli_overrides_yaml_and_env(
        self, yaml_config: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("MOVIEDECK_LOG_LEVEL", "WARNING")

        config = load_config(
            config_path=yaml_config,
            cli_overrides={"log_level": "ERROR"},
        )
        assert config.log_level == "ERROR"

    def test_cli_allowlist_replaces_yaml_list(self, yaml_config: Path) -> None:
        config = load_config(
            config_path=yaml_config,
            cli_overrides={"hls_allowed_domains": ["only.example.com"]},
        )
        assert config.hls_proxy.allowed_domains == ["only.example.com"]

    def test_cli_overrides_with_sectioned_format(self, yaml_config: Path) -> None:
        config = load_config(
            config_path=yaml_config,
            cli_overrides={"http": {"timeout_seconds": 5.0}},
        )
        assert config.http_timeout_seconds == 5.0

    def test_flat_and_sectioned_keys_mix(self, yaml_config: Path) -> None:
        config = load_config(
            config_path=yaml_config,
            cli_overrides={
                "http": {"timeout_seconds": 5.0},
                "http_user_agent": "Other/2.0",
            },
        )
        assert config.http_timeout_seconds == 5.0
        assert config.http_user_agent == "Other/2.0"
        assert config.http_follow_redirects is True

    def test_comma_separated_domains(self) -> None:
        config = load_config(
            cli_overrides={"hls_proxy": {"allowed_domains": "a.example.com, B.example.com"}},
        )
        assert config.hls_proxy.allowed_domains == ["a.example.com", "b.example.com"]

    def test_sectioned_dump_round_trips(self, yaml_config: Path) -> None:
        config = load_config(config_path=yaml_config)
        again = load_config(cli_overrides=config.to_sectioned_dict())
        assert again == config
