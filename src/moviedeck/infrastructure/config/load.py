"""Layered configuration loading: defaults < YAML < env (.env) < CLI."""

from __future__ import annotations

from collections.abc import Mapping
from copy import deepcopy
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

from .defaults import DEFAULT_CONFIG
from .schema import AppConfig, EnvOverrides

# Flat keys (env vars, CLI flags) name their section by prefix:
# hls_allowed_domains -> hls_proxy.allowed_domains
_SECTION_PREFIXES: tuple[tuple[str, str], ...] = (
    ("http_", "http"),
    ("log_", "logging"),
    ("hls_", "hls_proxy"),
)
_SECTIONS = frozenset(section for _, section in _SECTION_PREFIXES)


def _sectioned(layer: Mapping[str, Any]) -> dict[str, Any]:
    """Bring a layer that may mix flat and sectioned keys into sectioned shape."""
    out: dict[str, Any] = {}
    for key, value in layer.items():
        if key in _SECTIONS and isinstance(value, Mapping):
            out.setdefault(key, {}).update(value)
            continue
        for prefix, section in _SECTION_PREFIXES:
            if key.startswith(prefix):
                out.setdefault(section, {})[key[len(prefix):]] = value
                break
        else:
            out[key] = value
    return out


def _merge_into(base: dict[str, Any], layer: Mapping[str, Any]) -> None:
    # Sections merge key by key; everything else (lists included) is replaced.
    for key, value in layer.items():
        if isinstance(value, Mapping) and isinstance(base.get(key), dict):
            base[key].update(value)
        else:
            base[key] = value


def _yaml_layer(config_path: Path) -> dict[str, Any]:
    if not config_path.exists():
        raise FileNotFoundError(config_path)
    parsed = yaml.safe_load(config_path.read_text(encoding="utf-8")) or {}
    if not isinstance(parsed, dict):
        raise ValueError(f"Config YAML must be a mapping, got: {type(parsed)!r}")
    return parsed


def load_config(
    *,
    config_path: Path | None = None,
    dotenv_path: Path | None = None,
    cli_overrides: Mapping[str, Any] | None = None,
) -> AppConfig:
    """Merge every configuration layer and validate the result once.

    A ``.env`` file only fills variables the process environment does not
    already set. Nothing is written to disk.
    """
    if dotenv_path is not None:
        if not dotenv_path.exists():
            raise FileNotFoundError(dotenv_path)
        load_dotenv(dotenv_path, override=False)

    layers: list[Mapping[str, Any]] = [deepcopy(DEFAULT_CONFIG)]
    if config_path is not None:
        layers.append(_yaml_layer(config_path))
    layers.append(EnvOverrides().to_update_dict())
    layers.append(cli_overrides or {})

    merged: dict[str, Any] = {}
    for layer in layers:
        _merge_into(merged, _sectioned(layer))
    return AppConfig.model_validate(merged)
