"""Layered configuration loading: defaults < YAML < ENV < CLI."""

from __future__ import annotations

from copy import deepcopy
from pathlib import Path
from typing import Any, Mapping

import yaml
from dotenv import load_dotenv

from .defaults import DEFAULT_CONFIG
from .schema import AppConfig, EnvOverrides, ResolverConfig

_SECTIONS = ("http", "api", "logging", "resolver")
_TOP_LEVEL = ("app_name", "environment")

# Flat keys (env vars, CLI flags) that live inside a section.
_FLAT_KEYS: dict[str, tuple[str, str]] = {
    "http_timeout_seconds": ("http", "timeout_seconds"),
    "http_follow_redirects": ("http", "follow_redirects"),
    "http_user_agent": ("http", "user_agent"),
    "api_keys": ("api", "keys"),
    "log_level": ("logging", "level"),
    "log_format": ("logging", "format"),
}

# Resolver fields may be given flat either bare (``resolve_timeout_seconds``)
# or with a ``resolver_`` prefix (``resolver_cookies``).
_RESOLVER_FIELDS = frozenset(ResolverConfig.model_fields)


def _resolver_field(flat_key: str) -> str | None:
    if flat_key in _RESOLVER_FIELDS:
        return flat_key
    name = flat_key.removeprefix("resolver_")
    return name if name != flat_key and name in _RESOLVER_FIELDS else None


def _merge_into(target: dict[str, Any], layer: Mapping[str, Any]) -> None:
    """Deep merge: nested mappings merge key by key, anything else replaces."""
    for key, value in layer.items():
        current = target.get(key)
        if isinstance(current, dict) and isinstance(value, Mapping):
            _merge_into(current, value)
        else:
            target[key] = value


def _sectioned(layer: Mapping[str, Any]) -> dict[str, Any]:
    """Bring one layer into the sectioned shape AppConfig validates.

    Sectioned blocks pass through; flat keys are moved into their section;
    unknown keys are dropped.
    """
    out: dict[str, Any] = {k: layer[k] for k in _TOP_LEVEL if k in layer}

    for section in _SECTIONS:
        block = layer.get(section)
        if isinstance(block, Mapping):
            out[section] = dict(block)

    for key, value in layer.items():
        if key in _FLAT_KEYS:
            section, name = _FLAT_KEYS[key]
        elif (field := _resolver_field(key)) is not None:
            section, name = "resolver", field
        else:
            continue
        out.setdefault(section, {})[name] = value

    return out


def _yaml_layer(config_path: Path) -> dict[str, Any]:
    if not config_path.exists():
        raise FileNotFoundError(config_path)
    parsed = yaml.safe_load(config_path.read_text(encoding="utf-8"))
    if parsed is None:
        return {}
    if not isinstance(parsed, dict):
        raise ValueError(f"Config YAML must be a mapping, got: {type(parsed)!r}")
    return _sectioned(parsed)


def _env_layer(dotenv_path: Path | None) -> dict[str, Any]:
    # .env values join the real environment without overriding it.
    if dotenv_path is not None:
        if not dotenv_path.exists():
            raise FileNotFoundError(dotenv_path)
        load_dotenv(dotenv_path, override=False)
    return _sectioned(EnvOverrides().to_update_dict())


def load_config(
    *,
    config_path: Path | None = None,
    dotenv_path: Path | None = None,
    cli_overrides: dict[str, Any] | None = None,
) -> AppConfig:
    """
    Load configuration with strict precedence:
    defaults < YAML file < env vars (.env included) < cli overrides

    Reads files only; never creates any.
    """
    merged = _sectioned(deepcopy(DEFAULT_CONFIG))

    layers = [
        _yaml_layer(config_path) if config_path is not None else {},
        _env_layer(dotenv_path),
        _sectioned(cli_overrides or {}),
    ]
    for layer in layers:
        _merge_into(merged, layer)

    return AppConfig.model_validate(merged)
