"""Hardcoded default configuration values."""

from __future__ import annotations

from typing import Any

DEFAULT_CONFIG: dict[str, Any] = {
    "app_name": "hublinks",
    "environment": "dev",
    "http": {
        "timeout_seconds": 30.0,
        "follow_redirects": True,
        "user_agent": "hublinks/0.1.0",
    },
    "api": {
        "keys": [],
    },
    "logging": {
        "level": "INFO",
        "format": None,  # Derived from environment in schema.py
    },
    "resolver": {
        "resolve_timeout_seconds": 60.0,
        "wait_margin_seconds": 3.0,
        "max_redirect_attempts": 5,
        "retry_delay_seconds": 2.0,
        "probe_timeout_seconds": 15.0,
    },
}
