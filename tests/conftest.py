"""Shared test fixtures for the hublinks test suite."""

from __future__ import annotations

import json
from typing import Any, Callable

import httpx
import pytest

from hublinks.infrastructure.config.schema import ResolverConfig
from hublinks.infrastructure.hoster_resolvers._cipher import encode, obfuscate
from hublinks.infrastructure.metrics import MetricsCollector

# ---------------------------------------------------------------------------
# Token helpers
# ---------------------------------------------------------------------------


def _make_token(payload: dict[str, Any]) -> str:
    # b64(b64(rot13(b64(json)))), as embedded by the source pages
    return encode(obfuscate(encode(json.dumps(payload))))


def _ck_page(token: str, pieces: int = 2) -> str:
    size = -(-len(token) // pieces)
    calls = "\n".join(
        f"ck('_wp_http_{i + 1}','{token[i * size:(i + 1) * size]}',180);"
        for i in range(pieces)
    )
    return f"<html><head><script>\n{calls}\n</script></head><body></body></html>"


def _redirector_page(next_hop: str) -> str:
    token = _make_token({"o": encode(next_hop)})
    return f"<html><script>s('o','{token}',180);</script></html>"


@pytest.fixture()
def make_token() -> Callable[[dict[str, Any]], str]:
    """Encode a payload dict into a full-path page token."""
    return _make_token


@pytest.fixture()
def ck_page() -> Callable[..., str]:
    """Build a redirect page carrying a token split into ck() pieces."""
    return _ck_page


@pytest.fixture()
def redirector_page() -> Callable[[str], str]:
    """Build a gadgetsweb-style page whose ``o`` token points at a URL."""
    return _redirector_page


# ---------------------------------------------------------------------------
# Config / infrastructure fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def resolver_config() -> ResolverConfig:
    """Default resolver config with recognisable test headers."""
    return ResolverConfig(
        user_agent="hublinks-test/1.0",
        referer="https://hubcloud.test/",
        cookies="xyt=2",
    )


@pytest.fixture()
def http_client() -> httpx.AsyncClient:
    """Real httpx.AsyncClient for use with respx mocking."""
    return httpx.AsyncClient()


@pytest.fixture()
def metrics() -> MetricsCollector:
    return MetricsCollector()
