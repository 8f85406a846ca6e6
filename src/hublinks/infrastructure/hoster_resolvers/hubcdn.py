"""HubCdn link resolution.

hubcdn.fans serves three shapes of link:

- ``gpdl.hubcdn.fans`` / ``gpdl2.hubcdn.fans``: only resolvable through
  an external redirect service returning ``{"data": {"finalUrl": ...}}``.
- ``pixel.hubcdn.fans``: an HTML page whose ``a#vd`` anchor holds the
  file URL.
- ``hubcdn.fans/...`` landing pages: ``var reurl = ".../?r=<b64>"`` where
  the decoded value carries the file URL in its ``link=`` parameter.

Every method returns ``None`` on failure and never raises.
"""

from __future__ import annotations

import re
from typing import Any
from urllib.parse import unquote

import httpx
import structlog

from hublinks.infrastructure.common.html_selectors import extract_attr, parse_html
from hublinks.infrastructure.config.schema import ResolverConfig
from hublinks.infrastructure.hoster_resolvers._cipher import b64decode
from hublinks.infrastructure.hoster_resolvers.redirect_chain import extract_reurl

log = structlog.get_logger(__name__)

_GPDL_HOSTS = ("gpdl.hubcdn.fans", "gpdl2.hubcdn.fans")
_PIXEL_HOST = "pixel.hubcdn.fans"
_GAMERXYT_DL_PREFIX = "gamerxyt.com/dl.php?link="

_R_PARAM_RE = re.compile(r"\?r=(.+)$")
_LINK_PARAM_RE = re.compile(r"[?&]link=(.+)$")


def is_gpdl_link(url: str) -> bool:
    return any(host in url for host in _GPDL_HOSTS)


def is_pixel_link(url: str) -> bool:
    return _PIXEL_HOST in url


def extract_final_url(payload: Any) -> str | None:
    """Pick the final URL out of a redirect-service response.

    Order: ``data.finalUrl``, ``finalUrl``, ``url``, bare JSON string.
    A ``gamerxyt.com/dl.php?link=`` wrapper is stripped.
    """
    if isinstance(payload, dict):
        data = payload.get("data")
        candidates = [
            data.get("finalUrl") if isinstance(data, dict) else None,
            payload.get("finalUrl"),
            payload.get("url"),
        ]
    else:
        candidates = [payload]

    final = next((c for c in candidates if isinstance(c, str) and c), None)
    if final is None:
        return None
    if _GAMERXYT_DL_PREFIX in final:
        final = final.split(_GAMERXYT_DL_PREFIX, 1)[1]
    return final or None


class HubCdnResolver:
    """Secondary lookups for hubcdn.fans links."""

    def __init__(self, http_client: httpx.AsyncClient, config: ResolverConfig) -> None:
        self._http = http_client
        self._config = config

    async def resolve(self, url: str) -> str | None:
        """Dispatch on the hubcdn link shape."""
        if is_gpdl_link(url):
            return await self.resolve_gpdl(url)
        if is_pixel_link(url):
            return await self.resolve_pixel(url)
        return await self.resolve_landing(url)

    async def resolve_gpdl(self, url: str) -> str | None:
        """Resolve a gpdl link through the external redirect service."""
        try:
            resp = await self._http.get(
                self._config.redirect_api_url,
                params={"url": url},
                headers={"Accept": "application/json"},
                timeout=self._config.probe_timeout_seconds,
            )
        except httpx.HTTPError as exc:
            log.warning("hubcdn_redirect_api_failed", url=url, error=str(exc))
            return None

        if resp.status_code != 200:
            log.warning("hubcdn_redirect_api_http_error", status=resp.status_code, url=url)
            return None

        try:
            data = resp.json()
        except ValueError:
            log.warning("hubcdn_redirect_api_invalid_json", url=url)
            return None

        final_url = extract_final_url(data)
        if final_url is None:
            log.warning("hubcdn_redirect_api_no_url", url=url)
            return None
        log.debug("hubcdn_gpdl_resolved", url=url, final_url=final_url)
        return final_url

    async def resolve_pixel(self, url: str) -> str | None:
        """Read the ``a#vd`` download anchor of a pixel.hubcdn.fans page."""
        try:
            resp = await self._http.get(
                url,
                headers=self._config.page_headers(
                    with_cookies=True, referer="https://gamerxyt.com/"
                ),
                timeout=self._config.probe_timeout_seconds,
            )
        except httpx.HTTPError as exc:
            log.warning("hubcdn_pixel_fetch_failed", url=url, error=str(exc))
            return None

        if resp.status_code != 200:
            log.warning("hubcdn_pixel_http_error", status=resp.status_code, url=url)
            return None

        final_url = extract_attr(parse_html(resp.text), "a#vd", "href", "div.vd a")
        if not final_url:
            log.warning("hubcdn_pixel_no_anchor", url=url, body=resp.text[:200])
            return None
        return final_url

    async def resolve_landing(self, url: str) -> str | None:
        """Decode the ``reurl`` redirect embedded in a hubcdn.fans page."""
        try:
            resp = await self._http.get(
                url, headers={"User-Agent": self._config.user_agent}
            )
        except httpx.HTTPError as exc:
            log.warning("hubcdn_landing_fetch_failed", url=url, error=str(exc))
            return None

        reurl = extract_reurl(resp.text)
        if reurl is None:
            log.warning("hubcdn_landing_no_reurl", url=url)
            return None

        match = _R_PARAM_RE.search(reurl)
        if match is None:
            log.warning("hubcdn_landing_no_r_param", reurl=reurl)
            return None

        try:
            decoded = b64decode(match.group(1))
        except ValueError:
            log.warning("hubcdn_landing_r_param_undecodable", reurl=reurl)
            return None

        link_match = _LINK_PARAM_RE.search(decoded)
        return unquote(link_match.group(1)) if link_match else decoded
