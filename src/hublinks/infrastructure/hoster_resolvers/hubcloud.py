"""HubCloud resolver: extracts direct download links from hubcloud pages.

Resolution paths (tried in order):
1. gadgetsweb ``/?id=`` redirector: decode the page token, follow the
   ``_wp_http`` redirect chain and return the hubcloud link found there.
2. hubcloud page → next hop (``var url = '...r=<b64>'``, the raw
   ``var url`` value, or the download icon's parent link).
3. Next hop on ``gamerxyt.com/hubcloud.php``: classify its ``a.btn``
   buttons.  Failure here falls through to 4.
4. Fetch the next hop and classify its download buttons.

The whole resolution is bounded by ``resolve_timeout_seconds``.
"""

from __future__ import annotations

import asyncio
import re
import time
from urllib.parse import urlparse

import httpx
import structlog

from hublinks.domain.entities.links import LinkResolutionError, StreamLink
from hublinks.infrastructure.common.html_selectors import (
    extract_parent_attr,
    parse_html,
)
from hublinks.infrastructure.config.schema import ResolverConfig
from hublinks.infrastructure.hoster_resolvers._cipher import b64decode
from hublinks.infrastructure.hoster_resolvers._landing import follow_to_hubcloud
from hublinks.infrastructure.hoster_resolvers.classifier import LinkClassifier
from hublinks.infrastructure.hoster_resolvers.redirect_chain import (
    RedirectChainResolver,
)
from hublinks.infrastructure.metrics import MetricsCollector

log = structlog.get_logger(__name__)

_VAR_URL_RE = re.compile(r"var\s+url\s*=\s*'([^']+)';")

_DOWNLOAD_BUTTONS = ".btn-success.btn-lg.h6, .btn-danger, .btn-secondary"
_GAMERXYT_PAGE = "gamerxyt.com/hubcloud.php"


def _origin(url: str) -> str:
    parsed = urlparse(url)
    return f"{parsed.scheme}://{parsed.netloc}"


def _is_redirector_link(url: str) -> bool:
    return "gadgetsweb" in url and "/?id=" in url


def extract_next_hop(html: str, url: str) -> str:
    """Find the next hop on a hubcloud page; falls back to *url*."""
    hop = ""
    match = _VAR_URL_RE.search(html)
    if match:
        raw = match.group(1)
        if "r=" in raw:
            try:
                hop = b64decode(raw.split("r=", 1)[1])
            except ValueError:
                log.debug("hubcloud_var_url_not_base64", value=raw[:80])
        hop = hop or raw
    else:
        hop = extract_parent_attr(parse_html(html), ".fa-file-download.fa-lg", "href")

    hop = hop or url
    if hop.startswith("/"):
        hop = f"{_origin(url)}{hop}"
    return hop


class HubCloudResolver:
    """Resolves hubcloud / gadgetsweb links to direct download links."""

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        config: ResolverConfig,
        *,
        metrics: MetricsCollector | None = None,
        chain: RedirectChainResolver | None = None,
        classifier: LinkClassifier | None = None,
    ) -> None:
        self._http = http_client
        self._config = config
        self._metrics = metrics
        self._chain = chain or RedirectChainResolver(http_client, config)
        self._classifier = classifier or LinkClassifier(
            http_client, config, metrics=metrics
        )

    @property
    def name(self) -> str:
        return "hubcloud"

    async def resolve(self, url: str) -> list[StreamLink]:
        """Resolve *url* to stream links. Never raises; ``[]`` on failure."""
        start = time.perf_counter_ns()
        links: list[StreamLink] = []
        try:
            links = await asyncio.wait_for(
                self._extract(url), timeout=self._config.resolve_timeout_seconds
            )
        except TimeoutError:
            log.warning(
                "hubcloud_resolve_timeout",
                url=url,
                timeout=self._config.resolve_timeout_seconds,
            )
        except httpx.HTTPError as exc:
            log.warning("hubcloud_resolve_http_error", url=url, error=str(exc))
        except LinkResolutionError as exc:
            log.warning("hubcloud_resolve_failed", url=url, error=str(exc))
        except Exception:
            log.exception("hubcloud_resolve_error", url=url)

        if self._metrics is not None:
            self._metrics.record_resolution(
                self.name, time.perf_counter_ns() - start, len(links)
            )
        log.info("hubcloud_resolved", url=url, links=len(links))
        return links

    async def _extract(self, url: str) -> list[StreamLink]:
        if _is_redirector_link(url):
            hubcloud_link = await follow_to_hubcloud(
                self._http, self._config, self._chain, url
            )
            if hubcloud_link:
                return [StreamLink("HubCloud", hubcloud_link, "mkv")]
            log.info("hubcloud_redirector_fallthrough", url=url)

        resp = await self._http.get(
            url, headers=self._config.page_headers(with_cookies=True)
        )
        resp.raise_for_status()

        hop = extract_next_hop(resp.text, url)
        log.debug("hubcloud_next_hop", url=url, hop=hop)

        if _GAMERXYT_PAGE in hop:
            try:
                return await self._from_gamerxyt(hop, referer=_origin(url))
            except httpx.HTTPError as exc:
                log.warning("hubcloud_gamerxyt_failed", hop=hop, error=str(exc))

        resp = await self._http.get(
            hop,
            headers=self._config.page_headers(with_cookies=True),
            follow_redirects=True,
        )
        resp.raise_for_status()
        return await self._classifier.classify_html(
            resp.text, _DOWNLOAD_BUTTONS, base_url=str(resp.url)
        )

    async def _from_gamerxyt(self, hop: str, *, referer: str) -> list[StreamLink]:
        resp = await self._http.get(
            hop,
            headers=self._config.page_headers(with_cookies=True, referer=referer),
        )
        resp.raise_for_status()
        return await self._classifier.classify_html(
            resp.text, "a.btn", base_url=str(resp.url)
        )
