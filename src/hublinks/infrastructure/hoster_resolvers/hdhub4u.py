"""HDHub4u stream resolver.

Episode/movie links from hdhub4u come in three shapes:

- ``hubcdn.fans`` pages: decoded straight to the file URL.
- ``hubdrive`` / ``hubcloud`` links: used as the hubcloud page directly.
- redirector links: token decode + redirect chain to reach the hubcloud page.

The hubcloud page is then searched for a playable video URL; when none is
embedded the hubcloud link itself is returned as a ``redirect`` entry.
"""

from __future__ import annotations

import asyncio
import re
import time

import httpx
import structlog

from hublinks.domain.entities.links import (
    ExtractionError,
    LinkResolutionError,
    StreamLink,
)
from hublinks.infrastructure.config.schema import ResolverConfig
from hublinks.infrastructure.hoster_resolvers._landing import follow_to_hubcloud
from hublinks.infrastructure.hoster_resolvers.hubcdn import HubCdnResolver
from hublinks.infrastructure.hoster_resolvers.redirect_chain import (
    RedirectChainResolver,
)
from hublinks.infrastructure.metrics import MetricsCollector

log = structlog.get_logger(__name__)

# First match wins
_VIDEO_URL_PATTERNS = (
    re.compile(r'sources:\s*\[\s*{\s*file:\s*"([^"]+)"'),
    re.compile(r'file:\s*"([^"]+\.mp4[^"]*)"'),
    re.compile(r'src:\s*"([^"]+\.mp4[^"]*)"'),
    re.compile(r'"file":"([^"]+\.mp4[^"]*)"'),
    re.compile(r'"src":"([^"]+\.mp4[^"]*)"'),
    re.compile(r'video[^>]*src="([^"]+\.mp4[^"]*)"'),
)


def extract_video_url(html: str) -> str | None:
    for pattern in _VIDEO_URL_PATTERNS:
        match = pattern.search(html)
        if match:
            return match.group(1)
    return None


class HDHub4uResolver:
    """Resolves hdhub4u episode links to stream links."""

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        config: ResolverConfig,
        *,
        metrics: MetricsCollector | None = None,
        chain: RedirectChainResolver | None = None,
        hubcdn: HubCdnResolver | None = None,
    ) -> None:
        self._http = http_client
        self._config = config
        self._metrics = metrics
        self._chain = chain or RedirectChainResolver(http_client, config)
        self._hubcdn = hubcdn or HubCdnResolver(http_client, config)

    @property
    def name(self) -> str:
        return "hdhub4u"

    async def resolve(self, url: str) -> list[StreamLink]:
        """Resolve *url* to stream links. Never raises; ``[]`` on failure."""
        start = time.perf_counter_ns()
        links: list[StreamLink] = []
        try:
            links = await asyncio.wait_for(
                self._extract(url), timeout=self._config.resolve_timeout_seconds
            )
        except TimeoutError:
            log.warning("hdhub4u_resolve_timeout", url=url)
        except httpx.HTTPError as exc:
            log.warning("hdhub4u_resolve_http_error", url=url, error=str(exc))
        except LinkResolutionError as exc:
            log.warning("hdhub4u_resolve_failed", url=url, error=str(exc))
        except Exception:
            log.exception("hdhub4u_resolve_error", url=url)

        if self._metrics is not None:
            self._metrics.record_resolution(
                self.name, time.perf_counter_ns() - start, len(links)
            )
        log.info("hdhub4u_resolved", url=url, links=len(links))
        return links

    async def _extract(self, url: str) -> list[StreamLink]:
        if "hubcdn.fans" in url:
            direct = await self._hubcdn.resolve_landing(url)
            if direct:
                return [StreamLink("HDHub4u Direct", direct, "mp4", copyable=True)]

        if "hubdrive" in url or "hubcloud" in url:
            hubcloud_link: str | None = url
        else:
            hubcloud_link = await follow_to_hubcloud(
                self._http, self._config, self._chain, url
            )
        if not hubcloud_link:
            raise ExtractionError("could not extract hubcloud link")

        resp = await self._http.get(
            hubcloud_link, headers={"User-Agent": self._config.user_agent}
        )
        video_url = extract_video_url(resp.text)
        if video_url:
            return [StreamLink("HDHub4u Stream", video_url, "mp4", copyable=True)]

        return [StreamLink("HDHub4u Hubcloud", hubcloud_link, "redirect", copyable=True)]
