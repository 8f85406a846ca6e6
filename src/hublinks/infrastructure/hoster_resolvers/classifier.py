"""Destination fan-out classifier for hubcloud landing pages.

Every download button on a landing page is matched against a fixed rule
table; the first matching rule decides the server tag.  Some rules need a
further network call (hubcloud HEAD probe, HubCdn secondary lookups).
Those run concurrently and are all awaited before the result is returned.
A failing branch drops only its own link.

Output order: directly classified anchors keep document order; links from
network branches follow, in the order their anchors appeared.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Iterable
from urllib.parse import urlparse

import httpx
import structlog

from hublinks.domain.entities.links import StreamLink
from hublinks.infrastructure.common.html_selectors import (
    Anchor,
    extract_anchors,
    parse_html,
)
from hublinks.infrastructure.config.schema import ResolverConfig
from hublinks.infrastructure.hoster_resolvers.hubcdn import (
    HubCdnResolver,
    is_gpdl_link,
    is_pixel_link,
)
from hublinks.infrastructure.metrics import MetricsCollector

log = structlog.get_logger(__name__)

_EXCLUDED_MARKERS = ("telegram", "bloggingvector", "ampproject")

_FSL_BUTTONS = ("FSL Server", "FSLv2 Server")
_FSL_HOSTS = ("fsl.cdnbaba", "cdn.fsl-buckets")


class LinkAction(str, Enum):
    EMIT = "emit"
    PIXELDRAIN = "pixeldrain"  # rewrite to the /api/file/ form
    HEAD_PROBE = "head_probe"  # follow redirects, take link= of final URL
    HUBCDN = "hubcdn"  # secondary lookup for gpdl/pixel sub-patterns


@dataclass(frozen=True)
class LinkRule:
    server: str
    matches: Callable[[str, str], bool]  # (href, button text)
    type: str = "mkv"
    action: LinkAction = LinkAction.EMIT


def _is_cf_worker(href: str, text: str) -> bool:
    if ".dev" in href and "/?id=" not in href:
        return True
    return any(b in text for b in _FSL_BUTTONS) or any(h in href for h in _FSL_HOSTS)


# Priority order. Pixeldrain precedes Cf Worker because pixeldrain.dev
# hosts also contain ".dev"; Mega precedes hubcloud because of
# mega.hubcloud hosts.
RULES: tuple[LinkRule, ...] = (
    LinkRule(
        "Pixeldrain",
        lambda href, text: "pixeld" in href or "PixeLServer" in text,
        action=LinkAction.PIXELDRAIN,
    ),
    LinkRule("Cf Worker", _is_cf_worker),
    LinkRule(
        "Mega",
        lambda href, text: "mega.hubcloud" in href or "mega" in text.lower(),
    ),
    LinkRule(
        "hubcloud",
        lambda href, text: "hubcloud" in href or "/?id=" in href,
        action=LinkAction.HEAD_PROBE,
    ),
    LinkRule("CfStorage", lambda href, text: "cloudflarestorage" in href),
    LinkRule("FastDl", lambda href, text: "fastdl" in href),
    LinkRule(
        "HubCdn",
        lambda href, text: "hubcdn" in href,
        action=LinkAction.HUBCDN,
    ),
    LinkRule(
        "ZipDisk",
        lambda href, text: "cloudserver" in href or "zipdisk" in text.lower(),
        type="zip",
    ),
)


def is_excluded(href: str, text: str) -> bool:
    """Telegram / bloggingvector / ampproject anchors are never emitted."""
    haystack = f"{href} {text}".lower()
    return any(marker in haystack for marker in _EXCLUDED_MARKERS)


def match_rule(
    href: str, text: str = "", rules: Iterable[LinkRule] = RULES
) -> LinkRule | None:
    """Return the first rule matching the anchor, ``None`` for a miss."""
    for rule in rules:
        if rule.matches(href, text):
            return rule
    return None


def _parseable(href: str) -> bool:
    try:
        urlparse(href)
    except ValueError:
        return False
    return True


def pixeldrain_api_url(href: str) -> str:
    """Rewrite ``/u/<token>`` or ``/<...>/<token>`` to ``/api/file/<token>``."""
    parsed = urlparse(href)
    if "/api/" in parsed.path:
        return href
    if "/u/" in parsed.path:
        token = parsed.path.split("/u/", 1)[1].strip("/")
    else:
        token = parsed.path.rstrip("/").rsplit("/", 1)[-1]
    if not token:
        return href
    return f"{parsed.scheme}://{parsed.netloc}/api/file/{token}"


class LinkClassifier:
    """Turns landing page anchors into ``StreamLink`` objects."""

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        config: ResolverConfig,
        *,
        hubcdn: HubCdnResolver | None = None,
        metrics: MetricsCollector | None = None,
        rules: tuple[LinkRule, ...] = RULES,
    ) -> None:
        self._http = http_client
        self._config = config
        self._hubcdn = hubcdn or HubCdnResolver(http_client, config)
        self._metrics = metrics
        self._rules = rules

    async def classify_html(
        self,
        html: str,
        selector: str = "a[href]",
        *,
        base_url: str = "",
    ) -> list[StreamLink]:
        """Classify every anchor of *html* matching *selector*."""
        anchors = extract_anchors(parse_html(html), selector, base_url=base_url)
        return await self.classify(anchors)

    async def classify(self, anchors: Iterable[Anchor]) -> list[StreamLink]:
        """Classify anchors; never raises."""
        links: list[StreamLink] = []
        pending: list[asyncio.Future[StreamLink | None]] = []
        total = misses = 0

        for anchor in anchors:
            total += 1
            href, text = anchor.href, anchor.text

            if is_excluded(href, text):
                log.debug("link_excluded", href=href, text=text)
                self._record(None, excluded=True)
                continue

            rule = (
                match_rule(href, text, self._rules)
                if href.startswith(("http://", "https://"))
                else None
            )
            if rule is not None and not _parseable(href):
                log.warning("link_malformed", href=href, text=text, server=rule.server)
                rule = None
            if rule is None:
                misses += 1
                log.debug("link_classification_miss", href=href, text=text)
                self._record(None)
                continue

            self._record(rule.server)
            if rule.action is LinkAction.PIXELDRAIN:
                links.append(StreamLink(rule.server, pixeldrain_api_url(href), rule.type))
            elif rule.action is LinkAction.HEAD_PROBE:
                pending.append(asyncio.ensure_future(self._probe_hubcloud(rule, href)))
            elif rule.action is LinkAction.HUBCDN and (
                is_gpdl_link(href) or is_pixel_link(href)
            ):
                pending.append(asyncio.ensure_future(self._resolve_hubcdn(rule, href)))
            else:
                links.append(StreamLink(rule.server, href, rule.type))

        if pending:
            results = await asyncio.gather(*pending, return_exceptions=True)
            for result in results:
                if isinstance(result, StreamLink):
                    links.append(result)
                elif isinstance(result, BaseException):
                    log.warning("link_branch_failed", error=repr(result))

        log.info("links_classified", anchors=total, links=len(links), misses=misses)
        return links

    def _record(self, server: str | None, *, excluded: bool = False) -> None:
        if self._metrics is not None:
            self._metrics.record_anchor(server, excluded=excluded)

    async def _probe_hubcloud(self, rule: LinkRule, href: str) -> StreamLink | None:
        """HEAD-follow a hubcloud link; the destination is its ``link=`` value."""
        try:
            resp = await self._http.head(
                href,
                headers=self._config.page_headers(with_cookies=True),
                follow_redirects=True,
                timeout=self._config.probe_timeout_seconds,
            )
        except httpx.HTTPError as exc:
            log.warning("hubcloud_head_probe_failed", href=href, error=str(exc))
            return None

        final_url = str(resp.url)
        destination = final_url.split("link=", 1)[1] if "link=" in final_url else ""
        return StreamLink(rule.server, destination or href, rule.type)

    async def _resolve_hubcdn(self, rule: LinkRule, href: str) -> StreamLink | None:
        final_url = await self._hubcdn.resolve(href)
        if final_url is None:
            return None
        return StreamLink(rule.server, final_url, rule.type)
