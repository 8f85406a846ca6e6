"""Shared steps for getting from a redirector link to a hubcloud drive link.

Both the hubcloud and the hdhub4u resolvers start from gadgetsweb-style
redirector pages (``s('o','<token>',180``), run the ``_wp_http`` redirect
chain and then look for the hubcloud link on the page they land on.
"""

from __future__ import annotations

import re

import httpx
import structlog

from hublinks.domain.entities.links import DecodeError, ExtractionError
from hublinks.infrastructure.common.html_selectors import extract_attr, parse_html
from hublinks.infrastructure.config.schema import ResolverConfig
from hublinks.infrastructure.hoster_resolvers._cipher import (
    b64decode,
    decode_token,
    extract_o_token,
)
from hublinks.infrastructure.hoster_resolvers.redirect_chain import (
    RedirectChainResolver,
)

log = structlog.get_logger(__name__)

# Tried after the CSS selectors; the last match of the first fruitful pattern wins.
_HUBCLOUD_HREF_PATTERNS = (
    re.compile(r'href="(https://hubcloud\.[^/]+/drive/[^"]+)"'),
    re.compile(r'href="(https://[^"]*hubdrive[^"]*)"'),
    re.compile(r'href="(https://[^"]*drive[^"]*[a-zA-Z0-9]+)"'),
)


def is_hubcloud_drive_link(url: str) -> bool:
    return "hubcloud" in url and "/drive/" in url


def find_hubcloud_link(html: str) -> str | None:
    """Locate the hubcloud/hubdrive link on a content page."""
    link = extract_attr(
        parse_html(html),
        'h3:-soup-contains("1080p") a',
        "href",
        'a[href*="hubdrive"]',
        'a[href*="hubcloud"]',
        'a[href*="drive"]',
    )
    if link:
        return link

    for pattern in _HUBCLOUD_HREF_PATTERNS:
        matches = pattern.findall(html)
        if matches:
            return matches[-1]
    return None


async def decode_redirector(
    http_client: httpx.AsyncClient, config: ResolverConfig, url: str
) -> str:
    """Fetch a redirector page and return the next hop hidden in its token.

    Raises ``ExtractionError``/``DecodeError`` for unusable pages and
    ``httpx.HTTPError`` for network failures.
    """
    resp = await http_client.get(url, headers={"User-Agent": config.user_agent})
    token = extract_o_token(resp.text)
    if token is None:
        raise ExtractionError(f"no redirector token on {url}")

    payload = decode_token(token)
    if payload.o is None:
        raise DecodeError("decoded redirector payload has no 'o' field")

    try:
        next_hop = b64decode(payload.o)
    except ValueError as exc:
        raise DecodeError("redirector 'o' field is not base64") from exc
    log.debug("redirector_decoded", url=url, next_hop=next_hop)
    return next_hop


async def follow_to_hubcloud(
    http_client: httpx.AsyncClient,
    config: ResolverConfig,
    chain: RedirectChainResolver,
    url: str,
) -> str | None:
    """Redirector page → redirect chain → hubcloud link (or ``None``).

    Raises like ``decode_redirector``.
    """
    next_hop = await decode_redirector(http_client, config, url)
    content_url = await chain.resolve(next_hop)

    if is_hubcloud_drive_link(content_url):
        return content_url

    resp = await http_client.get(
        content_url, headers={"User-Agent": config.user_agent}
    )
    link = find_hubcloud_link(resp.text)
    if link is None:
        log.warning("hubcloud_link_not_found", url=content_url)
    return link
