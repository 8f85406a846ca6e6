"""CSS-selector-based HTML extraction with fallback chains.

Thin helpers over BeautifulSoup used by the resolvers to read landing
pages.  Functions taking several selectors try them in order; the first
selector that yields a usable value wins.
"""

from __future__ import annotations

from dataclasses import dataclass
from urllib.parse import urljoin

from bs4 import BeautifulSoup, Tag


@dataclass(frozen=True)
class Anchor:
    """An ``<a>`` element reduced to what the classifier needs."""

    href: str
    text: str


def parse_html(html: str) -> BeautifulSoup:
    """Parse an HTML string into a BeautifulSoup tree (lxml parser)."""
    return BeautifulSoup(html, "lxml")


def extract_attr(
    root: BeautifulSoup | Tag,
    selector: str,
    attr: str,
    *fallback_selectors: str,
    default: str = "",
) -> str:
    """Return *attr* of the first element matching the first fruitful selector."""
    for sel in (selector, *fallback_selectors):
        match = root.select_one(sel)
        if match is not None:
            val = match.get(attr)
            if val:
                return str(val)
    return default


def extract_parent_attr(
    root: BeautifulSoup | Tag,
    selector: str,
    attr: str,
    default: str = "",
) -> str:
    """Return *attr* of the parent of the first element matching *selector*.

    Used for icon markup like ``<a href=...><i class="fa-file-download"></i></a>``.
    """
    match = root.select_one(selector)
    if match is None or match.parent is None:
        return default
    val = match.parent.get(attr)
    return str(val) if val else default


def extract_anchors(
    root: BeautifulSoup | Tag,
    selector: str = "a[href]",
    *,
    base_url: str = "",
) -> list[Anchor]:
    """Return every element matching *selector* that carries an ``href``.

    Document order is preserved.  Relative hrefs are joined onto
    *base_url* when one is given; an href urljoin rejects is kept as written.
    """
    anchors: list[Anchor] = []
    for tag in root.select(selector):
        href = tag.get("href")
        if not href:
            continue
        href_str = str(href).strip()
        if base_url:
            try:
                href_str = urljoin(base_url, href_str)
            except ValueError:
                # Malformed netloc (e.g. an unclosed "[" host); callers
                # decide what to do with the raw href.
                href_str = str(href).strip()
        anchors.append(Anchor(href=href_str, text=tag.get_text(" ", strip=True)))
    return anchors
