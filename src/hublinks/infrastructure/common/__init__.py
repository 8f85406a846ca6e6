"""Common infrastructure utilities."""

from __future__ import annotations

from .html_selectors import (
    Anchor,
    extract_anchors,
    extract_attr,
    extract_parent_attr,
    parse_html,
)

__all__ = [
    "Anchor",
    "extract_anchors",
    "extract_attr",
    "extract_parent_attr",
    "parse_html",
]
