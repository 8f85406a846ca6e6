"""Link resolver implementations for the HubCloud / HDHub4u family."""

from __future__ import annotations

from .classifier import LinkClassifier
from .hdhub4u import HDHub4uResolver
from .hubcloud import HubCloudResolver
from .redirect_chain import RedirectChainResolver

__all__ = [
    "HDHub4uResolver",
    "HubCloudResolver",
    "LinkClassifier",
    "RedirectChainResolver",
]
