"""Domain entities for link resolution.

Pure value objects: no framework dependencies, no I/O.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Literal, Mapping

ProviderName = Literal["hubcloud", "hdhub4u"]


@dataclass(frozen=True)
class ResolutionRequest:
    """An intermediate URL handed to a resolver, plus the site it came from."""

    url: str
    provider: ProviderName = "hubcloud"


@dataclass(frozen=True)
class StreamLink:
    """A terminal direct-download / stream URL tagged by hosting server."""

    server: str  # "Pixeldrain", "Cf Worker", "HubCdn", ...
    link: str
    type: str = "mkv"  # file extension or category ("mkv", "mp4", "zip", "redirect")
    copyable: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "server": self.server,
            "link": self.link,
            "type": self.type,
            "copyable": self.copyable,
        }


def _optional_str(value: Any) -> str | None:
    if isinstance(value, str) and value:
        return value
    return None


def _optional_seconds(value: Any) -> float | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        seconds = float(value)
    elif isinstance(value, str):
        try:
            seconds = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    return seconds if math.isfinite(seconds) else None


@dataclass(frozen=True)
class DecodedPayload:
    """JSON object recovered from an encoded page token.

    Every field is optional; the source pages only populate the ones
    relevant to their hop.

    Fallback order:
        - ``wp_http1``: ``wp_http1`` key, then ``wp_http``.
        - ``total_time``: numeric value or numeric string, else ``None``.
    """

    data: str | None = None  # nested token appended to the redirect base
    wp_http1: str | None = None  # redirect base URL
    total_time: float | None = None  # countdown hint (seconds)
    o: str | None = None  # base64 of the next hop URL

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> DecodedPayload:
        return cls(
            data=_optional_str(raw.get("data")),
            wp_http1=_optional_str(raw.get("wp_http1"))
            or _optional_str(raw.get("wp_http")),
            total_time=_optional_seconds(raw.get("total_time")),
            o=_optional_str(raw.get("o")),
        )


class RedirectOutcome(str, Enum):
    """How a fetched redirect hop was judged."""

    ACCEPTED = "accepted"
    TRANSIENT_REJECT = "transient_reject"
    MALFORMED = "malformed"
    NETWORK_ERROR = "network_error"


@dataclass(frozen=True)
class RedirectResponse:
    """Tagged classification of a redirect page body."""

    outcome: RedirectOutcome
    reurl: str | None = None


@dataclass(frozen=True)
class RedirectCandidate:
    """One fetch attempt in a redirect chain."""

    attempt: int  # 1-based
    url: str
    outcome: RedirectOutcome


@dataclass(frozen=True)
class RedirectChainResult:
    """Outcome of a full redirect chain run."""

    final_url: str
    candidates: tuple[RedirectCandidate, ...] = ()

    @property
    def attempts(self) -> int:
        return len(self.candidates)


class LinkResolutionError(Exception):
    """Base error for link resolution."""


class DecodeError(LinkResolutionError):
    """Token did not survive the cipher pipeline nor its degraded fallback."""


class ExtractionError(LinkResolutionError):
    """An expected marker was missing from a fetched page."""
