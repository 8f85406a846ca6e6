"""Redirect-chain resolver for the ``_wp_http`` countdown pages.

A redirect page hides its next hop in ``ck('_wp_http_N', ...)`` pieces.
Decoded, they yield a payload with a redirect base (``wp_http1``), a
nested token (``data``) and a countdown (``total_time``).  The hop is::

    GET {wp_http1}?re={b64(data)}

which only answers after the countdown has elapsed; before that (and
sometimes just transiently) the body says ``Invalid Request``.  A good
answer embeds ``var reurl = "..."`` pointing at the content page.

Waits are real ``asyncio.sleep`` suspensions.  The site enforces the
pacing server-side, so they cannot be skipped.
"""

from __future__ import annotations

import asyncio
import re

import httpx
import structlog

from hublinks.domain.entities.links import (
    DecodedPayload,
    DecodeError,
    RedirectCandidate,
    RedirectChainResult,
    RedirectOutcome,
    RedirectResponse,
)
from hublinks.infrastructure.config.schema import ResolverConfig
from hublinks.infrastructure.hoster_resolvers._cipher import (
    decode_token,
    encode,
    extract_ck_token,
)

log = structlog.get_logger(__name__)

INVALID_REQUEST_SENTINEL = "Invalid Request"

_REURL_RE = re.compile(r"var\s+reurl\s*=\s*[\"']([^\"']+)[\"']")


def compute_wait_seconds(total_time: float | None, margin: float = 3.0) -> float:
    """Seconds to wait before fetching the redirect hop.

    ``total_time`` is floored at 0 (missing counts as 0) before the
    margin is added, so the wait is never shorter than ``margin``:
    -10 → 3, 0 → 3, 5 → 8 with the default margin.
    """
    countdown = total_time if total_time is not None else 0.0
    return max(0.0, countdown) + margin


def build_intermediate_url(payload: DecodedPayload) -> str:
    """``{wp_http1}?re={b64(data)}``."""
    if not payload.wp_http1:
        raise DecodeError("payload has no redirect base (wp_http1)")
    return f"{payload.wp_http1}?re={encode(payload.data or '')}"


def extract_reurl(body: str) -> str | None:
    match = _REURL_RE.search(body)
    return match.group(1) if match else None


def classify_redirect_body(body: str) -> RedirectResponse:
    """Turn a redirect page body into a tagged outcome."""
    if INVALID_REQUEST_SENTINEL in body:
        return RedirectResponse(RedirectOutcome.TRANSIENT_REJECT)
    reurl = extract_reurl(body)
    if reurl:
        return RedirectResponse(RedirectOutcome.ACCEPTED, reurl=reurl)
    return RedirectResponse(RedirectOutcome.MALFORMED)


class RedirectChainResolver:
    """Follows one ``_wp_http`` redirect chain to its content page."""

    def __init__(self, http_client: httpx.AsyncClient, config: ResolverConfig) -> None:
        self._http = http_client
        self._config = config

    @property
    def _headers(self) -> dict[str, str]:
        return {"User-Agent": self._config.user_agent, "Accept": self._config.accept}

    async def resolve(self, link: str) -> str:
        """Fetch a redirect page, decode its token and follow the chain.

        Never raises.  Returns ``link`` unchanged when the page cannot be
        fetched or decoded.
        """
        try:
            resp = await self._http.get(link, headers=self._headers)
        except httpx.HTTPError as exc:
            log.warning("redirect_page_fetch_failed", url=link, error=str(exc))
            return link

        token = extract_ck_token(resp.text)
        if token is None:
            log.warning("redirect_page_no_token", url=link, status=resp.status_code)
            return link

        try:
            payload = decode_token(token)
        except DecodeError:
            log.warning("redirect_page_token_undecodable", url=link)
            return link

        return await self.resolve_redirect(payload, link)

    async def resolve_redirect(self, payload: DecodedPayload, source_url: str) -> str:
        """Resolve a decoded payload to its content URL.

        Never raises.  Returns ``source_url`` on unrecoverable failure.
        """
        result = await self.follow(payload, source_url)
        return result.final_url

    async def follow(
        self, payload: DecodedPayload, source_url: str
    ) -> RedirectChainResult:
        """Run the chain and report every fetch attempt.

        1. Wait ``max(0, total_time) + margin`` seconds.
        2. Build the intermediate URL from ``wp_http1`` and ``data``.
        3. Fetch; on ``Invalid Request`` wait ``retry_delay`` and retry,
           ``max_redirect_attempts`` fetches in total.
        4. ``reurl`` from the last body, else the intermediate URL.
        """
        wait = compute_wait_seconds(payload.total_time, self._config.wait_margin_seconds)
        log.debug("redirect_chain_wait", url=source_url, seconds=wait)
        await asyncio.sleep(wait)

        try:
            intermediate = build_intermediate_url(payload)
        except DecodeError:
            log.warning("redirect_chain_no_base", url=source_url)
            return RedirectChainResult(final_url=source_url)

        max_attempts = self._config.max_redirect_attempts
        candidates: list[RedirectCandidate] = []
        response = RedirectResponse(RedirectOutcome.MALFORMED)

        for attempt in range(1, max_attempts + 1):
            try:
                resp = await self._http.get(intermediate, headers=self._headers)
            except httpx.HTTPError as exc:
                candidates.append(
                    RedirectCandidate(attempt, intermediate, RedirectOutcome.NETWORK_ERROR)
                )
                log.warning(
                    "redirect_chain_fetch_failed",
                    url=intermediate,
                    attempt=attempt,
                    error=str(exc),
                )
                return RedirectChainResult(
                    final_url=source_url, candidates=tuple(candidates)
                )

            response = classify_redirect_body(resp.text)
            candidates.append(RedirectCandidate(attempt, intermediate, response.outcome))

            if response.outcome is not RedirectOutcome.TRANSIENT_REJECT:
                break
            if attempt < max_attempts:
                log.info("redirect_chain_retry", url=intermediate, attempt=attempt)
                await asyncio.sleep(self._config.retry_delay_seconds)
        else:
            log.warning(
                "redirect_chain_rejections_exhausted",
                url=intermediate,
                attempts=max_attempts,
            )

        final_url = response.reurl or intermediate
        log.info(
            "redirect_chain_resolved",
            url=intermediate,
            outcome=response.outcome.value,
            attempts=len(candidates),
            final_url=final_url,
        )
        return RedirectChainResult(final_url=final_url, candidates=tuple(candidates))
