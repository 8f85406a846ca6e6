"""Composition root: dependency injection via FastAPI lifespan."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator, cast

import httpx
import structlog
from fastapi import FastAPI

from hublinks.infrastructure.hoster_resolvers import HDHub4uResolver, HubCloudResolver
from hublinks.infrastructure.hoster_resolvers.classifier import LinkClassifier
from hublinks.infrastructure.hoster_resolvers.hubcdn import HubCdnResolver
from hublinks.infrastructure.hoster_resolvers.redirect_chain import (
    RedirectChainResolver,
)
from hublinks.infrastructure.metrics import MetricsCollector
from hublinks.interfaces.app_state import AppState

log = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Lifespan Hook: Initialize and cleanup all resources (DI Composition Root).

    Order matters:
        1. Metrics (recorded into by the resolvers)
        2. HTTP client
        3. Shared resolver parts (redirect chain, HubCdn lookups)
        4. Provider resolvers
    """
    state = cast(AppState, app.state)
    config = state.config

    # 1) Metrics collector
    state.metrics = MetricsCollector()

    # 2) HTTP client; resolvers set their own browser headers per request
    state.http_client = httpx.AsyncClient(
        timeout=httpx.Timeout(config.http_timeout_seconds),
        headers={"User-Agent": config.http_user_agent},
        follow_redirects=config.http_follow_redirects,
    )
    log.info(
        "http_client_initialized",
        timeout=config.http_timeout_seconds,
        follow_redirects=config.http_follow_redirects,
    )

    # 3) Shared resolver parts
    resolver_config = config.resolver
    chain = RedirectChainResolver(state.http_client, resolver_config)
    hubcdn = HubCdnResolver(state.http_client, resolver_config)
    classifier = LinkClassifier(
        state.http_client, resolver_config, hubcdn=hubcdn, metrics=state.metrics
    )

    # 4) Provider resolvers
    state.hubcloud_resolver = HubCloudResolver(
        state.http_client,
        resolver_config,
        metrics=state.metrics,
        chain=chain,
        classifier=classifier,
    )
    state.hdhub4u_resolver = HDHub4uResolver(
        state.http_client,
        resolver_config,
        metrics=state.metrics,
        chain=chain,
        hubcdn=hubcdn,
    )
    log.info(
        "resolvers_initialized",
        resolve_timeout=resolver_config.resolve_timeout_seconds,
        api_key_check=bool(config.api_keys),
    )

    log.info("app_startup_complete")

    try:
        yield
    finally:
        await state.http_client.aclose()
        log.info("http_client_closed")

        log.info("app_shutdown_complete")
