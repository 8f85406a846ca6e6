"""Application state container for FastAPI dependency injection."""

from __future__ import annotations

from typing import TYPE_CHECKING

import httpx
from starlette.datastructures import State

from hublinks.infrastructure.config import AppConfig

if TYPE_CHECKING:
    from hublinks.domain.ports import LinkResolverPort
    from hublinks.infrastructure.metrics import MetricsCollector


class AppState(State):
    """FastAPI application state with all DI resources.

    Lifecycle managed by composition.py::lifespan().
    """

    # Configuration
    config: AppConfig

    # Infrastructure
    http_client: httpx.AsyncClient

    # Resolvers
    hubcloud_resolver: LinkResolverPort
    hdhub4u_resolver: LinkResolverPort

    # Metrics (zero-impact in-memory counters)
    metrics: MetricsCollector
