"""FastAPI application factory (create_app)."""

from __future__ import annotations

import time
from collections.abc import Awaitable, Callable

import structlog
from fastapi import FastAPI, Request
from starlette.responses import Response

from hublinks.infrastructure.config import AppConfig
from hublinks.interfaces.api.middleware import ApiKeyMiddleware
from hublinks.interfaces.app_state import AppState
from hublinks.interfaces.composition import lifespan

log = structlog.get_logger(__name__)


def create_app(config: AppConfig) -> FastAPI:
    """Create FastAPI app: configuration only, no resource initialization.

    Resources (HTTP client, resolvers, metrics) are created in lifespan().
    """
    app = FastAPI(
        title="hublinks",
        description="HubCloud / HDHub4u stream link resolver",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.state = AppState()
    app.state.config = config

    if config.api_keys:
        app.add_middleware(ApiKeyMiddleware, api_keys=config.api_keys)

    from hublinks.interfaces.api.links.router import router as links_router
    from hublinks.interfaces.api.stats.router import router as stats_router

    app.include_router(links_router, prefix="/api/v1")
    app.include_router(stats_router, prefix="/api/v1")

    @app.get("/api/v1/healthz")
    async def healthz() -> dict[str, str | list[str]]:
        """Liveness probe."""
        resolvers = [
            r.name
            for r in (
                getattr(app.state, "hubcloud_resolver", None),
                getattr(app.state, "hdhub4u_resolver", None),
            )
            if r is not None
        ]
        return {"status": "ok", "resolvers": resolvers}

    @app.middleware("http")
    async def log_requests(
        request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ):
        start = time.perf_counter()
        try:
            response = await call_next(request)
            return response
        finally:
            duration_ms = (time.perf_counter() - start) * 1000.0
            status_code = getattr(locals().get("response", None), "status_code", 500)

            log.info(
                "http_request",
                method=request.method,
                path=request.url.path,
                status_code=status_code,
                duration_ms=round(duration_ms, 2),
                client_host=(request.client.host if request.client else None),
            )

    return app
