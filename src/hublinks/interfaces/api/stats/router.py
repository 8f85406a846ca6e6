"""Resolver metrics endpoint."""

from __future__ import annotations

from typing import Any, cast

from fastapi import APIRouter, Request

from hublinks.interfaces.app_state import AppState

router = APIRouter(prefix="/stats", tags=["stats"])


@router.get("/resolvers")
async def resolver_stats(request: Request) -> dict[str, Any]:
    """Return per-resolver counters and classifier tallies since startup."""
    state = cast(AppState, request.app.state)
    return state.metrics.snapshot()
