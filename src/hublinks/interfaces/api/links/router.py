"""Link resolution endpoints.

GET /api/v1/extractors/hubcloud?url=...
GET /api/v1/hdhub4u/stream?url=...
"""

from __future__ import annotations

from typing import cast

import structlog
from fastapi import APIRouter, Query, Request
from fastapi.responses import JSONResponse

from hublinks.domain.entities import ResolutionRequest, StreamLink
from hublinks.interfaces.app_state import AppState

log = structlog.get_logger(__name__)

router = APIRouter(tags=["links"])


def _missing_url() -> JSONResponse:
    return JSONResponse(
        status_code=400,
        content={"success": False, "error": "URL parameter is required"},
    )


async def _resolve(state: AppState, req: ResolutionRequest) -> list[StreamLink]:
    resolver = (
        state.hubcloud_resolver if req.provider == "hubcloud" else state.hdhub4u_resolver
    )
    log.debug("resolution_requested", url=req.url, provider=req.provider)
    return await resolver.resolve(req.url)


def _extractor_entry(link: StreamLink) -> dict[str, object]:
    return {
        "name": link.server,
        "link": link.link,
        "type": link.type,
        "server": link.server,
        "isDirect": True,
    }


@router.get("/extractors/hubcloud")
async def hubcloud_links(
    request: Request,
    url: str | None = Query(default=None, description="HubCloud page URL."),
) -> JSONResponse:
    """Resolve a HubCloud page to its direct download links."""
    if not url:
        return _missing_url()

    state = cast(AppState, request.app.state)
    links = await _resolve(state, ResolutionRequest(url, "hubcloud"))

    if not links:
        return JSONResponse(
            content={
                "success": False,
                "error": "No stream links found",
                "links": [],
            }
        )
    return JSONResponse(
        content={"success": True, "links": [_extractor_entry(link) for link in links]}
    )


@router.get("/hdhub4u/stream")
async def hdhub4u_stream(
    request: Request,
    url: str | None = Query(default=None, description="HDHub4u episode URL."),
) -> JSONResponse:
    """Resolve an HDHub4u episode or movie link to stream links."""
    if not url:
        return _missing_url()

    state = cast(AppState, request.app.state)
    links = await _resolve(state, ResolutionRequest(url, "hdhub4u"))

    if not links:
        log.info("hdhub4u_stream_empty", url=url)
        return JSONResponse(
            content={
                "success": False,
                "error": "No stream links found",
                "message": "No streaming links could be extracted from the provided URL",
            }
        )
    return JSONResponse(
        content={
            "success": True,
            "data": {
                "episodeUrl": url,
                "streamLinks": [link.to_dict() for link in links],
            },
        }
    )
