"""FastAPI middleware for API key checks."""

from __future__ import annotations

import hmac
from collections.abc import Iterable

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

log = structlog.get_logger(__name__)

_EXEMPT_PATHS = frozenset({"/api/v1/healthz", "/docs", "/openapi.json"})


def extract_api_key(request: Request) -> str | None:
    """Read the key from ``x-api-key``, ``Authorization: Bearer`` or ``?api_key=``."""
    key = request.headers.get("x-api-key")
    if key:
        return key
    auth = request.headers.get("authorization", "")
    if auth.startswith("Bearer "):
        token = auth.removeprefix("Bearer ").strip()
        if token:
            return token
    return request.query_params.get("api_key") or None


def unauthorized_response(error: str) -> JSONResponse:
    return JSONResponse(
        status_code=401,
        content={
            "success": False,
            "error": error,
            "code": "UNAUTHORIZED",
            "message": "Please provide a valid API key to access this endpoint",
        },
        headers={"WWW-Authenticate": 'Bearer realm="API Key Required"'},
    )


class ApiKeyMiddleware(BaseHTTPMiddleware):
    """Rejects requests without one of the configured API keys.

    An empty key set disables the check.  Health and docs routes are
    always open.

    Args:
        app: ASGI application.
        api_keys: Accepted keys.
    """

    def __init__(self, app: object, api_keys: Iterable[str] = ()) -> None:
        super().__init__(app)  # type: ignore[arg-type]
        self._keys = tuple(k for k in api_keys if k)

    def _is_valid(self, key: str) -> bool:
        return any(hmac.compare_digest(key, k) for k in self._keys)

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if not self._keys or request.url.path in _EXEMPT_PATHS:
            return await call_next(request)

        key = extract_api_key(request)
        if key is None:
            log.warning("api_key_missing", path=request.url.path)
            return unauthorized_response(
                "API key is required. Provide it in x-api-key header, "
                "authorization header, or api_key query parameter."
            )

        if not self._is_valid(key):
            log.warning("api_key_invalid", path=request.url.path, key_preview=key[:8])
            return unauthorized_response(
                "Invalid API key. Please check your API key and try again."
            )

        return await call_next(request)
