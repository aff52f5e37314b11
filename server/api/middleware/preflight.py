from __future__ import annotations

"""
server/api/middleware/preflight.py

Cualquier OPTIONS se responde 200 con body vacío + cabeceras CORS, sin
llegar a los routers (el front-end lanza preflights a rutas arbitrarias).
"""

from collections.abc import Awaitable, Callable

from fastapi import Request, Response

from server.api.services import metrics
from server.api.settings import Settings

CallNext = Callable[[Request], Awaitable[Response]]
Middleware = Callable[[Request, CallNext], Awaitable[Response]]

ALLOW_METHODS = "GET, POST, PUT, DELETE, OPTIONS"
ALLOW_HEADERS = "Content-Type, Authorization, X-Request-ID"


def _allow_origin(settings: Settings, origin: str | None) -> str | None:
    allowed = settings.cors_allow_origins()
    if allowed == ["*"]:
        return "*"
    if origin and origin in allowed:
        return origin
    return None


def build_preflight_middleware(settings: Settings) -> Middleware:
    async def middleware(request: Request, call_next: CallNext) -> Response:
        if request.method != "OPTIONS":
            return await call_next(request)

        metrics.inc("http_preflight_total", 1)
        headers = {
            "Access-Control-Allow-Methods": ALLOW_METHODS,
            "Access-Control-Allow-Headers": ALLOW_HEADERS,
        }
        origin = _allow_origin(settings, request.headers.get("origin"))
        if origin is not None:
            headers["Access-Control-Allow-Origin"] = origin
            if origin != "*":
                headers["Vary"] = "Origin"
                if settings.cors_allow_credentials:
                    headers["Access-Control-Allow-Credentials"] = "true"

        return Response(status_code=200, headers=headers)

    return middleware
