from __future__ import annotations

from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import FileResponse, JSONResponse, Response
from starlette.exceptions import HTTPException as StarletteHTTPException

from backend.errors import DramaError, message_for
from server.api.deps import get_settings
from server.api.middleware import (
    build_drama_error_handler,
    build_exception_handler,
    build_preflight_middleware,
    build_request_id_middleware,
    build_validation_error_handler,
)
from server.api.routers.dramas import router as dramas_router
from server.api.routers.health import router as health_router
from server.api.routers.search import router as search_router
from server.api.routers.stream import router as stream_router
from server.api.settings import Settings

_settings = get_settings()


def _frontend_file(settings: Settings, path: str) -> Path | None:
    """Fichero estático pedido si existe dentro de FRONTEND_DIR; si no, index.html."""
    root = settings.frontend_dir.resolve()
    rel = path.lstrip("/")
    if rel:
        candidate = (root / rel).resolve()
        if candidate.is_file() and candidate.is_relative_to(root):
            return candidate
    return settings.frontend_index()


def build_http_exception_handler(settings: Settings):
    async def handler(request: Request, exc: Exception) -> Response:
        status = getattr(exc, "status_code", 500)
        path = request.url.path

        if status == 404:
            if settings.api_prefix and (path == settings.api_prefix or path.startswith(settings.api_prefix + "/")):
                return JSONResponse(status_code=404, content={"error": message_for("api_not_found"), "path": path})
            if request.method in ("GET", "HEAD"):
                target = _frontend_file(settings, path)
                if target is not None:
                    return FileResponse(target)
            return JSONResponse(status_code=404, content={"error": "Not Found", "path": path})

        detail = getattr(exc, "detail", None)
        return JSONResponse(status_code=status, content={"error": str(detail or "Error")})

    return handler


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or _settings
    app = FastAPI(title="DramaBox API", version="1.0.0")

    app.add_middleware(GZipMiddleware, minimum_size=max(0, settings.gzip_min_size))

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins(),
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Orden: request_id (exterior) -> preflight -> CORS -> GZip -> app
    app.middleware("http")(build_preflight_middleware(settings))
    app.middleware("http")(build_request_id_middleware(settings))

    app.add_exception_handler(DramaError, build_drama_error_handler(settings))
    app.add_exception_handler(RequestValidationError, build_validation_error_handler(settings))
    app.add_exception_handler(StarletteHTTPException, build_http_exception_handler(settings))
    app.add_exception_handler(Exception, build_exception_handler(settings))

    app.include_router(health_router)
    if settings.api_prefix:
        app.include_router(health_router, prefix=settings.api_prefix)
    app.include_router(dramas_router, prefix=settings.api_prefix)
    app.include_router(search_router, prefix=settings.api_prefix)
    app.include_router(stream_router, prefix=settings.api_prefix)

    return app


app = create_app()
