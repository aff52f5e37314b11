# exception handlers ({error} + error_id)
from __future__ import annotations

import uuid
from typing import Any

from fastapi import Request
from fastapi.responses import JSONResponse

from backend.errors import DramaError, InvalidInputError, StreamNotFoundError, message_for
from server.api.logging_config import configure_logging
from server.api.services import metrics
from server.api.settings import Settings

def status_for(exc: DramaError, settings: Settings) -> int:
    if isinstance(exc, InvalidInputError):
        return 400
    if isinstance(exc, StreamNotFoundError) and settings.stream_not_found_as_404:
        return 404
    return 500


def build_drama_error_handler(settings: Settings):
    logger = configure_logging(settings)

    async def handler(request: Request, exc: Exception) -> JSONResponse:
        if not isinstance(exc, DramaError):
            raise exc
        status = status_for(exc, settings)
        if status >= 500:
            metrics.inc("http_errors_5xx_total", 1)
            logger.warning("drama_error %s: %s", request.url.path, exc, extra={"status": status})
        else:
            metrics.inc("http_errors_4xx_total", 1)
        return JSONResponse(status_code=status, content={"error": exc.message})

    return handler


def build_validation_error_handler(settings: Settings):
    logger = configure_logging(settings)

    async def handler(request: Request, exc: Exception) -> JSONResponse:
        metrics.inc("http_errors_4xx_total", 1)
        logger.info("validation_error %s: %s", request.url.path, exc)
        return JSONResponse(status_code=400, content={"error": message_for("bad_request")})

    return handler


def build_exception_handler(settings: Settings):
    logger = configure_logging(settings)

    async def handler(request: Request, exc: Exception) -> JSONResponse:
        error_id = uuid.uuid4().hex
        req_id = getattr(request.state, "request_id", None)

        logger.exception(
            "unhandled_exception",
            extra={"error_id": error_id, "request_id": req_id, "path": request.url.path},
        )
        metrics.inc("http_errors_5xx_total", 1)

        payload: dict[str, Any] = {"error": message_for("internal"), "error_id": error_id}
        if isinstance(req_id, str) and req_id:
            payload["request_id"] = req_id

        return JSONResponse(status_code=500, content=payload)

    return handler

