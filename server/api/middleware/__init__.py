from __future__ import annotations

from server.api.middleware.errors import (
    build_drama_error_handler,
    build_exception_handler,
    build_validation_error_handler,
)
from server.api.middleware.preflight import build_preflight_middleware
from server.api.middleware.request_id import build_request_id_middleware

__all__ = [
    "build_drama_error_handler",
    "build_exception_handler",
    "build_preflight_middleware",
    "build_request_id_middleware",
    "build_validation_error_handler",
]
