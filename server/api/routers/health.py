from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from fastapi import APIRouter, Response

from server.api.services import metrics

router = APIRouter()


@router.get("/health")
def health() -> dict[str, Any]:
    return {"status": "OK", "timestamp": datetime.now(timezone.utc).isoformat()}


@router.get("/metrics")
def metrics_endpoint() -> Response:
    body = metrics.render_prometheus()
    return Response(content=body, media_type="text/plain; version=0.0.4")
