from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body, Depends

from server.api.deps import get_drama_service
from server.api.services.dramas import DramaService

router = APIRouter()


@router.post("/stream")
def stream(
    payload: dict[str, Any] | None = Body(None),
    service: DramaService = Depends(get_drama_service),
) -> Any:
    return service.stream(payload)
