from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body, Depends

from server.api.deps import get_drama_service
from server.api.services.dramas import DramaService

router = APIRouter()


@router.post("/search")
def search(
    payload: dict[str, Any] | None = Body(None),
    service: DramaService = Depends(get_drama_service),
) -> Any:
    """Body: {keyword, enhanced?}. Devuelve la lista de dramas."""
    return service.search(payload)


@router.post("/search-enhanced")
def search_enhanced(
    payload: dict[str, Any] | None = Body(None),
    service: DramaService = Depends(get_drama_service),
) -> Any:
    """Body: {keyword, page?=1, limit?=50}. Devuelve una página de resultados rankeados."""
    return service.search_enhanced(payload)
