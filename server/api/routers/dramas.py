from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Query

from server.api.deps import get_drama_service
from server.api.services.dramas import DramaService, parse_page

router = APIRouter()


@router.get("/latest")
def latest(
    page: str | None = Query(None, description="Página (entero >= 1; inválido -> 1)"),
    service: DramaService = Depends(get_drama_service),
) -> Any:
    return service.latest(parse_page(page))


@router.get("/latest/{page}")
def latest_page(page: str, service: DramaService = Depends(get_drama_service)) -> Any:
    return service.latest(parse_page(page))


@router.get("/all-movies")
def all_movies(
    page: str | None = Query(None),
    service: DramaService = Depends(get_drama_service),
) -> Any:
    return service.all_movies(parse_page(page))


@router.get("/comprehensive-dramas")
def comprehensive_dramas(service: DramaService = Depends(get_drama_service)) -> Any:
    return service.comprehensive()


@router.get("/dramas-by-genre/{genre}")
def dramas_by_genre(genre: str, service: DramaService = Depends(get_drama_service)) -> Any:
    return service.by_genre(genre)
