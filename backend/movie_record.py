from __future__ import annotations

"""
backend/movie_record.py

MovieRecord: representación normalizada de un título del upstream.

- Inmutable (frozen): un record insertado en un RecordAccumulator no se toca.
  Re-etiquetar (source) crea una copia con dataclasses.replace antes de insertar.
- `book_id` es la identidad; `source` es solo procedencia informativa.
- Los campos que el upstream no da se rellenan con la política de defaults de
  backend/config_catalog.py (no son datos reales).

Normalizadores:
- record_from_theater(raw, channel_id=..., page_no=...)   (he001/theater)
- record_from_search(raw)                                 (search/suggest)
"""

from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any

from backend.config_catalog import (
    CORNER_NEW_NAME,
    RANK_TYPE_POPULAR,
    RECORD_DEFAULT_CHAPTER_COUNT,
    RECORD_DEFAULT_DESCRIPTION,
    RECORD_DEFAULT_DURATION,
    RECORD_DEFAULT_GENRE,
    RECORD_DEFAULT_PLAY_COUNT,
    RECORD_DEFAULT_POSTER,
    RECORD_DEFAULT_QUALITY,
    RECORD_DEFAULT_TITLE,
)


def _current_year() -> int:
    return datetime.now().year


@dataclass(frozen=True)
class MovieRecord:
    book_id: str
    title: str = RECORD_DEFAULT_TITLE
    description: str = RECORD_DEFAULT_DESCRIPTION
    poster_url: str = RECORD_DEFAULT_POSTER
    chapter_count: int = RECORD_DEFAULT_CHAPTER_COUNT
    rating: float = 0.0
    genre: str = RECORD_DEFAULT_GENRE
    play_count: str = RECORD_DEFAULT_PLAY_COUNT
    year: int = field(default_factory=_current_year)
    quality: str = RECORD_DEFAULT_QUALITY
    duration: str = RECORD_DEFAULT_DURATION
    is_new: bool = False
    is_popular: bool = False
    source: str | None = None

    # Passthroughs opcionales del upstream / de la procedencia
    protagonist: str | None = None
    corner: Mapping[str, Any] | None = None
    rank_vo: Mapping[str, Any] | None = None
    channel_id: int | None = None
    page_source: int | None = None
    keyword: str | None = None

    def with_source(self, source: str | None, *, keyword: str | None = None) -> "MovieRecord":
        if source is None and keyword is None:
            return self
        return replace(
            self,
            source=source if source is not None else self.source,
            keyword=keyword if keyword is not None else self.keyword,
        )

    def matches(self, keyword: str) -> bool:
        """Keyword (case-insensitive) en title, genre o description."""
        kw = keyword.lower()
        return kw in self.title.lower() or kw in self.genre.lower() or kw in self.description.lower()

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "bookId": self.book_id,
            "title": self.title,
            "chapterCount": self.chapter_count,
            "poster": self.poster_url,
            "description": self.description,
            "rating": self.rating,
            "genre": self.genre,
            "playCount": self.play_count,
            "year": self.year,
            "quality": self.quality,
            "duration": self.duration,
            "isNew": self.is_new,
            "isPopular": self.is_popular,
        }
        optional = {
            "source": self.source,
            "protagonist": self.protagonist,
            "corner": dict(self.corner) if self.corner is not None else None,
            "rankVo": dict(self.rank_vo) if self.rank_vo is not None else None,
            "channelId": self.channel_id,
            "pageSource": self.page_source,
            "keyword": self.keyword,
        }
        out.update({k: v for k, v in optional.items() if v is not None})
        return out


# ============================================================
# Helpers de normalización
# ============================================================


def _str_or(value: object, default: str) -> str:
    if value is None:
        return default
    s = str(value).strip()
    return s or default


def _int_or(value: object, default: int) -> int:
    if isinstance(value, bool):
        return default
    try:
        return max(0, int(str(value).replace(",", "").strip()))
    except (TypeError, ValueError):
        return default


def _float_or_zero(value: object) -> float:
    if value is None or isinstance(value, bool):
        return 0.0
    try:
        return float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return 0.0


def join_tags(tags: object) -> str:
    """["Romance", "CEO"] -> "Romance, CEO". Sin tags -> "Drama"."""
    if not isinstance(tags, list):
        return RECORD_DEFAULT_GENRE
    parts = [str(t).strip() for t in tags if t is not None and str(t).strip()]
    return ", ".join(parts) if parts else RECORD_DEFAULT_GENRE


def _mapping_or_none(value: object) -> Mapping[str, Any] | None:
    return value if isinstance(value, Mapping) else None


def _book_id(raw: Mapping[str, Any]) -> str:
    v = raw.get("bookId")
    return "" if v is None else str(v).strip()


def record_from_theater(
    raw: Mapping[str, Any],
    *,
    channel_id: int | None = None,
    page_no: int | None = None,
) -> MovieRecord:
    corner = _mapping_or_none(raw.get("corner"))
    rank_vo = _mapping_or_none(raw.get("rankVo"))
    play_count = raw.get("playCount")

    return MovieRecord(
        book_id=_book_id(raw),
        title=_str_or(raw.get("bookName"), RECORD_DEFAULT_TITLE),
        description=_str_or(raw.get("introduction"), RECORD_DEFAULT_DESCRIPTION),
        poster_url=_str_or(raw.get("coverWap"), RECORD_DEFAULT_POSTER),
        chapter_count=_int_or(raw.get("chapterCount"), RECORD_DEFAULT_CHAPTER_COUNT),
        rating=_float_or_zero(raw.get("score")),
        genre=join_tags(raw.get("tags")),
        play_count=_str_or(play_count, RECORD_DEFAULT_PLAY_COUNT),
        is_new=bool(corner and corner.get("name") == CORNER_NEW_NAME),
        is_popular=bool(rank_vo and rank_vo.get("rankType") == RANK_TYPE_POPULAR),
        corner=corner,
        rank_vo=rank_vo,
        channel_id=channel_id,
        page_source=page_no,
    )


def record_from_search(raw: Mapping[str, Any]) -> MovieRecord:
    # search/suggest no trae chapterCount ni playCount: defaults de la política.
    protagonist = raw.get("protagonist")
    return MovieRecord(
        book_id=_book_id(raw),
        title=_str_or(raw.get("bookName"), RECORD_DEFAULT_TITLE),
        description=_str_or(raw.get("introduction"), RECORD_DEFAULT_DESCRIPTION),
        poster_url=_str_or(raw.get("cover"), RECORD_DEFAULT_POSTER),
        rating=_float_or_zero(raw.get("score")),
        genre=join_tags(raw.get("tagNames")),
        protagonist=str(protagonist) if protagonist is not None else None,
    )
