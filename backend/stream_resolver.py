from __future__ import annotations

"""
backend/stream_resolver.py

(bookId, episodeIndex) -> URL reproducible.

Prioridad de calidad: 720p > isDefault == 1 > 540p > primera entrada.
El detalle del upstream solo va a logs; al cliente llega el mensaje del catálogo.
"""

from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from backend import logger
from backend.dramabox_client import get_client
from backend.errors import StreamFetchError, StreamNotFoundError, UpstreamError
from backend.run_metrics import METRICS

ChapterLoader = Callable[[str, int], Mapping[str, Any]]


@dataclass(frozen=True)
class StreamLink:
    url: str
    episode_number: int
    qualities: list[dict[str, Any]] = field(default_factory=list)
    cdn_domain: str | None = None

    @property
    def title(self) -> str:
        return f"Episode {self.episode_number}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "url": self.url,
            "title": self.title,
            "duration": 0,
            "episodeNumber": self.episode_number,
            "qualities": self.qualities,
            "cdnDomain": self.cdn_domain,
        }


def select_video_path(paths: Sequence[Mapping[str, Any]]) -> Mapping[str, Any] | None:
    if not paths:
        return None

    def _first(pred: Callable[[Mapping[str, Any]], bool]) -> Mapping[str, Any] | None:
        return next((p for p in paths if pred(p)), None)

    return (
        _first(lambda p: p.get("quality") == 720)
        or _first(lambda p: p.get("isDefault") == 1)
        or _first(lambda p: p.get("quality") == 540)
        or paths[0]
    )


def _load_chapter(book_id: str, episode_index: int) -> Mapping[str, Any]:
    return get_client().fetch_stream(book_id, episode_index)


def resolve_stream(
    book_id: str,
    episode_index: int,
    *,
    load: ChapterLoader | None = None,
) -> StreamLink:
    loader = load or _load_chapter
    METRICS.incr("pipeline.stream.requests")

    try:
        data = loader(book_id, episode_index)
    except UpstreamError as exc:
        METRICS.incr("pipeline.stream.errors")
        logger.error(f"Error getting stream link for {book_id} ep={episode_index}: {exc.detail or exc}")
        raise StreamFetchError() from exc

    chapters = data.get("chapterList") if isinstance(data, Mapping) else None
    chapter = chapters[0] if isinstance(chapters, list) and chapters else None
    cdn_list = chapter.get("cdnList") if isinstance(chapter, Mapping) else None
    if not isinstance(cdn_list, list) or not cdn_list or not isinstance(cdn_list[0], Mapping):
        METRICS.incr("pipeline.stream.not_found")
        logger.warning(f"No stream for {book_id} ep={episode_index}")
        raise StreamNotFoundError()

    cdn = cdn_list[0]
    raw_paths = cdn.get("videoPathList")
    paths = [p for p in raw_paths if isinstance(p, dict)] if isinstance(raw_paths, list) else []
    selected = select_video_path(paths)

    url = ""
    if selected is not None:
        url = str(selected.get("videoPath") or "")

    cdn_domain = cdn.get("cdnDomain")
    return StreamLink(
        url=url,
        episode_number=episode_index,
        qualities=paths,
        cdn_domain=str(cdn_domain) if cdn_domain is not None else None,
    )
