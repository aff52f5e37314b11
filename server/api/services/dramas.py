# validación de entrada + orquestación backend -> payload JSON
from __future__ import annotations

import logging
from collections.abc import Callable, Iterator, Mapping
from contextlib import contextmanager
from typing import Any

from backend.aggregator import collect_comprehensive, get_dramas_by_genre
from backend.catalog import (
    KeywordSearcher,
    TheaterFetcher,
    fetch_theater_records,
    get_all_movies_with_variation,
    get_latest_movies,
    search_records,
)
from backend.config_catalog import ALL_MOVIES_HAS_MORE_THRESHOLD
from backend.config_upstream import (
    AGGREGATOR_CHANNEL_DELAY_SECONDS,
    AGGREGATOR_KEYWORD_DELAY_SECONDS,
    SEARCH_PHASE_DELAY_SECONDS,
)
from backend.enhanced_search import enhanced_search, paginated_search
from backend.errors import DramaError, InvalidInputError, StreamNotFoundError, message_for
from backend.movie_record import MovieRecord
from backend.rate_limit import FixedIntervalGate
from backend.stream_resolver import ChapterLoader, resolve_stream

GateFactory = Callable[[float], FixedIntervalGate]

DEFAULT_SEARCH_PAGE_LIMIT = 50

_logger = logging.getLogger("dramabox_api")


def _records(items: list[MovieRecord]) -> list[dict[str, Any]]:
    return [r.to_dict() for r in items]


def parse_page(raw: object, default: int = 1) -> int:
    """Entero >= 1; cualquier otra cosa -> default."""
    if isinstance(raw, bool):
        return default
    try:
        value = int(str(raw).strip())
    except (TypeError, ValueError):
        return default
    return value if value >= 1 else default


def require_keyword(payload: Mapping[str, Any] | None) -> str:
    raw = (payload or {}).get("keyword")
    if not isinstance(raw, str):
        raise InvalidInputError(message_for("keyword_required"))
    keyword = raw.strip()
    if not keyword:
        raise InvalidInputError(message_for("keyword_blank"))
    return keyword


def require_stream_params(payload: Mapping[str, Any] | None) -> tuple[str, int]:
    data = payload or {}
    book_id = data.get("bookId")
    index = data.get("index")

    if isinstance(book_id, (int, float)) and not isinstance(book_id, bool):
        book_id = str(book_id)
    if not isinstance(book_id, str) or not book_id.strip():
        raise InvalidInputError(message_for("stream_params_required"))

    episode = parse_page(index, default=0)
    if episode <= 0:
        raise InvalidInputError(message_for("stream_params_required"))
    return book_id.strip(), episode


@contextmanager
def _failing_as(kind: str, **fmt: object) -> Iterator[None]:
    """
    Fallos inesperados -> DramaError con el mensaje de la operación.
    Entrada inválida y stream inexistente conservan su propio tipo.
    """
    try:
        yield
    except (InvalidInputError, StreamNotFoundError):
        raise
    except Exception as exc:
        _logger.error("%s failed: %r", kind, exc)
        raise DramaError(message_for(kind, **fmt)) from exc


class DramaService:
    """
    Fachada que usan los routers.

    `fetch`/`search`/`load` y `gate_factory` son inyectables: los tests
    montan la app con fakes y gates de intervalo 0.
    """

    def __init__(
        self,
        *,
        fetch: TheaterFetcher | None = None,
        search: KeywordSearcher | None = None,
        load: ChapterLoader | None = None,
        gate_factory: GateFactory = FixedIntervalGate,
    ) -> None:
        self._fetch = fetch or fetch_theater_records
        self._search = search or search_records
        self._load = load
        self._gate_factory = gate_factory

    # --------------------------------------------------------
    # Listados
    # --------------------------------------------------------

    def latest(self, page: int = 1) -> list[dict[str, Any]]:
        with _failing_as("latest"):
            return _records(get_latest_movies(page, fetch=self._fetch))

    def all_movies(self, page: int = 1) -> dict[str, Any]:
        with _failing_as("all_movies"):
            movies = get_all_movies_with_variation(page, fetch=self._fetch)
        return {
            "movies": _records(movies),
            "currentPage": page,
            "hasMore": len(movies) >= ALL_MOVIES_HAS_MORE_THRESHOLD,
            "totalLoaded": len(movies),
            "strategy": "variation",
        }

    def comprehensive(self) -> dict[str, Any]:
        with _failing_as("comprehensive"):
            result = collect_comprehensive(
                search=self._search,
                fetch=self._fetch,
                keyword_gate=self._gate_factory(AGGREGATOR_KEYWORD_DELAY_SECONDS),
                channel_gate=self._gate_factory(AGGREGATOR_CHANNEL_DELAY_SECONDS),
            )
        return {
            "dramas": _records(result.dramas),
            "totalCount": result.total,
            "strategy": "comprehensive",
            "sources": dict(result.counts),
        }

    def by_genre(self, genre: str) -> dict[str, Any]:
        with _failing_as("genre", genre=genre):
            dramas = get_dramas_by_genre(
                genre,
                search=self._search,
                gate=self._gate_factory(AGGREGATOR_KEYWORD_DELAY_SECONDS),
            )
        return {"genre": genre, "dramas": _records(dramas), "count": len(dramas)}

    # --------------------------------------------------------
    # Búsqueda
    # --------------------------------------------------------

    def search(self, payload: Mapping[str, Any] | None) -> list[dict[str, Any]]:
        keyword = require_keyword(payload)
        enhanced = bool((payload or {}).get("enhanced", False))
        _logger.info("search %r (%d chars) enhanced=%s", keyword, len(keyword), enhanced)

        with _failing_as("search"):
            if enhanced:
                movies = enhanced_search(
                    keyword,
                    search=self._search,
                    fetch=self._fetch,
                    gate=self._gate_factory(SEARCH_PHASE_DELAY_SECONDS),
                )
            else:
                movies = self._search(keyword)
        return _records(movies)

    def search_enhanced(self, payload: Mapping[str, Any] | None) -> dict[str, Any]:
        keyword = require_keyword(payload)
        data = payload or {}
        page = parse_page(data.get("page"), default=1)
        limit = parse_page(data.get("limit"), default=DEFAULT_SEARCH_PAGE_LIMIT)

        with _failing_as("search_enhanced"):
            result = paginated_search(
                keyword,
                page,
                limit,
                search=self._search,
                fetch=self._fetch,
                gate=self._gate_factory(SEARCH_PHASE_DELAY_SECONDS),
            )
        _logger.info("search-enhanced %r: %d total, %d on page %d", keyword, result.total_results, len(result.results), page)
        return result.to_dict()

    # --------------------------------------------------------
    # Stream
    # --------------------------------------------------------

    def stream(self, payload: Mapping[str, Any] | None) -> dict[str, Any]:
        book_id, episode = require_stream_params(payload)
        with _failing_as("stream_fetch"):
            link = resolve_stream(book_id, episode, load=self._load)
        return link.to_dict()
