from __future__ import annotations

"""
backend/catalog.py

Hojas del pipeline sobre el upstream:

- fetch_theater_records  (Catalog Fetcher): 1 llamada theater -> MovieRecords
- search_records         (Keyword Searcher): 1 llamada search/suggest -> MovieRecords
- get_latest_movies(_from_channel): listado "terbaru" tolerante a fallos
- get_all_movies_with_variation (Variation Fetcher): 8 llamadas theater sobre
  un grid fijo (page offset x index), dedupe por bookId (first-seen)

Los orquestadores reciben `fetch`/`search` inyectables con estas firmas:
    TheaterFetcher = (channel_id, page_no, index) -> list[MovieRecord]
    KeywordSearcher = (keyword) -> list[MovieRecord]
"""

from collections.abc import Callable, Sequence

from backend import logger
from backend.config_catalog import DEFAULT_CHANNEL_ID, VARIATION_INDEXES, VARIATION_PAGE_OFFSETS
from backend.dramabox_client import DramaboxClient, get_client
from backend.errors import SearchError, UpstreamError
from backend.movie_record import MovieRecord, record_from_search, record_from_theater
from backend.record_store import RecordAccumulator
from backend.run_metrics import METRICS

TheaterFetcher = Callable[[int, int, int], list[MovieRecord]]
KeywordSearcher = Callable[[str], list[MovieRecord]]


def fetch_theater_records(
    channel_id: int,
    page_no: int,
    index: int,
    *,
    client: DramaboxClient | None = None,
) -> list[MovieRecord]:
    """Lanza UpstreamError si la llamada falla (el caller decide)."""
    raw = (client or get_client()).fetch_theater_page(channel_id, page_no, index)
    return [record_from_theater(r, channel_id=channel_id, page_no=page_no) for r in raw]


def search_records(keyword: str, *, client: DramaboxClient | None = None) -> list[MovieRecord]:
    try:
        raw = (client or get_client()).search_by_keyword(keyword)
    except UpstreamError as exc:
        logger.warning(f"Search failed for keyword {keyword!r}: {exc.detail or exc}")
        raise SearchError() from exc
    return [record_from_search(r) for r in raw]


def get_latest_movies_from_channel(
    channel_id: int = DEFAULT_CHANNEL_ID,
    page_no: int = 1,
    *,
    fetch: TheaterFetcher | None = None,
) -> list[MovieRecord]:
    """Listado de un canal; `index` acompaña a la página. Fallo -> []."""
    fetcher = fetch or fetch_theater_records
    try:
        return fetcher(channel_id, page_no, page_no)
    except Exception as exc:
        logger.warning(f"Error fetching movies from channel {channel_id}, page {page_no}: {exc!r}")
        return []


def get_latest_movies(page_no: int = 1, *, fetch: TheaterFetcher | None = None) -> list[MovieRecord]:
    return get_latest_movies_from_channel(DEFAULT_CHANNEL_ID, page_no, fetch=fetch)


def variation_grid(
    requested_page: int,
    *,
    page_offsets: Sequence[int] = VARIATION_PAGE_OFFSETS,
    indexes: Sequence[int] = VARIATION_INDEXES,
) -> list[tuple[int, int]]:
    """[(pageNo, index), ...] en orden de consulta: (p,1), (p,2), (p+1,1), ..."""
    return [(requested_page + off, idx) for off in page_offsets for idx in indexes]


def get_all_movies_with_variation(
    requested_page: int = 1,
    *,
    fetch: TheaterFetcher | None = None,
    channel_id: int = DEFAULT_CHANNEL_ID,
    page_offsets: Sequence[int] = VARIATION_PAGE_OFFSETS,
    indexes: Sequence[int] = VARIATION_INDEXES,
) -> list[MovieRecord]:
    """
    Best effort: cada variación que falla contribuye cero; nunca lanza.
    """
    fetcher = fetch or fetch_theater_records
    acc = RecordAccumulator()
    total = 0

    try:
        for page_no, index in variation_grid(requested_page, page_offsets=page_offsets, indexes=indexes):
            try:
                movies = fetcher(channel_id, page_no, index)
            except Exception as exc:
                METRICS.incr("pipeline.variation.errors")
                METRICS.add_error("variation", f"p{page_no}_i{index}_c{channel_id}", detail=repr(exc))
                logger.warning(f"Error with variation page={page_no} index={index} channel={channel_id}: {exc!r}")
                continue

            total += len(movies)
            acc.extend(movies, source=f"p{page_no}_i{index}_c{channel_id}")
    except Exception as exc:
        logger.error(f"Error in get_all_movies_with_variation: {exc!r}")
        return []

    unique = acc.values()
    logger.info(f"get_all_movies_with_variation: {total} total, {len(unique)} unique")
    return unique
