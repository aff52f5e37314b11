from __future__ import annotations

"""
backend/aggregator.py

Colección comprehensiva: unión deduplicada de tres barridos sobre el upstream.

  1) Variation Fetcher (página 1)                     -> source="theater"
  2) Barrido secuencial de COMPREHENSIVE_KEYWORDS     -> source="search" (+ keyword)
  3) Barrido secuencial de COMPREHENSIVE_CHANNEL_IDS  -> source="channel-<id>"

Cada paso de 2) y 3) es independiente: si falla se loguea y contribuye cero.
Entre llamadas se respeta un intervalo fijo (gate inyectable) para no
saturar al upstream. El orden final es el de inserción.

También: get_dramas_by_genre (keywords por género + filtro local por genre).
"""

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field

from backend import logger
from backend.catalog import (
    KeywordSearcher,
    TheaterFetcher,
    fetch_theater_records,
    get_all_movies_with_variation,
    search_records,
)
from backend.config_catalog import COMPREHENSIVE_CHANNEL_IDS, COMPREHENSIVE_KEYWORDS, GENRE_KEYWORDS
from backend.config_upstream import AGGREGATOR_CHANNEL_DELAY_SECONDS, AGGREGATOR_KEYWORD_DELAY_SECONDS
from backend.movie_record import MovieRecord
from backend.rate_limit import FixedIntervalGate
from backend.record_store import RecordAccumulator
from backend.run_metrics import METRICS


@dataclass
class ComprehensiveResult:
    dramas: list[MovieRecord] = field(default_factory=list)
    # Nuevos records aportados por cada fase: theater / search / channels
    counts: dict[str, int] = field(default_factory=lambda: {"theater": 0, "search": 0, "channels": 0})

    @property
    def total(self) -> int:
        return len(self.dramas)


def _sweep_keywords(
    acc: RecordAccumulator,
    keywords: Sequence[str],
    *,
    search: KeywordSearcher,
    gate: FixedIntervalGate,
) -> int:
    added = 0
    for kw in keywords:
        try:
            with gate.slot():
                results = search(kw)
        except Exception as exc:
            METRICS.incr("pipeline.comprehensive.search_errors")
            METRICS.add_error("comprehensive.search", kw, detail=repr(exc))
            logger.warning(f"Search failed for keyword {kw!r}: {exc}")
            continue
        added += acc.extend(results, source="search", keyword=kw)
    return added


def _sweep_channels(
    acc: RecordAccumulator,
    channel_ids: Sequence[int],
    *,
    fetch: TheaterFetcher,
    gate: FixedIntervalGate,
) -> int:
    added = 0
    for channel_id in channel_ids:
        try:
            with gate.slot():
                results = fetch(channel_id, 1, 1)
        except Exception as exc:
            METRICS.incr("pipeline.comprehensive.channel_errors")
            METRICS.add_error("comprehensive.channel", str(channel_id), detail=repr(exc))
            logger.warning(f"Channel {channel_id} failed: {exc}")
            continue
        added += acc.extend(results, source=f"channel-{channel_id}")
    return added


def collect_comprehensive(
    *,
    search: KeywordSearcher | None = None,
    fetch: TheaterFetcher | None = None,
    keywords: Sequence[str] = COMPREHENSIVE_KEYWORDS,
    channel_ids: Sequence[int] = COMPREHENSIVE_CHANNEL_IDS,
    keyword_gate: FixedIntervalGate | None = None,
    channel_gate: FixedIntervalGate | None = None,
) -> ComprehensiveResult:
    searcher = search or search_records
    fetcher = fetch or fetch_theater_records
    kw_gate = keyword_gate or FixedIntervalGate(AGGREGATOR_KEYWORD_DELAY_SECONDS)
    ch_gate = channel_gate or FixedIntervalGate(AGGREGATOR_CHANNEL_DELAY_SECONDS)

    acc = RecordAccumulator()
    result = ComprehensiveResult()

    try:
        logger.info("Starting comprehensive drama collection")

        theater = get_all_movies_with_variation(1, fetch=fetcher)
        result.counts["theater"] = acc.extend(theater, source="theater")
        logger.info(f"Theater API: {result.counts['theater']} dramas")

        result.counts["search"] = _sweep_keywords(acc, keywords, search=searcher, gate=kw_gate)
        logger.info(f"Search API: {result.counts['search']} new dramas ({len(keywords)} keywords)")

        result.counts["channels"] = _sweep_channels(acc, channel_ids, fetch=fetcher, gate=ch_gate)
        logger.info(f"Different channels: {result.counts['channels']} new dramas")
    except Exception as exc:
        logger.error(f"Error in comprehensive collection: {exc!r}")
        return ComprehensiveResult()

    result.dramas = acc.values()
    for phase, n in result.counts.items():
        METRICS.incr(f"pipeline.comprehensive.{phase}_added", n)
    logger.info(f"Total comprehensive collection: {result.total} unique dramas")
    return result


def get_dramas_by_genre(
    genre: str,
    *,
    search: KeywordSearcher | None = None,
    genre_keywords: Mapping[str, Sequence[str]] = GENRE_KEYWORDS,
    gate: FixedIntervalGate | None = None,
) -> list[MovieRecord]:
    searcher = search or search_records
    kw_gate = gate or FixedIntervalGate(AGGREGATOR_KEYWORD_DELAY_SECONDS)

    wanted = genre.strip().lower()
    keywords = list(genre_keywords.get(wanted) or [genre])
    acc = RecordAccumulator()

    logger.info(f"Searching dramas for genre: {genre}")
    for kw in keywords:
        try:
            with kw_gate.slot():
                results = searcher(kw)
        except Exception as exc:
            METRICS.incr("pipeline.genre.search_errors")
            logger.warning(f"Error searching for {kw!r}: {exc}")
            continue
        acc.extend(results, accept=lambda rec: wanted in rec.genre.lower())

    dramas = acc.values()
    logger.info(f"Found {len(dramas)} dramas for genre {genre}")
    return dramas
