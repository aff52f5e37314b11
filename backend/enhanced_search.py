from __future__ import annotations

"""
backend/enhanced_search.py

Enhanced Search Engine: hasta cuatro fases por consulta sobre un único
RecordAccumulator (first-seen gana), luego ranking y paginación sintética.

Fases
-----
1) direct        Keyword Searcher con el keyword tal cual (trim).
2) variation     Solo keywords cortos (len <= 2): variantes generadas,
                 como máximo MAX_KEYWORD_VARIATIONS llamadas.
3) latest-match  Variation Fetcher página 1 + filtro local (title/genre/description).
4) substring     Solo si hay < SUBSTRING_PHASE_MIN_RESULTS y len >= 2:
                 prefijos/sufijos propios; un resultado entra solo si es
                 relevante para el keyword ORIGINAL.

Cada llamada de cada fase es independiente: un fallo se loguea y aporta cero.
Si el pipeline completo revienta -> fallback a una búsqueda simple sin ranking.

Ranking (relevance_score): +10 title empieza por kw, +5 title contiene kw,
+3 genre contiene kw, + rating * 0.1. Orden estable descendente.
"""

import math
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

from backend import logger
from backend.catalog import (
    KeywordSearcher,
    TheaterFetcher,
    get_all_movies_with_variation,
    search_records,
)
from backend.config_catalog import (
    MAX_KEYWORD_VARIATIONS,
    MAX_SUBSTRING_SEARCHES,
    POPULAR_LETTERS,
    SCORE_GENRE_CONTAINS,
    SCORE_RATING_WEIGHT,
    SCORE_TITLE_CONTAINS,
    SCORE_TITLE_PREFIX,
    SHORT_KEYWORD_MAX_LEN,
    SHORT_WORDS,
    SUBSTRING_PHASE_MIN_RESULTS,
    TWO_LETTER_AFFIXES,
)
from backend.config_upstream import SEARCH_PHASE_DELAY_SECONDS
from backend.movie_record import MovieRecord
from backend.rate_limit import FixedIntervalGate
from backend.record_store import RecordAccumulator
from backend.run_metrics import METRICS


# ============================================================
# Helpers puros
# ============================================================


def generate_keyword_variations(
    keyword: str,
    *,
    popular_letters: Sequence[str] = POPULAR_LETTERS,
    short_words: Sequence[str] = SHORT_WORDS,
    two_letter_affixes: Sequence[str] = TWO_LETTER_AFFIXES,
) -> list[str]:
    """
    len 1: kw+letra y letra+kw por cada letra popular distinta, luego las
           palabras cortas que contienen la letra.
    len 2: kw+letra y letra+kw por cada afijo.
    Otros largos: [].
    """
    out: list[str] = []
    if len(keyword) == 1:
        low = keyword.lower()
        for letter in popular_letters:
            if letter == keyword:
                continue
            out.append(keyword + letter)
            out.append(letter + keyword)
        out.extend(word for word in short_words if low in word)
    elif len(keyword) == 2:
        for letter in two_letter_affixes:
            out.append(keyword + letter)
            out.append(letter + keyword)
    return out


def generate_substrings(keyword: str) -> list[str]:
    """Prefijos y sufijos propios, intercalados por punto de corte, sin duplicados."""
    if len(keyword) < 2:
        return []

    seen: dict[str, None] = {}
    for cut in range(1, len(keyword)):
        seen.setdefault(keyword[:cut], None)
        seen.setdefault(keyword[cut:], None)
    return list(seen)


def is_relevant(record: MovieRecord, keyword: str) -> bool:
    return record.matches(keyword)


def relevance_score(record: MovieRecord, keyword: str) -> float:
    kw = keyword.lower()
    title = record.title.lower()

    score = 0.0
    if title.startswith(kw):
        score += SCORE_TITLE_PREFIX
    if kw in title:
        score += SCORE_TITLE_CONTAINS
    if kw in record.genre.lower():
        score += SCORE_GENRE_CONTAINS
    score += (record.rating or 0.0) * SCORE_RATING_WEIGHT
    return score


def sort_by_relevance(records: Sequence[MovieRecord], keyword: str) -> list[MovieRecord]:
    # sorted() es estable: empates conservan el orden de inserción.
    return sorted(records, key=lambda rec: relevance_score(rec, keyword), reverse=True)


# ============================================================
# Fases
# ============================================================


def _direct_phase(acc: RecordAccumulator, keyword: str, *, search: KeywordSearcher) -> None:
    try:
        results = search(keyword)
    except Exception as exc:
        METRICS.incr("pipeline.search.direct_errors")
        logger.warning(f"Direct search failed for {keyword!r}: {exc}")
        return
    added = acc.extend(results, source="direct")
    logger.debug_ctx("SEARCH", f"direct {keyword!r}: {len(results)} results, {added} new")


def _variation_phase(
    acc: RecordAccumulator,
    keyword: str,
    *,
    search: KeywordSearcher,
    gate: FixedIntervalGate,
) -> None:
    variations = generate_keyword_variations(keyword)[:MAX_KEYWORD_VARIATIONS]
    logger.debug_ctx("SEARCH", f"short keyword {keyword!r}: variations={variations}")

    for variant in variations:
        try:
            with gate.slot():
                results = search(variant)
        except Exception as exc:
            METRICS.incr("pipeline.search.variation_errors")
            logger.warning(f"Variation search failed for {variant!r}: {exc}")
            continue
        acc.extend(results, source=f"variation-{variant}")


def _catalog_match_phase(acc: RecordAccumulator, keyword: str, *, fetch: TheaterFetcher | None) -> None:
    try:
        latest = get_all_movies_with_variation(1, fetch=fetch)
    except Exception as exc:
        METRICS.incr("pipeline.search.latest_errors")
        logger.warning(f"Latest supplement failed: {exc!r}")
        return
    added = acc.extend(latest, source="latest-match", accept=lambda rec: rec.matches(keyword))
    logger.debug_ctx("SEARCH", f"latest-match {keyword!r}: {added} new")


def _substring_phase(
    acc: RecordAccumulator,
    keyword: str,
    *,
    search: KeywordSearcher,
    gate: FixedIntervalGate,
) -> None:
    for sub in generate_substrings(keyword)[:MAX_SUBSTRING_SEARCHES]:
        try:
            with gate.slot():
                results = search(sub)
        except Exception as exc:
            METRICS.incr("pipeline.search.substring_errors")
            logger.warning(f"Substring search failed for {sub!r}: {exc}")
            continue
        acc.extend(results, source=f"substring-{sub}", accept=lambda rec: is_relevant(rec, keyword))


# ============================================================
# API pública
# ============================================================


def enhanced_search(
    keyword: str,
    *,
    search: KeywordSearcher | None = None,
    fetch: TheaterFetcher | None = None,
    gate: FixedIntervalGate | None = None,
) -> list[MovieRecord]:
    searcher = search or search_records
    phase_gate = gate or FixedIntervalGate(SEARCH_PHASE_DELAY_SECONDS)
    kw = keyword.strip()

    METRICS.incr("pipeline.search.enhanced_runs")
    try:
        logger.info(f"Enhanced search for: {kw!r}")
        acc = RecordAccumulator()

        _direct_phase(acc, kw, search=searcher)

        if len(kw) <= SHORT_KEYWORD_MAX_LEN:
            _variation_phase(acc, kw, search=searcher, gate=phase_gate)

        _catalog_match_phase(acc, kw, fetch=fetch)

        if len(acc) < SUBSTRING_PHASE_MIN_RESULTS and len(kw) >= 2:
            _substring_phase(acc, kw, search=searcher, gate=phase_gate)

        ranked = sort_by_relevance(acc.values(), kw)
    except Exception as exc:
        METRICS.incr("pipeline.search.fallbacks")
        logger.error(f"Enhanced search failed for {kw!r}, falling back to plain search: {exc!r}")
        return searcher(kw)

    logger.info(f"Enhanced search complete: {len(ranked)} total results")
    return ranked


@dataclass
class SearchPage:
    results: list[MovieRecord] = field(default_factory=list)
    current_page: int = 1
    total_results: int = 0
    total_pages: int = 0
    has_more: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "results": [r.to_dict() for r in self.results],
            "currentPage": self.current_page,
            "totalResults": self.total_results,
            "totalPages": self.total_pages,
            "hasMore": self.has_more,
        }


def paginate(records: Sequence[MovieRecord], page: int = 1, limit: int = 20) -> SearchPage:
    page = max(1, int(page))
    limit = max(1, int(limit))

    start = (page - 1) * limit
    end = start + limit
    total = len(records)
    return SearchPage(
        results=list(records[start:end]),
        current_page=page,
        total_results=total,
        total_pages=math.ceil(total / limit),
        has_more=end < total,
    )


def paginated_search(
    keyword: str,
    page: int = 1,
    limit: int = 20,
    *,
    search: KeywordSearcher | None = None,
    fetch: TheaterFetcher | None = None,
    gate: FixedIntervalGate | None = None,
) -> SearchPage:
    records = enhanced_search(keyword, search=search, fetch=fetch, gate=gate)
    return paginate(records, page, limit)
