from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass, field

import pytest

from backend.movie_record import MovieRecord
from backend.rate_limit import FixedIntervalGate
from backend.run_metrics import METRICS


def make_record(book_id: str, title: str = "", **kwargs: object) -> MovieRecord:
    return MovieRecord(book_id=book_id, title=title or f"Drama {book_id}", **kwargs)  # type: ignore[arg-type]


@dataclass
class FakeSearcher:
    """
    Keyword Searcher programable: keyword -> records (o excepción).

    Registra las llamadas en orden.
    """

    results: dict[str, list[MovieRecord]] = field(default_factory=dict)
    failing: set[str] = field(default_factory=set)
    calls: list[str] = field(default_factory=list)

    def __call__(self, keyword: str) -> list[MovieRecord]:
        self.calls.append(keyword)
        if keyword in self.failing:
            raise RuntimeError(f"search failed: {keyword}")
        return list(self.results.get(keyword, []))


@dataclass
class FakeTheater:
    """
    Catalog Fetcher programable: (channel, page, index) -> records.

    `router` decide el resultado de cada llamada; puede lanzar.
    """

    router: Callable[[int, int, int], Iterable[MovieRecord]] = lambda c, p, i: []
    calls: list[tuple[int, int, int]] = field(default_factory=list)

    def __call__(self, channel_id: int, page_no: int, index: int) -> list[MovieRecord]:
        self.calls.append((channel_id, page_no, index))
        return list(self.router(channel_id, page_no, index))


@pytest.fixture
def zero_gate() -> FixedIntervalGate:
    return FixedIntervalGate(0.0)


@pytest.fixture(autouse=True)
def _reset_pipeline_metrics():
    METRICS.reset()
    yield
    METRICS.reset()
