import pytest

from backend import catalog
from backend.errors import SearchError, UpstreamError
from backend.run_metrics import METRICS
from tests.conftest import FakeTheater, make_record


def test_variation_grid_order():
    assert catalog.variation_grid(1) == [(1, 1), (1, 2), (2, 1), (2, 2), (3, 1), (3, 2), (4, 1), (4, 2)]
    assert catalog.variation_grid(5)[0] == (5, 1)


def test_eight_identical_records_collapse_to_one():
    fetch = FakeTheater(router=lambda c, p, i: [make_record("same", "Same Drama")])

    movies = catalog.get_all_movies_with_variation(1, fetch=fetch)

    assert len(fetch.calls) == 8
    assert all(call[0] == 43 for call in fetch.calls)
    assert [m.book_id for m in movies] == ["same"]
    # el primero en llegar es el que queda
    assert movies[0].source == "p1_i1_c43"


def test_variation_partial_failure_keeps_other_results():
    def router(channel_id, page_no, index):
        if (page_no, index) == (1, 1):
            raise UpstreamError(detail="timeout")
        return [make_record(f"{page_no}-{index}")]

    movies = catalog.get_all_movies_with_variation(1, fetch=FakeTheater(router=router))

    assert len(movies) == 7
    assert movies[0].book_id == "1-2"
    assert METRICS.counters()["pipeline.variation.errors"] == 1


def test_latest_uses_page_as_index_and_swallows_errors():
    fetch = FakeTheater(router=lambda c, p, i: [make_record("x")])
    assert [m.book_id for m in catalog.get_latest_movies(3, fetch=fetch)] == ["x"]
    assert fetch.calls == [(43, 3, 3)]

    def boom(c, p, i):
        raise UpstreamError(detail="down")

    assert catalog.get_latest_movies_from_channel(44, 1, fetch=FakeTheater(router=boom)) == []


class _FakeClient:
    def __init__(self, *, suggest=None, error=None, theater=None):
        self._suggest = suggest or []
        self._error = error
        self._theater = theater or []

    def search_by_keyword(self, keyword):
        if self._error is not None:
            raise self._error
        return self._suggest

    def fetch_theater_page(self, channel_id, page_no, index):
        return self._theater


def test_search_records_normalizes_suggest_list():
    client = _FakeClient(suggest=[{"bookId": "9", "bookName": "Ratu", "tagNames": ["Revenge"]}])

    out = catalog.search_records("ratu", client=client)

    assert [(r.book_id, r.title, r.genre) for r in out] == [("9", "Ratu", "Revenge")]


def test_search_records_wraps_upstream_error():
    client = _FakeClient(error=UpstreamError(detail="502"))

    with pytest.raises(SearchError) as excinfo:
        catalog.search_records("ratu", client=client)
    assert str(excinfo.value) == "Gagal mencari film"


def test_fetch_theater_records_tags_channel_and_page():
    client = _FakeClient(theater=[{"bookId": "1", "bookName": "A"}])

    out = catalog.fetch_theater_records(45, 2, 1, client=client)

    assert out[0].channel_id == 45
    assert out[0].page_source == 2
