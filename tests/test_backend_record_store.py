from backend.record_store import RecordAccumulator
from tests.conftest import make_record


def test_insert_if_absent_first_seen_wins():
    acc = RecordAccumulator()

    assert acc.insert_if_absent(make_record("1", "First"), source="direct") is True
    assert acc.insert_if_absent(make_record("1", "Second"), source="variation-ab") is False

    rec = acc.get("1")
    assert rec is not None
    assert rec.title == "First"
    assert rec.source == "direct"
    assert len(acc) == 1


def test_insert_rejects_empty_book_id():
    acc = RecordAccumulator()
    assert acc.insert_if_absent(make_record("", "No id")) is False
    assert len(acc) == 0


def test_extend_keeps_insertion_order_and_counts_new():
    acc = RecordAccumulator()
    acc.extend([make_record("b"), make_record("a")], source="theater")

    added = acc.extend([make_record("a"), make_record("c"), make_record("b")], source="search", keyword="x")

    assert added == 1
    assert [r.book_id for r in acc] == ["b", "a", "c"]
    assert acc.get("a").source == "theater"
    assert acc.get("c").source == "search"
    assert acc.get("c").keyword == "x"
    assert "c" in acc and "z" not in acc


def test_extend_accept_filters_only_absent_candidates():
    acc = RecordAccumulator()
    acc.extend([make_record("1", "Romance")])

    added = acc.extend(
        [make_record("1", "Other"), make_record("2", "Romance 2"), make_record("3", "Action")],
        accept=lambda r: "romance" in r.title.lower(),
    )

    assert added == 1
    assert [r.book_id for r in acc.values()] == ["1", "2"]

def test_source_tag_does_not_mutate_original_record():
    original = make_record("1")
    acc = RecordAccumulator()
    acc.insert_if_absent(original, source="direct")

    assert original.source is None
    assert acc.get("1").source == "direct"
