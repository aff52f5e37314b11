from pathlib import Path

import pytest

pytest.importorskip("httpx")

from fastapi.testclient import TestClient

import server.api.deps as deps
from backend.errors import SearchError, UpstreamError
from backend.rate_limit import FixedIntervalGate
from server.api.app import create_app
from server.api.services.dramas import DramaService
from server.api.settings import Settings
from tests.conftest import FakeSearcher, FakeTheater, make_record


def _settings(*, frontend_dir: Path | None = None, not_found_404: bool = False) -> Settings:
    return Settings(
        log_level="INFO",
        cors_origins_raw="*",
        cors_allow_credentials=False,
        gzip_min_size=0,
        api_prefix="/api",
        frontend_dir=frontend_dir or Path("frontend-missing"),
        stream_not_found_as_404=not_found_404,
    )


def _theater(channel_id, page_no, index):
    if channel_id == 43:
        return [make_record(f"p{page_no}-{i}", f"Ratu {page_no}-{i}", genre="Romance") for i in range(2)]
    return []


def _stream_loader(book_id, index):
    if book_id == "missing":
        return {"chapterList": []}
    if book_id == "down":
        raise UpstreamError(detail="502")
    return {
        "chapterList": [
            {
                "cdnList": [
                    {
                        "cdnDomain": "cdn.test",
                        "videoPathList": [
                            {"quality": 540, "videoPath": "https://cdn.test/540.mp4"},
                            {"quality": 360, "videoPath": "https://cdn.test/360.mp4"},
                        ],
                    }
                ]
            }
        ]
    }


def _client(search=None, *, settings=None, fetch=None):
    app = create_app(settings or _settings())
    service = DramaService(
        fetch=fetch or FakeTheater(router=_theater),
        search=search or FakeSearcher(),
        load=_stream_loader,
        gate_factory=lambda interval: FixedIntervalGate(0.0),
    )
    app.dependency_overrides[deps.get_drama_service] = lambda: service
    return TestClient(app, raise_server_exceptions=False)


def test_search_blank_keyword_is_400():
    client = _client()

    res = client.post("/api/search", json={"keyword": "   "})
    assert res.status_code == 400
    assert res.json() == {"error": "Keyword tidak boleh kosong"}

    res = client.post("/api/search", json={"keyword": ""})
    assert res.status_code == 400
    assert res.json() == {"error": "Keyword tidak boleh kosong"}

    res = client.post("/api/search", json={})
    assert res.status_code == 400
    assert res.json() == {"error": "Keyword diperlukan"}

    res = client.post("/api/search", json={"keyword": 42})
    assert res.status_code == 400
    assert res.json() == {"error": "Keyword diperlukan"}

    res = client.post("/api/search-enhanced", json={"keyword": ""})
    assert res.status_code == 400
    assert res.json() == {"error": "Keyword tidak boleh kosong"}


def test_search_plain_and_enhanced():
    search = FakeSearcher(results={"ratu": [make_record("s1", "Ratu Es")]})
    client = _client(search)

    res = client.post("/api/search", json={"keyword": " ratu "})
    assert res.status_code == 200
    assert [m["bookId"] for m in res.json()] == ["s1"]
    assert search.calls == ["ratu"]

    res = client.post("/api/search", json={"keyword": "ratu", "enhanced": True})
    assert res.status_code == 200
    ids = [m["bookId"] for m in res.json()]
    assert ids[0] == "s1"
    assert "p1-0" in ids


def test_search_upstream_failure_is_500():
    def failing(keyword):
        raise SearchError()

    res = _client(failing).post("/api/search", json={"keyword": "ratu"})
    assert res.status_code == 500
    assert res.json() == {"error": "Gagal mencari film"}


def test_search_enhanced_pagination_defaults():
    search = FakeSearcher(results={"raja": [make_record(str(i), f"Raja {i}") for i in range(60)]})

    res = _client(search).post("/api/search-enhanced", json={"keyword": "raja"})
    body = res.json()

    assert res.status_code == 200
    assert body["currentPage"] == 1
    assert len(body["results"]) == 50
    assert body["totalResults"] == 60
    assert body["totalPages"] == 2
    assert body["hasMore"] is True


def test_stream_endpoint_selects_540():
    res = _client().post("/api/stream", json={"bookId": "x", "index": 2})

    assert res.status_code == 200
    body = res.json()
    assert body["url"] == "https://cdn.test/540.mp4"
    assert body["title"] == "Episode 2"
    assert body["episodeNumber"] == 2
    assert body["cdnDomain"] == "cdn.test"


def test_stream_validation_and_errors():
    client = _client()

    res = client.post("/api/stream", json={"bookId": "x"})
    assert res.status_code == 400
    assert res.json() == {"error": "bookId dan index diperlukan"}

    res = client.post("/api/stream", json={"bookId": "missing", "index": 1})
    assert res.status_code == 500
    assert res.json() == {"error": "Link streaming tidak ditemukan"}

    res = client.post("/api/stream", json={"bookId": "down", "index": 1})
    assert res.status_code == 500
    assert res.json() == {"error": "Gagal mengambil link streaming"}

    client_404 = _client(settings=_settings(not_found_404=True))
    res = client_404.post("/api/stream", json={"bookId": "missing", "index": 1})
    assert res.status_code == 404


def test_latest_routes():
    fetch = FakeTheater(router=_theater)
    client = _client(fetch=fetch)

    assert client.get("/api/latest").status_code == 200
    assert client.get("/api/latest?page=3").status_code == 200
    res = client.get("/api/latest/abc")
    assert res.status_code == 200
    assert fetch.calls == [(43, 1, 1), (43, 3, 3), (43, 1, 1)]
    assert res.json()[0]["bookId"] == "p1-0"


def test_all_movies_shape():
    res = _client().get("/api/all-movies?page=2")
    body = res.json()

    assert res.status_code == 200
    assert body["currentPage"] == 2
    assert body["strategy"] == "variation"
    assert body["totalLoaded"] == len(body["movies"]) == 8
    assert body["hasMore"] is False


def test_comprehensive_and_genre():
    search = FakeSearcher(results={"romance": [make_record("g1", "Cinta", genre="Romance")]})
    client = _client(search)

    res = client.get("/api/comprehensive-dramas")
    body = res.json()
    assert res.status_code == 200
    assert body["strategy"] == "comprehensive"
    assert body["totalCount"] == len(body["dramas"])
    assert body["sources"]["theater"] == 8
    assert body["sources"]["search"] == 1

    res = client.get("/api/dramas-by-genre/romance")
    body = res.json()
    assert body["genre"] == "romance"
    assert body["count"] == 1
    assert body["dramas"][0]["bookId"] == "g1"


def test_options_preflight_and_unknown_api():
    client = _client()

    res = client.options("/api/whatever")
    assert res.status_code == 200
    assert res.content == b""

    res = client.get("/api/nope")
    assert res.status_code == 404
    assert res.json() == {"error": "API endpoint tidak ditemukan", "path": "/api/nope"}


def test_spa_fallback(tmp_path):
    (tmp_path / "index.html").write_text("<html>drama</html>", encoding="utf-8")
    (tmp_path / "app.js").write_text("console.log(1)", encoding="utf-8")
    client = _client(settings=_settings(frontend_dir=tmp_path))

    res = client.get("/some/deep/route")
    assert res.status_code == 200
    assert "drama" in res.text

    res = client.get("/app.js")
    assert res.status_code == 200
    assert "console.log" in res.text

    assert _client().get("/some/route").status_code == 404


def test_invalid_json_body_is_400():
    res = _client().post("/api/search", content=b"{not json", headers={"Content-Type": "application/json"})
    assert res.status_code == 400
    assert "error" in res.json()
