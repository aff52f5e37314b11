import pytest
import requests

import backend.dramabox_client as dc
from backend.dramabox_client import DramaboxClient, build_headers
from backend.errors import UpstreamError
from backend.resilience import CircuitBreaker
from backend.run_metrics import METRICS
from backend.token_provider import TokenInfo, TokenProvider


class _FakeResponse:
    def __init__(self, payload, status=200):
        self._payload = payload
        self.status_code = status

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"HTTP {self.status_code}")

    def json(self):
        return self._payload


class _FakeSession:
    def __init__(self, responder):
        self._responder = responder
        self.calls = []

    def post(self, url, json=None, headers=None, timeout=None):
        self.calls.append({"url": url, "json": json, "headers": headers, "timeout": timeout})
        return self._responder(url, json)


def _client(responder, *, breaker=None):
    session = _FakeSession(responder)
    tokens = TokenProvider(lambda: TokenInfo(token="tok", device_id="dev"), ttl_seconds=0)
    client = DramaboxClient(
        session=session,
        tokens=tokens,
        breaker=breaker or CircuitBreaker(failure_threshold=50, open_seconds=1.0),
        base_url="https://upstream.test/drama-box/",
        timeout_s=2.0,
    )
    return client, session


def test_build_headers_identity():
    headers = build_headers(TokenInfo(token="abc", device_id="dev-9"), cid="DRA1000042")
    assert headers["tn"] == "Bearer abc"
    assert headers["device-id"] == "dev-9"
    assert headers["cid"] == "DRA1000042"
    assert headers["User-Agent"].startswith("okhttp/")


def test_fetch_theater_page_posts_body_and_reads_records():
    records = [{"bookId": "1"}, "garbage", {"bookId": "2"}]
    client, session = _client(lambda url, body: _FakeResponse({"data": {"newTheaterList": {"records": records}}}))

    out = client.fetch_theater_page(43, 2, 1)

    assert out == [{"bookId": "1"}, {"bookId": "2"}]
    call = session.calls[0]
    assert call["url"] == "https://upstream.test/drama-box/he001/theater"
    assert call["json"] == {"newChannelStyle": 1, "isNeedRank": 1, "pageNo": 2, "index": 1, "channelId": 43}
    assert call["timeout"] == 2.0
    assert METRICS.counters()["upstream.theater.calls"] == 1


def test_search_by_keyword_reads_suggest_list():
    client, session = _client(lambda url, body: _FakeResponse({"data": {"suggestList": [{"bookId": "9"}]}}))

    assert client.search_by_keyword("raja") == [{"bookId": "9"}]
    assert session.calls[0]["url"].endswith("/search/suggest")
    assert session.calls[0]["json"] == {"keyword": "raja"}


def test_fetch_stream_uses_stream_cid():
    client, session = _client(lambda url, body: _FakeResponse({"data": {"chapterList": []}}))

    assert client.fetch_stream("b1", 3) == {"chapterList": []}
    call = session.calls[0]
    assert call["headers"]["cid"] == "DRA1000000"
    assert call["json"]["bookId"] == "b1"
    assert call["json"]["index"] == 3


@pytest.mark.parametrize(
    "responder",
    [
        lambda url, body: _FakeResponse({"data": {}}, status=500),
        lambda url, body: _FakeResponse({"status": "no data"}),
        lambda url, body: _FakeResponse(["x"]),
    ],
)
def test_upstream_failures_raise_upstream_error(responder):
    client, _ = _client(responder)

    with pytest.raises(UpstreamError):
        client.search_by_keyword("x")
    assert METRICS.counters()["upstream.search.errors"] == 1


def test_network_error_maps_to_upstream_error():
    def responder(url, body):
        raise requests.ConnectionError("refused")

    client, _ = _client(responder)
    with pytest.raises(UpstreamError) as excinfo:
        client.fetch_theater_page(43, 1, 1)
    assert "refused" in excinfo.value.detail


def test_open_circuit_fails_fast_without_network():
    def responder(url, body):
        raise requests.ConnectionError("down")

    client, session = _client(responder, breaker=CircuitBreaker(failure_threshold=2, open_seconds=60.0))

    for _ in range(2):
        with pytest.raises(UpstreamError):
            client.search_by_keyword("x")
    assert len(session.calls) == 2

    with pytest.raises(UpstreamError):
        client.search_by_keyword("x")
    assert len(session.calls) == 2
    assert METRICS.counters()["upstream.search.circuit_open"] == 1

    # otras operaciones tienen su propio circuito
    with pytest.raises(UpstreamError):
        client.fetch_theater_page(43, 1, 1)
    assert len(session.calls) == 3


def _search_responder(url, body):
    if body["keyword"].startswith("bad"):
        return _FakeResponse({"data": None})
    return _FakeResponse({"data": {"suggestList": [{"bookId": "ok"}]}})


def test_default_client_keeps_calling_after_failures(monkeypatch):
    monkeypatch.setattr(dc, "DRAMABOX_BREAKER_ENABLED", False)
    session = _FakeSession(_search_responder)
    tokens = TokenProvider(lambda: TokenInfo(token="tok", device_id="dev"), ttl_seconds=0)
    client = DramaboxClient(session=session, tokens=tokens, base_url="https://upstream.test")

    for i in range(20):
        with pytest.raises(UpstreamError):
            client.search_by_keyword(f"bad{i}")

    assert client.search_by_keyword("romance") == [{"bookId": "ok"}]
    assert session.calls[-1]["json"] == {"keyword": "romance"}
    assert len(session.calls) == 21
    assert "upstream.search.circuit_open" not in METRICS.counters()


def test_empty_data_replies_do_not_open_circuit():
    client, session = _client(_search_responder, breaker=CircuitBreaker(failure_threshold=2, open_seconds=60.0))

    for i in range(5):
        with pytest.raises(UpstreamError):
            client.search_by_keyword(f"bad{i}")

    assert client.search_by_keyword("romance") == [{"bookId": "ok"}]
    assert len(session.calls) == 6
