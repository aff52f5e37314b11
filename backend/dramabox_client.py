from __future__ import annotations

"""
backend/dramabox_client.py

Cliente del upstream DramaBox (operaciones crudas, sin normalizar).

🧠 Principios
-------------
1) Opaco:
   - Devuelve los dicts tal cual los manda el tercero; la normalización a
     MovieRecord vive en backend/movie_record.py.

2) Errores tipados:
   - Red, no-2xx, body no-JSON o sin `data` -> UpstreamError (detalle solo en logs).
   - Sin token -> TokenError (subclase de UpstreamError).
   - Los orquestadores deciden si el fallo aborta o "contribuye cero".

3) Fail-fast (opcional, DRAMABOX_BREAKER_ENABLED):
   - Circuit breaker por operación (theater/search/stream): abierto -> UpstreamError
     sin tocar la red.
   - Solo cuentan fallos de transporte (red, no-2xx, body no-JSON). Una respuesta
     sin `data` no abre el circuito.

4) Pooling:
   - requests.Session compartida (lazy-init thread-safe).
   - Retry de urllib3 solo para GET (token). Los POST no se reintentan.

API pública
-----------
- DramaboxClient.fetch_theater_page(channel_id, page_no, index) -> list[dict]
- DramaboxClient.search_by_keyword(keyword) -> list[dict]
- DramaboxClient.fetch_stream(book_id, episode_index) -> dict
- get_client() (singleton del proceso)
"""

import threading
import time
from collections.abc import Mapping
from typing import Any

import requests
from requests.adapters import HTTPAdapter
from requests.exceptions import RequestException
from urllib3.util.retry import Retry

from backend import logger
from backend.config_upstream import (
    CHAPTER_BATCH_PATH,
    DRAMABOX_APP_VERSION,
    DRAMABOX_APP_VN,
    DRAMABOX_BASE_URL,
    DRAMABOX_BREAKER_ENABLED,
    DRAMABOX_BREAKER_FAILURE_THRESHOLD,
    DRAMABOX_BREAKER_OPEN_SECONDS,
    DRAMABOX_CATALOG_CID,
    DRAMABOX_HTTP_RETRY_BACKOFF_FACTOR,
    DRAMABOX_HTTP_RETRY_TOTAL,
    DRAMABOX_HTTP_TIMEOUT_SECONDS,
    DRAMABOX_LANGUAGE,
    DRAMABOX_P,
    DRAMABOX_PACKAGE_NAME,
    DRAMABOX_STREAM_CID,
    DRAMABOX_TIME_ZONE,
    DRAMABOX_USER_AGENT,
    SEARCH_SUGGEST_PATH,
    THEATER_PATH,
)
from backend.errors import UpstreamError
from backend.resilience import CircuitBreaker, CircuitOpenError, call_with_resilience
from backend.run_metrics import METRICS
from backend.token_provider import TokenInfo, TokenProvider, fetch_auth_token


def build_session() -> requests.Session:
    session = requests.Session()

    retries = Retry(
        total=DRAMABOX_HTTP_RETRY_TOTAL,
        backoff_factor=DRAMABOX_HTTP_RETRY_BACKOFF_FACTOR,
        status_forcelist=(429, 500, 502, 503, 504),
        allowed_methods=("GET",),
        raise_on_status=False,
        respect_retry_after_header=True,
    )
    adapter = HTTPAdapter(max_retries=retries, pool_connections=4, pool_maxsize=8)
    session.mount("https://", adapter)
    session.mount("http://", adapter)
    return session


def build_headers(token: TokenInfo, *, cid: str) -> dict[str, str]:
    """Cabeceras de identidad que el upstream exige (cliente Android)."""
    return {
        "User-Agent": DRAMABOX_USER_AGENT,
        "Accept-Encoding": "gzip",
        "Content-Type": "application/json; charset=UTF-8",
        "tn": f"Bearer {token.token}",
        "version": DRAMABOX_APP_VERSION,
        "vn": DRAMABOX_APP_VN,
        "cid": cid,
        "package-name": DRAMABOX_PACKAGE_NAME,
        "apn": "1",
        "device-id": token.device_id,
        "language": DRAMABOX_LANGUAGE,
        "current-language": DRAMABOX_LANGUAGE,
        "p": DRAMABOX_P,
        "time-zone": DRAMABOX_TIME_ZONE,
    }


def _default_breaker() -> CircuitBreaker | None:
    if not DRAMABOX_BREAKER_ENABLED:
        return None
    return CircuitBreaker(
        failure_threshold=DRAMABOX_BREAKER_FAILURE_THRESHOLD,
        open_seconds=DRAMABOX_BREAKER_OPEN_SECONDS,
    )


def _list_or_empty(value: object) -> list[dict[str, Any]]:
    if not isinstance(value, list):
        return []
    return [v for v in value if isinstance(v, dict)]


class DramaboxClient:
    def __init__(
        self,
        *,
        session: requests.Session,
        tokens: TokenProvider,
        breaker: CircuitBreaker | None = None,
        base_url: str = DRAMABOX_BASE_URL,
        timeout_s: float = DRAMABOX_HTTP_TIMEOUT_SECONDS,
    ) -> None:
        self._session = session
        self._tokens = tokens
        self._breaker = breaker if breaker is not None else _default_breaker()
        self._base_url = base_url.rstrip("/")
        self._timeout_s = timeout_s

    # --------------------------------------------------------
    # Transporte
    # --------------------------------------------------------

    def _post_once(self, path: str, body: Mapping[str, object], *, cid: str) -> object:
        token = self._tokens.get()
        resp = self._session.post(
            f"{self._base_url}{path}",
            json=dict(body),
            headers=build_headers(token, cid=cid),
            timeout=self._timeout_s,
        )
        resp.raise_for_status()
        return resp.json()

    def _post(self, op: str, path: str, body: Mapping[str, object], *, cid: str) -> dict[str, Any]:
        METRICS.incr(f"upstream.{op}.calls")
        start = time.monotonic()
        try:
            if self._breaker is None:
                payload = self._post_once(path, body, cid=cid)
            else:
                payload = call_with_resilience(
                    breaker=self._breaker,
                    key=op,
                    fn=lambda: self._post_once(path, body, cid=cid),
                    should_retry=lambda exc: False,
                )

            data = payload.get("data") if isinstance(payload, dict) else None
            if not isinstance(data, dict):
                raise UpstreamError(detail=f"missing 'data' in response from {path}")
            return data
        except UpstreamError as exc:
            METRICS.incr(f"upstream.{op}.errors")
            logger.debug_ctx("UPSTREAM", f"{op} failed: {exc.detail or exc}")
            raise
        except CircuitOpenError as exc:
            METRICS.incr(f"upstream.{op}.circuit_open")
            raise UpstreamError(detail=str(exc)) from exc
        except (RequestException, ValueError) as exc:
            METRICS.incr(f"upstream.{op}.errors")
            logger.debug_ctx("UPSTREAM", f"{op} failed: {exc!r}")
            raise UpstreamError(detail=repr(exc)) from exc
        finally:
            METRICS.observe_ms(f"upstream.{op}.latency_ms", (time.monotonic() - start) * 1000.0)

    # --------------------------------------------------------
    # Operaciones
    # --------------------------------------------------------

    def fetch_theater_page(self, channel_id: int, page_no: int, index: int) -> list[dict[str, Any]]:
        body = {
            "newChannelStyle": 1,
            "isNeedRank": 1,
            "pageNo": page_no,
            "index": index,
            "channelId": channel_id,
        }
        data = self._post("theater", THEATER_PATH, body, cid=DRAMABOX_CATALOG_CID)
        theater = data.get("newTheaterList")
        if not isinstance(theater, dict):
            return []
        return _list_or_empty(theater.get("records"))

    def search_by_keyword(self, keyword: str) -> list[dict[str, Any]]:
        data = self._post("search", SEARCH_SUGGEST_PATH, {"keyword": keyword}, cid=DRAMABOX_CATALOG_CID)
        return _list_or_empty(data.get("suggestList"))

    def fetch_stream(self, book_id: str, episode_index: int) -> dict[str, Any]:
        body = {
            "boundaryIndex": 0,
            "comingPlaySectionId": -1,
            "index": episode_index,
            "currencyPlaySource": "discover_new_rec_new",
            "needEndRecommend": 0,
            "currencyPlaySourceName": "",
            "preLoad": False,
            "rid": "",
            "pullCid": "",
            "loadDirection": 0,
            "startUpKey": "",
            "bookId": book_id,
        }
        return self._post("stream", CHAPTER_BATCH_PATH, body, cid=DRAMABOX_STREAM_CID)


# ============================================================
# Singleton del proceso (lazy-init thread-safe)
# ============================================================

_CLIENT: DramaboxClient | None = None
_CLIENT_LOCK = threading.Lock()


def get_client() -> DramaboxClient:
    global _CLIENT
    if _CLIENT is not None:
        return _CLIENT

    with _CLIENT_LOCK:
        if _CLIENT is None:
            session = build_session()
            tokens = TokenProvider(lambda: fetch_auth_token(session))
            _CLIENT = DramaboxClient(session=session, tokens=tokens)
        return _CLIENT
