from __future__ import annotations

"""
backend/token_provider.py

Token Provider: GET al emisor de tokens -> {token, deviceid}.

Por defecto (DRAMABOX_TOKEN_TTL_SECONDS=0) cada llamada upstream obtiene un
token nuevo (comportamiento histórico del proxy). Con TTL > 0 el token se reutiliza
durante ese intervalo (menos carga sobre el emisor, cambia el patrón de
tráfico observable).
"""

import threading
import time
from collections.abc import Callable
from dataclasses import dataclass

import requests
from requests.exceptions import RequestException

from backend import logger
from backend.config_upstream import (
    DRAMABOX_HTTP_TIMEOUT_SECONDS,
    DRAMABOX_TOKEN_TTL_SECONDS,
    DRAMABOX_TOKEN_URL,
)
from backend.errors import TokenError
from backend.run_metrics import METRICS


@dataclass(frozen=True)
class TokenInfo:
    token: str
    device_id: str


def fetch_auth_token(
    session: requests.Session,
    *,
    url: str = DRAMABOX_TOKEN_URL,
    timeout_s: float = DRAMABOX_HTTP_TIMEOUT_SECONDS,
) -> TokenInfo:
    METRICS.incr("upstream.token.calls")
    try:
        resp = session.get(url, timeout=timeout_s)
        resp.raise_for_status()
        data = resp.json()
    except (RequestException, ValueError) as exc:
        METRICS.incr("upstream.token.errors")
        raise TokenError(detail=repr(exc)) from exc

    token = data.get("token") if isinstance(data, dict) else None
    if not isinstance(token, str) or not token.strip():
        METRICS.incr("upstream.token.errors")
        raise TokenError(detail="token missing in response")

    device_id = data.get("deviceid") or ""
    return TokenInfo(token=token.strip(), device_id=str(device_id))


class TokenProvider:
    def __init__(
        self,
        fetch: Callable[[], TokenInfo],
        *,
        ttl_seconds: float = DRAMABOX_TOKEN_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._fetch = fetch
        self._ttl_s = max(0.0, float(ttl_seconds))
        self._clock = clock
        self._lock = threading.Lock()
        self._cached: TokenInfo | None = None
        self._fetched_at = 0.0

    def get(self) -> TokenInfo:
        if self._ttl_s <= 0.0:
            return self._fetch()

        with self._lock:
            now = self._clock()
            if self._cached is not None and (now - self._fetched_at) < self._ttl_s:
                return self._cached

            info = self._fetch()
            logger.debug_ctx("TOKEN", f"refreshed (ttl={self._ttl_s:.0f}s)")
            self._cached = info
            self._fetched_at = now
            return info
