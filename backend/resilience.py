from __future__ import annotations

"""
backend/resilience.py

Circuit breaker simple (por endpoint upstream) + retry con backoff+jitter.

- CLOSED (normal)
- OPEN (bloquea temporalmente: fail-fast sin tocar la red)
- HALF_OPEN (deja pasar N probes; si ok => CLOSED; si falla => OPEN)

Thread-safe: FastAPI ejecuta endpoints sync en un threadpool y varias requests
comparten el mismo breaker.

No impone logging: el caller (dramabox_client) decide qué contar y loguear.
"""

import random
import threading
import time
from dataclasses import dataclass
from typing import Callable, TypeVar

T = TypeVar("T")


class CircuitOpenError(RuntimeError):
    def __init__(self, key: str, reason: str) -> None:
        super().__init__(f"circuit open for {key!r} ({reason})")
        self.key = key
        self.reason = reason


@dataclass
class CircuitState:
    failures: int = 0
    opened_at: float = 0.0
    state: str = "CLOSED"  # CLOSED | OPEN | HALF_OPEN
    last_error: str = ""


class CircuitBreaker:
    def __init__(
        self,
        *,
        failure_threshold: int = 5,
        open_seconds: float = 20.0,
        half_open_max_calls: int = 1,
    ) -> None:
        self._lock = threading.Lock()
        self._states: dict[str, CircuitState] = {}
        self._half_open_inflight: dict[str, int] = {}
        self._failure_threshold = max(1, int(failure_threshold))
        self._open_seconds = max(0.1, float(open_seconds))
        self._half_open_max_calls = max(1, int(half_open_max_calls))

    def allow(self, key: str) -> tuple[bool, str]:
        """Returns: (allowed, reason)."""
        now = time.monotonic()
        with self._lock:
            st = self._states.get(key)
            if st is None:
                self._states[key] = CircuitState()
                return True, "closed:new"

            if st.state == "CLOSED":
                return True, "closed"

            if st.state == "OPEN":
                if (now - st.opened_at) < self._open_seconds:
                    return False, "open"
                st.state = "HALF_OPEN"
                self._half_open_inflight[key] = 1
                return True, "half_open:cooldown_elapsed"

            inflight = self._half_open_inflight.get(key, 0)
            if inflight >= self._half_open_max_calls:
                return False, "half_open:quota_reached"
            self._half_open_inflight[key] = inflight + 1
            return True, "half_open:probe"

    def on_success(self, key: str) -> None:
        with self._lock:
            self._states[key] = CircuitState()
            self._half_open_inflight.pop(key, None)

    def on_failure(self, key: str, *, error: str) -> None:
        now = time.monotonic()
        with self._lock:
            st = self._states.setdefault(key, CircuitState())
            st.failures += 1
            st.last_error = str(error)[:500]

            # Un probe fallido reabre directamente.
            if st.state == "HALF_OPEN" or st.failures >= self._failure_threshold:
                st.state = "OPEN"
                st.opened_at = now
                self._half_open_inflight.pop(key, None)


def backoff_sleep(attempt: int, *, base: float = 0.35, cap: float = 6.0, jitter: float = 0.35) -> None:
    """Exponential backoff: base * 2^attempt con cap y jitter (+-35%)."""
    delay = min(cap, base * (2 ** max(0, int(attempt))))
    if jitter > 0:
        delay = max(0.0, delay * (1.0 + random.uniform(-jitter, jitter)))
    time.sleep(delay)


def call_with_resilience(
    *,
    breaker: CircuitBreaker,
    key: str,
    fn: Callable[[], T],
    should_retry: Callable[[Exception], bool],
    max_retries: int = 0,
) -> T:
    """
    Ejecuta fn() detrás del breaker, con retries opcionales.

    - Breaker abierto -> CircuitOpenError (sin ejecutar fn).
    - Agotados los intentos -> se relanza la última excepción de fn.
    """
    allowed, reason = breaker.allow(key)
    if not allowed:
        raise CircuitOpenError(key, reason)

    retries = max(0, int(max_retries))
    attempt = 0
    while True:
        try:
            out = fn()
        except Exception as exc:
            breaker.on_failure(key, error=repr(exc))
            if attempt >= retries or not should_retry(exc):
                raise
            backoff_sleep(attempt)
            attempt += 1
            continue

        breaker.on_success(key)
        return out
