from __future__ import annotations

"""
backend/run_metrics.py

Métricas del proceso (thread-safe) para el cliente upstream y el pipeline.

Uso:
    from backend.run_metrics import METRICS

    METRICS.incr("upstream.search.calls")
    METRICS.observe_ms("upstream.search.latency_ms", elapsed_ms)
    METRICS.add_error("search", keyword, detail=repr(exc))

    snap = METRICS.snapshot()

El endpoint /metrics del server vuelca `counters` en formato Prometheus.
"""

import threading
import time
from collections import deque
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class ErrorEvent:
    ts: float
    operation: str   # "theater" | "search" | "stream" | "token" | fase del pipeline
    target: str      # keyword / canal / bookId
    detail: str


class RunMetrics:
    """
    - counters: dict[str, int]
    - timings_ms: dict[str, {"count", "sum", "min", "max"}] (+ "avg" en snapshot)
    - errors: ring buffer acotado para diagnóstico
    """

    def __init__(self, *, max_error_events: int = 500) -> None:
        self._lock = threading.Lock()
        self._counters: dict[str, int] = {}
        self._timings: dict[str, dict[str, float]] = {}
        self._errors: deque[ErrorEvent] = deque(maxlen=max(1, int(max_error_events)))

    def incr(self, key: str, n: int = 1) -> None:
        if not key:
            return
        with self._lock:
            self._counters[key] = self._counters.get(key, 0) + int(n)

    def observe_ms(self, key: str, ms: float) -> None:
        if not key:
            return
        v = float(ms)
        with self._lock:
            t = self._timings.get(key)
            if t is None:
                self._timings[key] = {"count": 1.0, "sum": v, "min": v, "max": v}
                return
            t["count"] += 1.0
            t["sum"] += v
            t["min"] = min(t["min"], v)
            t["max"] = max(t["max"], v)

    def add_error(self, operation: str, target: str, *, detail: str) -> None:
        ev = ErrorEvent(ts=time.time(), operation=operation, target=target, detail=detail[:800])
        with self._lock:
            self._errors.append(ev)

    def counters(self) -> dict[str, int]:
        with self._lock:
            return dict(self._counters)

    def reset(self) -> None:
        with self._lock:
            self._counters.clear()
            self._timings.clear()
            self._errors.clear()

    def snapshot(self) -> dict[str, Any]:
        with self._lock:
            counters = dict(self._counters)
            timings = {k: dict(v) for k, v in self._timings.items()}
            errors = list(self._errors)

        by_operation: dict[str, int] = {}
        for e in errors:
            by_operation[e.operation] = by_operation.get(e.operation, 0) + 1

        for t in timings.values():
            t["avg"] = t["sum"] / max(1.0, t["count"])

        return {
            "counters": counters,
            "timings_ms": timings,
            "errors": errors,
            "derived": {"errors.total": len(errors), "errors.by_operation": by_operation},
        }


METRICS = RunMetrics()
