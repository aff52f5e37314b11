from __future__ import annotations

import re
from threading import RLock

from backend.run_metrics import METRICS as PIPELINE_METRICS

_LOCK = RLock()
_METRICS: dict[str, int] = {
    "http_requests_total": 0,
    "http_errors_4xx_total": 0,
    "http_errors_5xx_total": 0,
    "http_preflight_total": 0,
}

_INVALID_NAME_CHARS = re.compile(r"[^a-zA-Z0-9_]")


def inc(name: str, value: int = 1) -> None:
    with _LOCK:
        _METRICS[name] = _METRICS.get(name, 0) + value


def _prometheus_name(key: str) -> str:
    # "upstream.search.calls" -> "dramabox_upstream_search_calls_total"
    return "dramabox_" + _INVALID_NAME_CHARS.sub("_", key) + "_total"


def render_prometheus() -> str:
    with _LOCK:
        http = dict(_METRICS)

    lines: list[str] = []
    for k, v in sorted(http.items()):
        lines.append(f"# TYPE {k} counter")
        lines.append(f"{k} {v}")

    for k, v in sorted(PIPELINE_METRICS.counters().items()):
        name = _prometheus_name(k)
        lines.append(f"# TYPE {name} counter")
        lines.append(f"{name} {v}")

    return "\n".join(lines) + "\n"
