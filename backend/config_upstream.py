from __future__ import annotations

from typing import Final

from backend.config_base import (
    _cap_float,
    _cap_int,
    _get_env_bool,
    _get_env_float,
    _get_env_int,
    _get_env_str,
)

# ============================================================
# DramaBox upstream (endpoints + identidad de cliente)
# ============================================================

DRAMABOX_BASE_URL: str = (
    _get_env_str("DRAMABOX_BASE_URL", "https://sapi.dramaboxdb.com/drama-box") or ""
).rstrip("/")

DRAMABOX_TOKEN_URL: str = (
    _get_env_str("DRAMABOX_TOKEN_URL", "https://dramabox-token.vercel.app/token") or ""
)

THEATER_PATH: Final[str] = "/he001/theater"
SEARCH_SUGGEST_PATH: Final[str] = "/search/suggest"
CHAPTER_BATCH_PATH: Final[str] = "/chapterv2/batch/load"

# Identidad fija impuesta por el tercero (cliente Android oficial).
DRAMABOX_USER_AGENT: Final[str] = "okhttp/4.10.0"
DRAMABOX_APP_VERSION: Final[str] = "430"
DRAMABOX_APP_VN: Final[str] = "4.3.0"
DRAMABOX_PACKAGE_NAME: Final[str] = "com.storymatrix.drama"
DRAMABOX_CATALOG_CID: Final[str] = "DRA1000042"
DRAMABOX_STREAM_CID: Final[str] = "DRA1000000"
DRAMABOX_P: Final[str] = "43"
DRAMABOX_TIME_ZONE: Final[str] = "+0800"

DRAMABOX_LANGUAGE: str = _get_env_str("DRAMABOX_LANGUAGE", "in") or "in"


# ============================================================
# HTTP (timeouts + retries)
# ============================================================

DRAMABOX_HTTP_TIMEOUT_SECONDS: float = _cap_float(
    "DRAMABOX_HTTP_TIMEOUT_SECONDS",
    _get_env_float("DRAMABOX_HTTP_TIMEOUT_SECONDS", 20.0),
    min_v=0.5,
    max_v=120.0,
)

# Retry de urllib3 solo para el GET del token; los POST no se reintentan.
DRAMABOX_HTTP_RETRY_TOTAL: int = _cap_int(
    "DRAMABOX_HTTP_RETRY_TOTAL",
    _get_env_int("DRAMABOX_HTTP_RETRY_TOTAL", 2),
    min_v=0,
    max_v=10,
)
DRAMABOX_HTTP_RETRY_BACKOFF_FACTOR: float = _cap_float(
    "DRAMABOX_HTTP_RETRY_BACKOFF_FACTOR",
    _get_env_float("DRAMABOX_HTTP_RETRY_BACKOFF_FACTOR", 0.5),
    min_v=0.0,
    max_v=10.0,
)


# ============================================================
# Circuit breaker (por endpoint)
# ============================================================

# Desactivado => cada llamada llega al upstream.
DRAMABOX_BREAKER_ENABLED: bool = _get_env_bool("DRAMABOX_BREAKER_ENABLED", False)

DRAMABOX_BREAKER_FAILURE_THRESHOLD: int = _cap_int(
    "DRAMABOX_BREAKER_FAILURE_THRESHOLD",
    _get_env_int("DRAMABOX_BREAKER_FAILURE_THRESHOLD", 8),
    min_v=1,
    max_v=1000,
)
DRAMABOX_BREAKER_OPEN_SECONDS: float = _cap_float(
    "DRAMABOX_BREAKER_OPEN_SECONDS",
    _get_env_float("DRAMABOX_BREAKER_OPEN_SECONDS", 15.0),
    min_v=0.1,
    max_v=600.0,
)


# ============================================================
# Token
# ============================================================

# 0 => token nuevo en cada llamada upstream (comportamiento histórico).
DRAMABOX_TOKEN_TTL_SECONDS: float = _cap_float(
    "DRAMABOX_TOKEN_TTL_SECONDS",
    _get_env_float("DRAMABOX_TOKEN_TTL_SECONDS", 0.0),
    min_v=0.0,
    max_v=60.0 * 60.0,
)


# ============================================================
# Pacing entre llamadas secuenciales
# ============================================================

AGGREGATOR_KEYWORD_DELAY_SECONDS: float = _cap_float(
    "AGGREGATOR_KEYWORD_DELAY_SECONDS",
    _get_env_float("AGGREGATOR_KEYWORD_DELAY_SECONDS", 0.1),
    min_v=0.0,
    max_v=10.0,
)
AGGREGATOR_CHANNEL_DELAY_SECONDS: float = _cap_float(
    "AGGREGATOR_CHANNEL_DELAY_SECONDS",
    _get_env_float("AGGREGATOR_CHANNEL_DELAY_SECONDS", 0.2),
    min_v=0.0,
    max_v=10.0,
)
SEARCH_PHASE_DELAY_SECONDS: float = _cap_float(
    "SEARCH_PHASE_DELAY_SECONDS",
    _get_env_float("SEARCH_PHASE_DELAY_SECONDS", 0.2),
    min_v=0.0,
    max_v=10.0,
)
