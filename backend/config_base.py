"""
backend/config_base.py

- Carga .env UNA vez
- Helpers defensivos (_get_env_*, _cap_*)
- Flags globales (DEBUG_MODE/SILENT_MODE/LOG_LEVEL/HTTP_DEBUG)
- LOGGER_FILE_* + congelado de LOGGER_FILE_PATH

Este módulo NO debe importar config_*.py para evitar ciclos.
"""

from __future__ import annotations

import os
from datetime import datetime
from pathlib import Path
from typing import Final

from dotenv import load_dotenv

# No sobre-escribimos env vars ya definidas (Vercel/contenedor mandan).
load_dotenv(override=False)

from backend import logger as _logger  # noqa: E402


# ============================================================
# Paths base
# ============================================================

BASE_DIR: Final[Path] = Path(__file__).resolve().parent
PROJECT_DIR: Final[Path] = BASE_DIR.parent


# ============================================================
# Helpers: parseo defensivo de env vars
# ============================================================

_TRUE_SET: Final[set[str]] = {"1", "true", "t", "yes", "y", "on"}
_FALSE_SET: Final[set[str]] = {"0", "false", "f", "no", "n", "off"}


def _clean_env_raw(v: object | None) -> str | None:
    if v is None:
        return None
    s = str(v).strip()
    if not s:
        return None
    if len(s) >= 2 and (s[0] == s[-1]) and s[0] in ("'", '"'):
        s = s[1:-1].strip()
    return s or None


def _get_env_str(name: str, default: str | None = None) -> str | None:
    v = _clean_env_raw(os.getenv(name))
    return default if v is None else v


def _get_env_int(name: str, default: int) -> int:
    v = _clean_env_raw(os.getenv(name))
    if v is None:
        return default
    try:
        return int(v)
    except ValueError:
        _logger.warning(f"Invalid int for {name!r}: {v!r}, using default {default}", always=True)
        return default


def _get_env_float(name: str, default: float) -> float:
    v = _clean_env_raw(os.getenv(name))
    if v is None:
        return default
    try:
        return float(v)
    except ValueError:
        _logger.warning(f"Invalid float for {name!r}: {v!r}, using default {default}", always=True)
        return default


def _get_env_bool(name: str, default: bool) -> bool:
    v = _clean_env_raw(os.getenv(name))
    if v is None:
        return default
    s = v.lower()
    if s in _TRUE_SET:
        return True
    if s in _FALSE_SET:
        return False
    _logger.warning(f"Invalid bool for {name!r}: {v!r}, using default {default}", always=True)
    return default


def _get_env_int_list(name: str, default: list[int]) -> list[int]:
    """Lista "43,44,45" -> [43, 44, 45]. Tokens inválidos se ignoran con warning."""
    raw = _get_env_str(name, None)
    if raw is None:
        return list(default)

    out: list[int] = []
    for part in raw.split(","):
        chunk = part.strip()
        if not chunk:
            continue
        try:
            out.append(int(chunk))
        except ValueError:
            _logger.warning(f"Invalid int token in {name!r} ignored: {chunk!r}", always=True)
    return out or list(default)


def _cap_int(name: str, value: int, *, min_v: int, max_v: int) -> int:
    if value < min_v:
        _logger.warning(f"{name} < {min_v}; forcing to {min_v}", always=True)
        return min_v
    if value > max_v:
        _logger.warning(f"{name} too high; capping to {max_v}", always=True)
        return max_v
    return value


def _cap_float(name: str, value: float, *, min_v: float, max_v: float) -> float:
    if value < min_v:
        _logger.warning(f"{name} < {min_v}; forcing to {min_v}", always=True)
        return min_v
    if value > max_v:
        _logger.warning(f"{name} too high; capping to {max_v}", always=True)
        return max_v
    return value


# ============================================================
# MODO DE EJECUCIÓN
# ============================================================

DEBUG_MODE: bool = _get_env_bool("DEBUG_MODE", False)
SILENT_MODE: bool = _get_env_bool("SILENT_MODE", False)

HTTP_DEBUG: bool = _get_env_bool("HTTP_DEBUG", False)
LOG_LEVEL: str | None = _get_env_str("LOG_LEVEL", None)


# ============================================================
# LOGGER (persistencia opcional a fichero)
# ============================================================

LOGGER_FILE_ENABLED: bool = _get_env_bool("LOGGER_FILE_ENABLED", False)

_LOGGER_FILE_DIR_CANDIDATE = Path(_get_env_str("LOGGER_FILE_DIR", "logs") or "logs")
LOGGER_FILE_DIR: Final[Path] = (
    _LOGGER_FILE_DIR_CANDIDATE
    if _LOGGER_FILE_DIR_CANDIDATE.is_absolute()
    else (PROJECT_DIR / _LOGGER_FILE_DIR_CANDIDATE)
)
LOGGER_FILE_PREFIX: Final[str] = _get_env_str("LOGGER_FILE_PREFIX", "dramabox") or "dramabox"


def _sanitize_filename_component(s: str) -> str:
    out_chars: list[str] = []
    for ch in s or "":
        out_chars.append(ch if (ch.isalnum() or ch in ("-", "_", ".")) else "_")
    cleaned = "".join(out_chars).strip("._-")
    return cleaned or "run"


def _build_logger_file_path() -> Path | None:
    """
    Path del log de esta ejecución.

    Si no viene LOGGER_FILE_PATH explícito lo calculamos una vez y lo
    congelamos en os.environ: los workers de uvicorn lo heredan y no
    acabamos con un fichero por PID.
    """
    if not LOGGER_FILE_ENABLED:
        return None

    explicit = _clean_env_raw(os.getenv("LOGGER_FILE_PATH"))
    if explicit:
        p = Path(explicit)
        return (p if p.is_absolute() else (PROJECT_DIR / p)).resolve()

    ts = datetime.now().strftime("%Y-%m-%d_%H-%M-%S")
    prefix = _sanitize_filename_component(LOGGER_FILE_PREFIX)
    resolved = (LOGGER_FILE_DIR / f"{prefix}_{ts}_{os.getpid()}.log").resolve()
    os.environ["LOGGER_FILE_PATH"] = str(resolved)
    return resolved


LOGGER_FILE_PATH: Path | None = _build_logger_file_path()
