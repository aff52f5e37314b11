# logging del proceso API (nivel global + fichero opcional)
from __future__ import annotations

import logging
import os
from datetime import datetime
from pathlib import Path

from server.api.settings import SERVER_DIR, Settings, _env_bool, _env_str

API_LOGGER_NAME = "dramabox_api"

_FILE_HANDLER_TAG = "_dramabox_api_file_handler"
_LOGGER_FILE_PATH_SENTINEL: object = object()
_LOGGER_FILE_PATH_CACHED: Path | None | object = _LOGGER_FILE_PATH_SENTINEL


def _sanitize_filename_component(value: str) -> str:
    s = (value or "").strip()
    if not s:
        return ""
    out = []
    for ch in s:
        if ch.isalnum() or ch in ("-", "_", "."):
            out.append(ch)
        else:
            out.append("_")
    return "".join(out).strip("._-")


def _resolve_dir(raw: str, *, base: Path) -> Path:
    p = Path(raw)
    return p if p.is_absolute() else (base / p)


def _build_logger_file_path() -> Path | None:
    global _LOGGER_FILE_PATH_CACHED

    if _LOGGER_FILE_PATH_CACHED is not _LOGGER_FILE_PATH_SENTINEL:
        return None if _LOGGER_FILE_PATH_CACHED is None else _LOGGER_FILE_PATH_CACHED  # type: ignore[return-value]

    if not _env_bool("LOGGER_FILE_ENABLED", False):
        _LOGGER_FILE_PATH_CACHED = None
        return None

    raw_path = _env_str("LOGGER_FILE_PATH", "").strip()
    if raw_path:
        _LOGGER_FILE_PATH_CACHED = _resolve_dir(raw_path, base=SERVER_DIR).resolve()
        return _LOGGER_FILE_PATH_CACHED

    log_dir = _resolve_dir(_env_str("LOGGER_FILE_DIR", "logs"), base=SERVER_DIR)
    prefix = _sanitize_filename_component(_env_str("LOGGER_FILE_PREFIX", "api")) or "api"
    ts_fmt = _env_str("LOGGER_FILE_TIMESTAMP_FORMAT", "%Y-%m-%d_%H-%M-%S")
    include_pid = _env_bool("LOGGER_FILE_INCLUDE_PID", True)

    ts = datetime.now().strftime(ts_fmt)
    pid_part = f"_{os.getpid()}" if include_pid else ""
    _LOGGER_FILE_PATH_CACHED = (log_dir / f"{prefix}_{ts}{pid_part}.log").resolve()
    return _LOGGER_FILE_PATH_CACHED


def _has_our_file_handler(root: logging.Logger) -> bool:
    return any(getattr(h, _FILE_HANDLER_TAG, False) for h in root.handlers)


def _ensure_file_handler(root: logging.Logger, *, level: str) -> None:
    path = _build_logger_file_path()
    if path is None:
        return

    if _has_our_file_handler(root):
        for handler in root.handlers:
            if getattr(handler, _FILE_HANDLER_TAG, False):
                handler.setLevel(level)
        return

    try:
        path.parent.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        logging.getLogger(API_LOGGER_NAME).warning("log dir unavailable (%s): %r", path.parent, exc)
        return

    handler = logging.FileHandler(path, mode="a", encoding="utf-8", delay=True)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s"))
    setattr(handler, _FILE_HANDLER_TAG, True)
    root.addHandler(handler)


def configure_logging(settings: Settings) -> logging.Logger:
    """
    Configuración mínima:
    - Respetamos handlers/format de quien ejecute (uvicorn, gunicorn, etc.).
    - Ajustamos nivel global según env.
    """
    root = logging.getLogger()
    root.setLevel(settings.log_level)
    _ensure_file_handler(root, level=settings.log_level)

    logger = logging.getLogger(API_LOGGER_NAME)
    logger.setLevel(settings.log_level)
    return logger
