from __future__ import annotations

"""
backend/logger.py

Logger central del backend (fachada sobre `logging`).

API estable
-----------
- debug / info / warning / error / exception
- progress (siempre visible, sin timestamps)
- debug_ctx(tag, msg) (debug contextual alineado con SILENT/DEBUG)
- truncate_line(text) (evita volcar payloads enormes del upstream)

Política
--------
- SILENT_MODE=True: suprime debug/info/warning (salvo always=True). `error()` siempre emite.
- DEBUG_MODE=True: permite trazas de diagnóstico (fases de búsqueda, llamadas upstream).
- El logging nunca debe romper una request.

Notas técnicas
--------------
- No importamos `backend.config_base` directamente (evitamos circular imports:
  config_base usa este logger para avisar de env vars inválidas).
  Lo leemos desde `sys.modules` si ya está importado.
- Inicialización idempotente.
- Si LOGGER_FILE_ENABLED y hay path, se añade un FileHandler al root (best-effort).
"""

import logging
import sys
from types import ModuleType, TracebackType
from typing import Final, Mapping, TypedDict

from typing_extensions import TypeAlias, Unpack

_ExcInfoTuple: TypeAlias = tuple[type[BaseException], BaseException, TracebackType | None]
ExcInfo: TypeAlias = bool | _ExcInfoTuple | BaseException | None


class LogKwargs(TypedDict, total=False):
    """Subconjunto de kwargs de logging.Logger.* que reenviamos."""

    exc_info: ExcInfo
    stack_info: bool
    stacklevel: int
    extra: Mapping[str, object] | None


LOGGER_NAME: Final[str] = "dramabox"

_LOGGER: logging.Logger | None = None
_CONFIGURED: bool = False

_FILE_HANDLER_TAG: Final[str] = "_dramabox_file_handler"
_DEFAULT_LOG_LINE_MAX_CHARS: Final[int] = 500


# ============================================================================
# FLAGS (sin importar backend.config_base directamente)
# ============================================================================


def _safe_get_cfg() -> ModuleType | None:
    mod = sys.modules.get("backend.config_base")
    return mod if isinstance(mod, ModuleType) else None


def _cfg_value(name: str, default: object) -> object:
    cfg = _safe_get_cfg()
    if cfg is None:
        return default
    return getattr(cfg, name, default)


def is_silent_mode() -> bool:
    return bool(_cfg_value("SILENT_MODE", False))


def is_debug_mode() -> bool:
    return bool(_cfg_value("DEBUG_MODE", False))


_LEVELS: Final[dict[str, int]] = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "WARN": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}


def _resolve_level() -> int:
    """LOG_LEVEL explícito > DEBUG_MODE > INFO."""
    raw = _cfg_value("LOG_LEVEL", None)
    if isinstance(raw, str) and raw.strip():
        mapped = _LEVELS.get(raw.strip().upper())
        if mapped is not None:
            return mapped
    if is_debug_mode():
        return logging.DEBUG
    return logging.INFO


def _configure_external_loggers() -> None:
    """urllib3/requests hacen mucho ruido en DEBUG; salvo HTTP_DEBUG=True los bajamos."""
    if bool(_cfg_value("HTTP_DEBUG", False)):
        return
    for name in ("urllib3", "urllib3.connectionpool", "requests"):
        logging.getLogger(name).setLevel(logging.WARNING)


def _has_our_file_handler(root: logging.Logger) -> bool:
    return any(getattr(h, _FILE_HANDLER_TAG, False) for h in root.handlers)


def _ensure_file_handler(root: logging.Logger, *, level: int) -> None:
    if not bool(_cfg_value("LOGGER_FILE_ENABLED", False)):
        return
    path = _cfg_value("LOGGER_FILE_PATH", None)
    if path is None or _has_our_file_handler(root):
        return

    try:
        from pathlib import Path

        p = Path(str(path))
        p.parent.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(p, mode="a", encoding="utf-8", delay=True)
        fh.setLevel(level)
        fh.setFormatter(logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s"))
        setattr(fh, _FILE_HANDLER_TAG, True)
        root.addHandler(fh)
    except OSError:
        # Sin fichero seguimos solo con consola.
        return


def _ensure_configured() -> logging.Logger:
    global _LOGGER, _CONFIGURED

    if _CONFIGURED and _LOGGER is not None:
        return _LOGGER

    level = _resolve_level()
    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(
            level=level,
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        )

    _configure_external_loggers()
    _ensure_file_handler(root, level=level)

    _LOGGER = logging.getLogger(LOGGER_NAME)
    _LOGGER.setLevel(level)
    _CONFIGURED = True
    return _LOGGER


def get_logger() -> logging.Logger:
    return _ensure_configured()


def _should_log(*, always: bool = False) -> bool:
    return always or not is_silent_mode()


# ============================================================================
# PROGRESO (NO logging)
# ============================================================================


def progress(message: str) -> None:
    """Línea siempre visible (ignora SILENT_MODE)."""
    try:
        sys.stdout.write(f"{message}\n")
        sys.stdout.flush()
    except (OSError, ValueError):
        pass


# ============================================================================
# API PÚBLICA
# ============================================================================


def debug(msg: str, *args: object, always: bool = False, **kwargs: Unpack[LogKwargs]) -> None:
    if _should_log(always=always):
        _ensure_configured().debug(msg, *args, **kwargs)


def info(msg: str, *args: object, always: bool = False, **kwargs: Unpack[LogKwargs]) -> None:
    if _should_log(always=always):
        _ensure_configured().info(msg, *args, **kwargs)


def warning(msg: str, *args: object, always: bool = False, **kwargs: Unpack[LogKwargs]) -> None:
    if _should_log(always=always):
        _ensure_configured().warning(msg, *args, **kwargs)


def error(msg: str, *args: object, **kwargs: Unpack[LogKwargs]) -> None:
    """ERROR siempre se emite (ignora SILENT_MODE)."""
    _ensure_configured().error(msg, *args, **kwargs)


def exception(msg: str, *args: object, **kwargs: Unpack[LogKwargs]) -> None:
    _ensure_configured().exception(msg, *args, **kwargs)


def truncate_line(text: str, max_chars: int | None = None) -> str:
    limit = max_chars if isinstance(max_chars, int) and max_chars > 0 else _DEFAULT_LOG_LINE_MAX_CHARS
    if len(text) <= limit:
        return text
    suffix = " …(truncated)"
    return text[: max(0, limit - len(suffix))] + suffix


def debug_ctx(tag: str, msg: object) -> None:
    """
    Debug contextual con tag.

    - DEBUG_MODE=False -> no-op
    - DEBUG_MODE=True:
        * SILENT_MODE=True  -> progress("[TAG][DEBUG] ...")
        * SILENT_MODE=False -> info("[TAG][DEBUG] ...")
    """
    if not is_debug_mode():
        return

    t = (tag or "DEBUG").strip().upper()
    line = f"[{t}][DEBUG] {truncate_line(str(msg))}"
    if is_silent_mode():
        progress(line)
    else:
        info(line)
