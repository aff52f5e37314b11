# lectura de env vars + defaults
from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

_TRUE = {"1", "true", "yes", "y", "on"}
_FALSE = {"0", "false", "no", "n", "off"}

SERVER_DIR = Path(__file__).resolve().parents[1]
PROJECT_DIR = SERVER_DIR.parent


def _env_str(name: str, default: str) -> str:
    raw = os.getenv(name)
    if raw is None:
        return default
    val = raw.strip()
    return val if val else default


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return int(raw.strip())
    except ValueError:
        return default


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    val = raw.strip().lower()
    if val in _TRUE:
        return True
    if val in _FALSE:
        return False
    return default


def _normalize_prefix(raw: str) -> str:
    p = raw.strip().strip("/")
    return f"/{p}" if p else ""


@dataclass(frozen=True)
class Settings:
    """
    Settings centralizados (env vars). Esto evita `os.getenv(...)` disperso.

    Notas importantes:
    - CORS: si CORS_ORIGINS="*" -> allow_credentials=False para compatibilidad browser.
    - API_PREFIX: "/api" por defecto; "" monta las rutas en la raíz.
    - STREAM_NOT_FOUND_AS_404: por defecto un stream inexistente responde 500
      (contrato del front-end actual).
    """

    log_level: str

    cors_origins_raw: str
    cors_allow_credentials: bool

    gzip_min_size: int

    api_prefix: str
    frontend_dir: Path

    stream_not_found_as_404: bool

    def cors_allow_origins(self) -> list[str]:
        raw = self.cors_origins_raw.strip()
        if raw == "*":
            return ["*"]
        parts = [p.strip() for p in raw.split(",")]
        return [p for p in parts if p]

    def frontend_index(self) -> Path | None:
        index = self.frontend_dir / "index.html"
        return index if index.is_file() else None

    @staticmethod
    def from_env() -> "Settings":
        cors_raw = _env_str("CORS_ORIGINS", "*")
        allow_origins = ["*"] if cors_raw.strip() == "*" else [p.strip() for p in cors_raw.split(",") if p.strip()]

        # Regla browser: "*" + credentials=True no es válido
        cors_allow_credentials = True
        if allow_origins == ["*"]:
            cors_allow_credentials = False

        frontend_raw = Path(_env_str("FRONTEND_DIR", "frontend"))
        frontend_dir = frontend_raw if frontend_raw.is_absolute() else (PROJECT_DIR / frontend_raw)

        return Settings(
            log_level=_env_str("LOG_LEVEL", "INFO").upper(),
            cors_origins_raw=cors_raw,
            cors_allow_credentials=cors_allow_credentials,
            gzip_min_size=max(0, _env_int("GZIP_MIN_SIZE", 800)),
            api_prefix=_normalize_prefix(_env_str("API_PREFIX", "/api")),
            frontend_dir=frontend_dir,
            stream_not_found_as_404=_env_bool("STREAM_NOT_FOUND_AS_404", False),
        )
