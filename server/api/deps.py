from __future__ import annotations

from server.api.services.dramas import DramaService
from server.api.settings import Settings

_SETTINGS = Settings.from_env()
_DRAMA_SERVICE = DramaService()


def get_settings() -> Settings:
    return _SETTINGS


def get_drama_service() -> DramaService:
    return _DRAMA_SERVICE
