# jerarquía de errores de dominio + catálogo de mensajes (id)
from __future__ import annotations

from typing import Final

# Mensajes visibles por el cliente. Se mantienen en indonesio porque el
# front-end los muestra tal cual.
MESSAGES: Final[dict[str, str]] = {
    "upstream": "Gagal menghubungi server drama",
    "token": "Gagal mengambil token",
    "search": "Gagal mencari film",
    "search_enhanced": "Gagal melakukan enhanced search",
    "latest": "Gagal mengambil data film terbaru",
    "all_movies": "Gagal mengambil semua film",
    "comprehensive": "Gagal mengambil koleksi drama komprehensif",
    "genre": "Gagal mengambil drama untuk genre {genre}",
    "stream_not_found": "Link streaming tidak ditemukan",
    "stream_fetch": "Gagal mengambil link streaming",
    "keyword_required": "Keyword diperlukan",
    "keyword_blank": "Keyword tidak boleh kosong",
    "stream_params_required": "bookId dan index diperlukan",
    "api_not_found": "API endpoint tidak ditemukan",
    "bad_request": "Request tidak valid",
    "internal": "Internal server error",
}


def message_for(kind: str, **fmt: object) -> str:
    template = MESSAGES.get(kind, MESSAGES["internal"])
    return template.format(**fmt) if fmt else template


class DramaError(Exception):
    """Base de errores de dominio. `str(exc)` es el mensaje para el cliente."""

    kind: str = "internal"

    def __init__(self, msg: str | None = None) -> None:
        super().__init__(msg or message_for(self.kind))

    @property
    def message(self) -> str:
        return str(self)


class UpstreamError(DramaError):
    """Fallo de transporte/protocolo con el upstream (red, no-2xx, body inválido)."""

    kind = "upstream"

    def __init__(self, msg: str | None = None, *, detail: str = "") -> None:
        super().__init__(msg)
        # Detalle solo para logs; nunca se devuelve al cliente.
        self.detail = detail


class TokenError(UpstreamError):
    kind = "token"


class SearchError(DramaError):
    kind = "search"


class StreamNotFoundError(DramaError):
    kind = "stream_not_found"


class StreamFetchError(DramaError):
    kind = "stream_fetch"


class InvalidInputError(DramaError):
    """Entrada del cliente inválida; se rechaza con 400 antes de tocar el upstream."""

    kind = "keyword_required"
