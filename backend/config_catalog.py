"""
backend/config_catalog.py

Tablas estáticas del pipeline de agregación/búsqueda.

"Config as data": solo listas/mapas inmutables. Los orquestadores las reciben
como defaults de parámetros, así los tests pueden inyectar tablas pequeñas.
"""

from __future__ import annotations

from collections.abc import Mapping
from types import MappingProxyType
from typing import Final

from backend.config_base import _get_env_int, _get_env_int_list

# ============================================================
# Canales / grid de variaciones (theater)
# ============================================================

DEFAULT_CHANNEL_ID: Final[int] = _get_env_int("DRAMABOX_DEFAULT_CHANNEL_ID", 43)

# pageNo = requested + offset; index in {1, 2}. Orden = orden de consulta.
VARIATION_PAGE_OFFSETS: Final[tuple[int, ...]] = (0, 1, 2, 3)
VARIATION_INDEXES: Final[tuple[int, ...]] = (1, 2)

COMPREHENSIVE_CHANNEL_IDS: Final[tuple[int, ...]] = tuple(
    _get_env_int_list("COMPREHENSIVE_CHANNEL_IDS", [43, 44, 45, 46, 47, 48, 49, 50])
)

# /all-movies: "hay más" si la página trajo al menos este número de únicos.
ALL_MOVIES_HAS_MORE_THRESHOLD: Final[int] = 15


# ============================================================
# Barrido por keywords (colección comprehensiva)
# ============================================================

_GENRE_WORDS: Final[tuple[str, ...]] = (
    "romance", "drama", "comedy", "action", "thriller", "fantasy",
    "historical", "modern", "family", "school", "office", "medical",
)

_THEME_WORDS: Final[tuple[str, ...]] = (
    "love", "marriage", "ceo", "boss", "contract", "fake", "rich",
    "poor", "revenge", "secret", "hidden", "identity", "twin",
    "substitute", "arranged", "forced", "divorce", "ex", "husband",
    "wife", "pregnant", "baby", "child", "daughter", "son",
)

_COMMON_WORDS: Final[tuple[str, ...]] = (
    "the", "my", "his", "her", "our", "you", "me", "i", "we",
    "and", "or", "but", "with", "for", "to", "from", "in", "on",
)

# "i" ya aparece en las palabras comunes.
_SINGLE_LETTERS: Final[tuple[str, ...]] = tuple("abcdefghjklmnopqrstuvwxyz")

COMPREHENSIVE_KEYWORDS: Final[tuple[str, ...]] = (
    _GENRE_WORDS + _THEME_WORDS + _COMMON_WORDS + _SINGLE_LETTERS
)


# ============================================================
# Colección por género
# ============================================================

GENRE_KEYWORDS: Final[Mapping[str, tuple[str, ...]]] = MappingProxyType({
    "romance": ("romance", "love", "romantic", "dating", "marriage", "wedding", "couple"),
    "drama": ("drama", "family", "life", "story", "emotional", "tears"),
    "comedy": ("comedy", "funny", "humor", "laugh", "comic", "fun"),
    "action": ("action", "fight", "battle", "war", "combat", "hero"),
    "thriller": ("thriller", "suspense", "mystery", "crime", "detective"),
    "fantasy": ("fantasy", "magic", "supernatural", "fairy", "myth"),
    "historical": ("historical", "period", "ancient", "dynasty", "emperor"),
    "modern": ("modern", "contemporary", "current", "today", "now"),
})


# ============================================================
# Enhanced search
# ============================================================

POPULAR_LETTERS: Final[tuple[str, ...]] = ("a", "e", "i", "o", "u", "n", "t", "s", "r", "l")
SHORT_WORDS: Final[tuple[str, ...]] = ("my", "me", "he", "we", "to", "in", "on", "at", "it", "is")
TWO_LETTER_AFFIXES: Final[tuple[str, ...]] = ("a", "e", "i", "o", "u", "n", "t", "s")

MAX_KEYWORD_VARIATIONS: Final[int] = 5
MAX_SUBSTRING_SEARCHES: Final[int] = 3
SUBSTRING_PHASE_MIN_RESULTS: Final[int] = 20
SHORT_KEYWORD_MAX_LEN: Final[int] = 2

SCORE_TITLE_PREFIX: Final[float] = 10.0
SCORE_TITLE_CONTAINS: Final[float] = 5.0
SCORE_GENRE_CONTAINS: Final[float] = 3.0
SCORE_RATING_WEIGHT: Final[float] = 0.1


# ============================================================
# Política de defaults de MovieRecord
# ============================================================
# El upstream no proporciona estos campos (o no siempre): son defaults
# explícitos, no datos reales.

RECORD_DEFAULT_TITLE: Final[str] = "Tanpa Judul"
RECORD_DEFAULT_DESCRIPTION: Final[str] = ""
RECORD_DEFAULT_POSTER: Final[str] = ""
RECORD_DEFAULT_GENRE: Final[str] = "Drama"
RECORD_DEFAULT_CHAPTER_COUNT: Final[int] = 50
RECORD_DEFAULT_PLAY_COUNT: Final[str] = "0"
RECORD_DEFAULT_QUALITY: Final[str] = "HD"
RECORD_DEFAULT_DURATION: Final[str] = "45 min"

CORNER_NEW_NAME: Final[str] = "Terbaru"
RANK_TYPE_POPULAR: Final[int] = 3
