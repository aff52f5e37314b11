from __future__ import annotations

"""
backend/record_store.py

RecordAccumulator: acumulador ordenado bookId -> MovieRecord.

Es la estructura central de la agregación:
- insert_if_absent: el primero que llega gana; duplicados posteriores se
  descartan (nunca se sobre-escriben).
- Orden de iteración = orden de inserción.
- Los records son inmutables; el `source` se fija en la copia que se inserta.

Cada ejecución (request) crea su propio acumulador: no hay estado compartido.
"""

from collections.abc import Callable, Iterable, Iterator

from backend.movie_record import MovieRecord


class RecordAccumulator:
    def __init__(self) -> None:
        self._records: dict[str, MovieRecord] = {}

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, book_id: object) -> bool:
        return book_id in self._records

    def __iter__(self) -> Iterator[MovieRecord]:
        return iter(self._records.values())

    def get(self, book_id: str) -> MovieRecord | None:
        return self._records.get(book_id)

    def insert_if_absent(
        self,
        record: MovieRecord,
        *,
        source: str | None = None,
        keyword: str | None = None,
    ) -> bool:
        """True si se insertó; False si ya existía o el record no tiene bookId."""
        key = record.book_id
        if not key or key in self._records:
            return False
        self._records[key] = record.with_source(source, keyword=keyword)
        return True

    def extend(
        self,
        records: Iterable[MovieRecord],
        *,
        source: str | None = None,
        keyword: str | None = None,
        accept: Callable[[MovieRecord], bool] | None = None,
    ) -> int:
        """Inserta en orden; `accept` filtra candidatos ausentes. Devuelve cuántos son nuevos."""
        added = 0
        for rec in records:
            if rec.book_id in self._records:
                continue
            if accept is not None and not accept(rec):
                continue
            if self.insert_if_absent(rec, source=source, keyword=keyword):
                added += 1
        return added

    def values(self) -> list[MovieRecord]:
        return list(self._records.values())
