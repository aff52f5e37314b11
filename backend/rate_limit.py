from __future__ import annotations

"""
backend/rate_limit.py

Gate de intervalo fijo para barridos secuenciales contra el upstream.

Los orquestadores (aggregator / enhanced_search) reciben el gate inyectado en
vez de llamar a time.sleep en línea: en tests se usa interval_s=0 o un
`sleep` falso que solo registra las esperas.

Semántica: entre el final de una llamada y el inicio de la siguiente pasan al
menos `interval_s` segundos. La primera llamada no espera y no hay sleep al
final del barrido. `slot()` libera en `finally`: una llamada fallida también
espacia la siguiente (antes solo se dormía tras un éxito).
"""

import time
from collections.abc import Callable, Iterator
from contextlib import contextmanager


class FixedIntervalGate:
    def __init__(
        self,
        interval_s: float,
        *,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._interval_s = max(0.0, float(interval_s))
        self._sleep = sleep
        self._clock = clock
        self._last_release: float | None = None
        self.waits = 0

    @property
    def interval_s(self) -> float:
        return self._interval_s

    def wait(self) -> float:
        """Duerme lo necesario antes de la siguiente llamada. Devuelve segundos dormidos."""
        if self._interval_s <= 0.0 or self._last_release is None:
            return 0.0

        wait_s = (self._last_release + self._interval_s) - self._clock()
        if wait_s <= 0.0:
            return 0.0

        self.waits += 1
        self._sleep(wait_s)
        return wait_s

    def release(self) -> None:
        self._last_release = self._clock()

    @contextmanager
    def slot(self) -> Iterator[None]:
        self.wait()
        try:
            yield
        finally:
            self.release()
