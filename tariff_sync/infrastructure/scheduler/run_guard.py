"""
Guard de ejecucion unica (single-flight) para el pipeline.

Motivacion:
- El job horario, el disparo de arranque y el endpoint manual pueden
  coincidir en el tiempo.
- Solo una corrida puede estar activa; las demas se descartan (no se
  encolan), la siguiente hora vuelve a intentar.

Usa `threading.Lock` con `acquire(blocking=False)`: sirve igual desde el
event loop que desde un thread (CLI).
"""

from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Iterator


class SingleFlightGuard:
    """Lock no bloqueante: quien llega con el lock tomado recibe False."""

    def __init__(self) -> None:
        self._lock = threading.Lock()

    @property
    def is_running(self) -> bool:
        return self._lock.locked()

    @contextmanager
    def hold(self) -> Iterator[bool]:
        """
        Intenta tomar el guard sin esperar.

        Yields:
            True si se adquirio (la corrida debe ejecutarse), False si ya
            habia otra corrida en curso. El guard se libera siempre al salir,
            incluso si la corrida lanza.
        """
        acquired = self._lock.acquire(blocking=False)
        try:
            yield acquired
        finally:
            if acquired:
                self._lock.release()
