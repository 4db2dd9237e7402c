"""
Caso de uso: una pasada completa del pipeline de tarifas.

Cadena estrictamente secuencial:
    fetch(date) -> transform -> save_batch -> get_recent_window -> publish

- Si la API no devuelve almacenes no se guarda ni se publica (se loguea).
- Los errores clasificados del fetch y los de persistencia se propagan: el
  scheduler es quien los captura y marca la corrida como fallida.
- La publicacion nunca lanza por un destino individual.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Sequence

from loguru import logger

from tariff_sync.application.dto.tariff_dto import SyncRunResponseDTO
from tariff_sync.application.services.tariff_normalizer import TariffNormalizer
from tariff_sync.infrastructure.external.google_sheets.publisher import (
    PublishSummary,
    SheetsFanOutPublisher,
)
from tariff_sync.infrastructure.external.wb_api.client import WbTariffsClient
from tariff_sync.infrastructure.repositories.tariff_repository import TariffRepository

STATUS_COMPLETED = "completed"
STATUS_SKIPPED = "skipped"
STATUS_FAILED = "failed"


@dataclass
class SyncRunResult:
    """Resultado efimero de una corrida; no se persiste."""

    status: str
    date: Optional[str] = None
    fetched: int = 0
    saved: int = 0
    window: int = 0
    published: PublishSummary = field(default_factory=PublishSummary)
    error: Optional[str] = None

    def to_dto(self) -> SyncRunResponseDTO:
        return SyncRunResponseDTO(
            status=self.status,
            date=self.date,
            fetched=self.fetched,
            saved=self.saved,
            window=self.window,
            published_succeeded=self.published.succeeded,
            published_failed=self.published.failed,
            error=self.error,
        )


class TariffSyncUseCase:
    """Orquesta Fetcher -> Normalizer -> Persistencia -> Publicador."""

    def __init__(
        self,
        fetcher: WbTariffsClient,
        normalizer: TariffNormalizer,
        repository: TariffRepository,
        publisher: SheetsFanOutPublisher,
        destination_ids: Sequence[str],
    ):
        self._fetcher = fetcher
        self._normalizer = normalizer
        self._repository = repository
        self._publisher = publisher
        self._destination_ids = list(destination_ids)

    async def execute(self, date: str, *, publish: bool = True) -> SyncRunResult:
        """
        Ejecuta una pasada para `date` (YYYY-MM-DD).

        Args:
            date: Fecha de calendario a consultar en la API
            publish: False para guardar sin replicar a las hojas (CLI)

        Returns:
            SyncRunResult con status "completed"
        """
        log = logger.bind(component="pipeline", run_date=date)
        log.info("Iniciando sincronizacion de tarifas")

        raws = await self._fetcher.fetch(date)
        result = SyncRunResult(status=STATUS_COMPLETED, date=date, fetched=len(raws))

        if not raws:
            log.warning("La API no devolvio almacenes; se omite guardado y publicacion")
            return result

        records = self._normalizer.transform_all(raws, date)
        result.saved = await self._repository.save_batch(records)

        window = await self._repository.get_recent_window()
        result.window = len(window)

        if publish:
            result.published = await self._publisher.publish(self._destination_ids, window)
        else:
            log.info("Publicacion deshabilitada para esta corrida")

        log.success(
            f"Sincronizacion completada: {result.fetched} recibidas, {result.saved} guardadas, "
            f"{result.window} en ventana"
        )
        return result
