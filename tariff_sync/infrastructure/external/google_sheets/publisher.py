"""
Publicador fan-out: replica la ventana reciente de tarifas en N hojas de
calculo de Google.

Cada destino es independiente: si uno falla (permisos, id inexistente,
error de red) se registra, se cuenta como fallido y se sigue con el resto.
La entrega es best-effort; el siguiente run vuelve a intentar todo.
"""
from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any, List, Optional, Sequence

from loguru import logger

from tariff_sync.core.metrics import SyncMetrics, get_metrics
from tariff_sync.domain.entities.tariff import TARIFF_FIELDS, WarehouseTariffRecord
from tariff_sync.infrastructure.external.google_sheets.sheets_client import (
    GoogleSheetsApiError,
    GoogleSheetsClient,
)

DEFAULT_SHEET_NAME = "stocks_coefs"
DEFAULT_CLEAR_RANGE = "A1:Z1000"

SHEET_HEADERS: List[str] = [
    "Date",
    "Warehouse Name",
    *[header for _, _, header in TARIFF_FIELDS],
    "Geo Name",
]


def render_table(rows: Sequence[WarehouseTariffRecord]) -> List[List[Any]]:
    """Encabezado fijo de 12 columnas + una fila por registro ("" para null)."""
    values: List[List[Any]] = [list(SHEET_HEADERS)]
    for row in rows:
        values.append([
            row.date,
            row.warehouse_name,
            *["" if value is None else value for value in row.tariff_values()],
            row.geo_name or "",
        ])
    return values


@dataclass(frozen=True)
class PublishSummary:
    succeeded: int = 0
    failed: int = 0

    @property
    def total(self) -> int:
        return self.succeeded + self.failed


class SheetsFanOutPublisher:
    """
    Orquestador de la replica a hojas de calculo.

    El cliente de Sheets es bloqueante: cada destino se procesa en un thread
    (asyncio.to_thread) para no bloquear el event loop, pero los destinos se
    recorren en secuencia.
    """

    def __init__(
        self,
        client: GoogleSheetsClient,
        *,
        sheet_name: str = DEFAULT_SHEET_NAME,
        clear_range: str = DEFAULT_CLEAR_RANGE,
        metrics: Optional[SyncMetrics] = None,
        log=None,
    ) -> None:
        self._client = client
        self._sheet_name = sheet_name
        self._clear_range = clear_range
        self._metrics = metrics or get_metrics()
        self._log = log or logger.bind(component="sheets")

    async def publish(
        self,
        destination_ids: Sequence[str],
        rows: Sequence[WarehouseTariffRecord],
    ) -> PublishSummary:
        """
        Escribe la tabla renderizada en cada destino.

        Nunca lanza por la falla de un destino individual.
        """
        if not rows:
            self._log.warning("No hay datos para actualizar en Google Sheets")
            return PublishSummary()

        values = render_table(rows)
        succeeded = 0
        failed = 0

        for spreadsheet_id in destination_ids:
            try:
                await asyncio.to_thread(self._publish_to_destination, spreadsheet_id, values)
                succeeded += 1
                self._metrics.record_destination(success=True)
                self._log.info(f"Hoja actualizada: {spreadsheet_id} ({len(rows)} filas)")
            except Exception as e:
                failed += 1
                self._metrics.record_destination(success=False)
                self._log.error(f"Fallo al actualizar la hoja {spreadsheet_id}: {e}")
                self._log_hints(spreadsheet_id, e)

        summary = PublishSummary(succeeded=succeeded, failed=failed)
        self._log.info(
            f"Resumen Google Sheets: {summary.succeeded} exitosas, {summary.failed} fallidas"
        )
        return summary

    def _publish_to_destination(self, spreadsheet_id: str, values: List[List[Any]]) -> None:
        self.ensure_sheet_exists(spreadsheet_id)

        # Limpiar filas viejas; una hoja recien creada no tiene nada que limpiar
        try:
            self._client.clear_values(spreadsheet_id, f"{self._sheet_name}!{self._clear_range}")
        except GoogleSheetsApiError as e:
            self._log.info(f"No se pudo limpiar {spreadsheet_id} (se continua con la escritura): {e}")

        self._client.update_values(spreadsheet_id, f"{self._sheet_name}!A1", values)

    def ensure_sheet_exists(self, spreadsheet_id: str) -> None:
        """Crea la hoja `sheet_name` si no existe. Idempotente."""
        titles = self._client.get_sheet_titles(spreadsheet_id)
        if self._sheet_name in titles:
            return

        try:
            self._client.add_sheet(spreadsheet_id, self._sheet_name)
        except GoogleSheetsApiError as e:
            # Otra ejecucion pudo crearla entre la lectura y el addSheet
            if "already exists" in str(e).lower():
                return
            raise
        self._log.info(f"Hoja creada: {self._sheet_name} en {spreadsheet_id}")

    def _log_hints(self, spreadsheet_id: str, error: Exception) -> None:
        text = str(error)
        if "PERMISSION_DENIED" in text:
            self._log.error(
                f"Revisar: la service account debe estar compartida como editor en {spreadsheet_id}"
            )
        if "Unable to parse range" in text or "not found" in text.lower():
            self._log.error(
                f"Revisar: el id {spreadsheet_id} es correcto, la hoja existe y esta compartida "
                f"con la service account"
            )
