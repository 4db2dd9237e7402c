"""
Endpoints para disparar la sincronizacion de tarifas manualmente.
Usa el mismo guard single-flight que los jobs programados.
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import JSONResponse
from loguru import logger

from tariff_sync.api.v1.dependencies.sync_deps import get_sync_scheduler
from tariff_sync.application.dto.tariff_dto import SyncRunResponseDTO
from tariff_sync.application.use_cases.tariff_sync_use_cases import STATUS_SKIPPED
from tariff_sync.infrastructure.scheduler.sync_scheduler import TariffSyncScheduler
from tariff_sync.shared.exceptions.fetch import ValidationError
from tariff_sync.shared.utils.date_utils import is_valid_iso_date


router = APIRouter(prefix="/sync", tags=["Sync"])


@router.post(
    "/run",
    response_model=SyncRunResponseDTO,
    status_code=status.HTTP_200_OK,
    summary="Ejecutar una corrida del pipeline de tarifas",
    responses={409: {"model": SyncRunResponseDTO, "description": "Ya hay una corrida en curso"}},
)
async def run_sync(
    date: Optional[str] = Query(
        default=None,
        description="Fecha YYYY-MM-DD a consultar. Por defecto, hoy (UTC)."
    ),
    publish: bool = Query(default=True, description="Si False, guarda sin replicar a Google Sheets"),
    scheduler: TariffSyncScheduler = Depends(get_sync_scheduler),
):
    """
    Ejecuta el pipeline completo de forma sincronica.

    - 200: la corrida termino (completed o failed, ver `status`)
    - 409: ya habia una corrida en curso y esta se descarto
    """
    if date is not None and not is_valid_iso_date(date):
        raise ValidationError(details={"date": date})

    logger.info(f"Sincronizacion manual solicitada desde API (date={date or 'hoy'})")
    result = await scheduler.trigger(date, publish=publish)
    dto = result.to_dto()

    if result.status == STATUS_SKIPPED:
        return JSONResponse(status_code=status.HTTP_409_CONFLICT, content=dto.model_dump())
    return dto
