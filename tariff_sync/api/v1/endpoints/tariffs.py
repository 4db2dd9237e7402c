"""
Endpoints de lectura de tarifas persistidas.
"""
from fastapi import APIRouter, Depends

from tariff_sync.api.v1.dependencies.sync_deps import get_tariff_repository
from tariff_sync.application.dto.tariff_dto import RecentTariffsResponseDTO, TariffRecordDTO
from tariff_sync.infrastructure.repositories.tariff_repository import TariffRepository


router = APIRouter(prefix="/tariffs", tags=["Tariffs"])


@router.get("/recent", response_model=RecentTariffsResponseDTO)
async def get_recent_tariffs(
    repository: TariffRepository = Depends(get_tariff_repository),
) -> RecentTariffsResponseDTO:
    """Ventana reciente tal como se publica en las hojas."""
    records = await repository.get_recent_window()
    return RecentTariffsResponseDTO(
        window_days=repository.window_days,
        count=len(records),
        items=[TariffRecordDTO.from_record(r) for r in records],
    )
