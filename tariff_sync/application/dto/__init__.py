"""
Data Transfer Objects (DTOs) para la capa de aplicacion.
"""
from .tariff_dto import RecentTariffsResponseDTO, SyncRunResponseDTO, TariffRecordDTO

__all__ = [
    "RecentTariffsResponseDTO",
    "SyncRunResponseDTO",
    "TariffRecordDTO",
]
