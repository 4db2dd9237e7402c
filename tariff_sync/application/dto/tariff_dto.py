"""
DTOs de la superficie HTTP del pipeline de tarifas.
"""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from tariff_sync.domain.entities.tariff import WarehouseTariffRecord


class TariffRecordDTO(BaseModel):
    """Registro de tarifa tal como se expone por la API."""

    model_config = ConfigDict(from_attributes=True)

    date: str
    warehouse_name: str
    box_delivery_base: Optional[float] = None
    box_delivery_coef_expr: Optional[float] = None
    box_delivery_liter: Optional[float] = None
    box_delivery_marketplace_base: Optional[float] = None
    box_delivery_marketplace_coef_expr: Optional[float] = None
    box_delivery_marketplace_liter: Optional[float] = None
    box_storage_base: Optional[float] = None
    box_storage_coef_expr: Optional[float] = None
    box_storage_liter: Optional[float] = None
    geo_name: Optional[str] = None

    @classmethod
    def from_record(cls, record: WarehouseTariffRecord) -> "TariffRecordDTO":
        return cls.model_validate(record)


class RecentTariffsResponseDTO(BaseModel):
    """Ventana reciente, ordenada de almacenamiento mas barato a mas caro."""

    window_days: int
    count: int
    items: List[TariffRecordDTO] = Field(default_factory=list)


class SyncRunResponseDTO(BaseModel):
    """Resultado de una corrida del pipeline (completed / skipped / failed)."""

    status: str
    date: Optional[str] = None
    fetched: int = 0
    saved: int = 0
    window: int = 0
    published_succeeded: int = 0
    published_failed: int = 0
    error: Optional[str] = None
