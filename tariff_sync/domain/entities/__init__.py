"""
Entidades del dominio.
"""
from tariff_sync.domain.entities.tariff import (
    TARIFF_COLUMNS,
    TARIFF_FIELDS,
    UNKNOWN_NAME,
    WarehouseTariffRecord,
)

__all__ = [
    "TARIFF_COLUMNS",
    "TARIFF_FIELDS",
    "UNKNOWN_NAME",
    "WarehouseTariffRecord",
]
