"""
Registro canonico de tarifa por almacen y dia.

Es la unica entidad durable del pipeline: se crea/actualiza en la base de
datos y nunca se borra desde aqui.
"""
from __future__ import annotations

from dataclasses import dataclass, asdict, field
from datetime import datetime
from typing import Any, Dict, Optional, Tuple

UNKNOWN_NAME = "Unknown"

# Orden canonico de los nueve componentes de tarifa.
# (campo en la API, columna en la base de datos, encabezado en la hoja)
TARIFF_FIELDS: Tuple[Tuple[str, str, str], ...] = (
    ("boxDeliveryBase", "box_delivery_base", "Box Delivery Base"),
    ("boxDeliveryCoefExpr", "box_delivery_coef_expr", "Box Delivery Coef Expr"),
    ("boxDeliveryLiter", "box_delivery_liter", "Box Delivery Liter"),
    ("boxDeliveryMarketplaceBase", "box_delivery_marketplace_base", "Box Delivery Marketplace Base"),
    ("boxDeliveryMarketplaceCoefExpr", "box_delivery_marketplace_coef_expr", "Box Delivery Marketplace Coef Expr"),
    ("boxDeliveryMarketplaceLiter", "box_delivery_marketplace_liter", "Box Delivery Marketplace Liter"),
    ("boxStorageBase", "box_storage_base", "Box Storage Base"),
    ("boxStorageCoefExpr", "box_storage_coef_expr", "Box Storage Coef Expr"),
    ("boxStorageLiter", "box_storage_liter", "Box Storage Liter"),
)

TARIFF_COLUMNS: Tuple[str, ...] = tuple(column for _, column, _ in TARIFF_FIELDS)


@dataclass
class WarehouseTariffRecord:
    """
    Tarifa de un almacen para una fecha de calendario.

    Clave natural: (date, warehouse_name).
    `None` en un componente significa "la fuente no lo envio"; nunca se
    convierte a 0.
    """

    date: str                   # YYYY-MM-DD
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
    geo_name: str = UNKNOWN_NAME
    created_at: Optional[datetime] = field(default=None, compare=False)
    updated_at: Optional[datetime] = field(default=None, compare=False)

    @property
    def key(self) -> Tuple[str, str]:
        return (self.date, self.warehouse_name)

    def tariff_values(self) -> Tuple[Optional[float], ...]:
        """Los nueve componentes en orden canonico."""
        return tuple(getattr(self, column) for column in TARIFF_COLUMNS)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
