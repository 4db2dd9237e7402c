"""
Normalizador de tarifas de almacen.

Convierte los registros crudos de la API (strings en formato local, con
coma decimal y "-" para valores ausentes) al registro canonico que se
persiste.

Reglas:
- "", "-", "null" y None -> None (nunca 0)
- coma decimal -> punto; se eliminan espacios (incluye separadores de miles)
- un valor imposible de parsear -> None + warning (nunca lanza)
"""
from __future__ import annotations

import math
import re
from typing import Optional

from loguru import logger

from tariff_sync.domain.entities.tariff import (
    TARIFF_COLUMNS,
    UNKNOWN_NAME,
    WarehouseTariffRecord,
)
from tariff_sync.infrastructure.external.wb_api.schemas import WarehouseTariffRaw
from tariff_sync.shared.utils.date_utils import DateLike, to_calendar_date_str

_ABSENT_TOKENS = frozenset({"", "-", "null"})
_WHITESPACE_RE = re.compile(r"\s+")


class TariffNormalizer:
    """
    Transformacion pura: WarehouseTariffRaw -> WarehouseTariffRecord.

    Uso:
        normalizer = TariffNormalizer()
        record = normalizer.transform(raw, "2024-01-15")
    """

    def __init__(self, log=None) -> None:
        self._log = log or logger.bind(component="normalizer")

    def parse_number(self, raw: Optional[str]) -> Optional[float]:
        """
        Parsea un numero en formato local.

        Args:
            raw: Valor tal como llega de la API ("11,2", "-", "")

        Returns:
            float, o None si el valor no fue enviado o no es un numero
        """
        if raw is None:
            return None

        text = str(raw)
        if text.strip() in _ABSENT_TOKENS:
            return None

        cleaned = _WHITESPACE_RE.sub("", text.replace(",", ".", 1))
        try:
            if "_" in cleaned:
                # float() aceptaria "1_5" como 15
                raise ValueError(cleaned)
            number = float(cleaned)
        except ValueError:
            self._log.warning(f"No se pudo parsear el valor de tarifa {raw!r}; se usa null")
            return None

        if not math.isfinite(number):
            self._log.warning(f"Valor de tarifa no finito {raw!r}; se usa null")
            return None

        return number

    def transform(self, raw: WarehouseTariffRaw, date: DateLike) -> WarehouseTariffRecord:
        """
        Construye el registro canonico para `date` (truncada a dia).

        Cada uno de los nueve componentes se parsea de forma independiente:
        un valor invalido no afecta al resto.
        """
        values = {column: self.parse_number(getattr(raw, column)) for column in TARIFF_COLUMNS}
        return WarehouseTariffRecord(
            date=to_calendar_date_str(date),
            warehouse_name=raw.warehouse_name or UNKNOWN_NAME,
            geo_name=raw.geo_name or UNKNOWN_NAME,
            **values,
        )

    def transform_all(self, raws: list[WarehouseTariffRaw], date: DateLike) -> list[WarehouseTariffRecord]:
        return [self.transform(raw, date) for raw in raws]
