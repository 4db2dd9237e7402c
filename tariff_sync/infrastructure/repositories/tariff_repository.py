"""
Repositorio de tarifas (gateway de persistencia).

- UPSERT idempotente por la clave natural (date, warehouse_name)
- lectura de la ventana reciente para replicar a las hojas

Es el unico dueno de la session factory / engine: ningun otro componente
toca la base de datos.
"""
from __future__ import annotations

from datetime import date
from typing import Callable, List, Optional, Sequence

from loguru import logger
from sqlalchemy import func, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from tariff_sync.core.metrics import SyncMetrics, get_metrics
from tariff_sync.domain.entities.tariff import TARIFF_COLUMNS, WarehouseTariffRecord
from tariff_sync.infrastructure.database.models import BoxTariffModel
from tariff_sync.infrastructure.database.session import close_db
from tariff_sync.shared.utils.date_utils import utc_today, window_start

_KEY_COLUMNS = ("date", "warehouse_name")
_UPDATABLE_COLUMNS = TARIFF_COLUMNS + ("geo_name",)

# INSERT ... ON CONFLICT DO UPDATE por dialecto
_DIALECT_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


def build_upsert_statement(dialect_name: str, record: WarehouseTariffRecord):
    """
    Sentencia UPSERT para un registro.

    Inserta si la clave no existe; si existe sobrescribe todas las columnas
    que no son clave y refresca updated_at. created_at no se toca.
    """
    insert = _DIALECT_INSERTS.get(dialect_name)
    if insert is None:
        raise NotImplementedError(f"UPSERT no soportado para el dialecto '{dialect_name}'")

    values = {column: getattr(record, column) for column in _UPDATABLE_COLUMNS}
    values["date"] = date.fromisoformat(record.date)
    values["warehouse_name"] = record.warehouse_name
    values["updated_at"] = func.now()

    stmt = insert(BoxTariffModel).values(**values)
    set_ = {column: stmt.excluded[column] for column in _UPDATABLE_COLUMNS}
    set_["updated_at"] = func.now()
    return stmt.on_conflict_do_update(index_elements=list(_KEY_COLUMNS), set_=set_)


class TariffRepository:
    """Gateway de persistencia de WarehouseTariffRecord."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        *,
        engine: Optional[AsyncEngine] = None,
        window_days: int = 7,
        today_provider: Callable[[], date] = utc_today,
        metrics: Optional[SyncMetrics] = None,
        log=None,
    ):
        self._session_factory = session_factory
        self._engine = engine
        self._window_days = window_days
        self._today = today_provider
        self._metrics = metrics or get_metrics()
        self._log = log or logger.bind(component="persistence")

    @property
    def window_days(self) -> int:
        return self._window_days

    async def save_batch(self, records: Sequence[WarehouseTariffRecord]) -> int:
        """
        Guarda (insert o update) el lote completo en una sola transaccion.

        Si cualquier registro falla se hace rollback de todo el lote y la
        excepcion se propaga.

        Returns:
            Cantidad de registros procesados
        """
        if not records:
            self._log.warning("No hay tarifas para guardar")
            return 0

        self._log.debug(f"Muestra de tarifas a guardar: {[r.to_dict() for r in records[:2]]}")

        async with self._session_factory() as session:
            async with session.begin():
                dialect_name = session.get_bind().dialect.name
                for record in records:
                    await session.execute(build_upsert_statement(dialect_name, record))

        self._metrics.record_saved(len(records))
        self._log.info(f"Guardadas/actualizadas {len(records)} tarifas")
        return len(records)

    async def get_recent_window(self) -> List[WarehouseTariffRecord]:
        """
        Tarifas con date >= hoy - window_days, de almacenamiento mas barato
        a mas caro (NULL al final).
        """
        start = window_start(self._today(), self._window_days)
        stmt = (
            select(BoxTariffModel)
            .where(BoxTariffModel.date >= start)
            .order_by(
                BoxTariffModel.box_storage_coef_expr.asc().nulls_last(),
                BoxTariffModel.warehouse_name.asc(),
                BoxTariffModel.date.asc(),
            )
        )

        async with self._session_factory() as session:
            result = await session.execute(stmt)
            rows = result.scalars().all()

        self._log.info(f"Recuperadas {len(rows)} tarifas desde {start.isoformat()}")
        return [self._to_record(row) for row in rows]

    @staticmethod
    def _to_record(row: BoxTariffModel) -> WarehouseTariffRecord:
        return WarehouseTariffRecord(
            date=row.date.isoformat(),
            warehouse_name=row.warehouse_name,
            geo_name=row.geo_name,
            created_at=row.created_at,
            updated_at=row.updated_at,
            **{column: getattr(row, column) for column in TARIFF_COLUMNS},
        )

    async def close(self) -> None:
        """Cierra el engine (apagado ordenado)."""
        if self._engine is not None:
            await close_db(self._engine)
            self._log.info("Conexion a base de datos cerrada")
