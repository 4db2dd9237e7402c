"""
Modelos de base de datos (ORM).
"""
from sqlalchemy import Column, Date, DateTime, Integer, Numeric, String, UniqueConstraint
from sqlalchemy.sql import func

from tariff_sync.infrastructure.database.session import Base


def _tariff_column() -> Column:
    # asdecimal=False: la capa de dominio trabaja con float
    return Column(Numeric(10, 2, asdecimal=False), nullable=True)


class BoxTariffModel(Base):
    """
    Tarifa de cajas por almacen y dia.

    Clave natural unica (date, warehouse_name); las dos columnas tienen ademas
    su propio indice para las consultas por fecha y por almacen.
    """

    __tablename__ = "box_tariffs"
    __table_args__ = (
        UniqueConstraint("date", "warehouse_name", name="uq_box_tariffs_date_warehouse"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    date = Column(Date, nullable=False, index=True)
    warehouse_name = Column(String(255), nullable=False, index=True)

    box_delivery_base = _tariff_column()
    box_delivery_coef_expr = _tariff_column()
    box_delivery_liter = _tariff_column()
    box_delivery_marketplace_base = _tariff_column()
    box_delivery_marketplace_coef_expr = _tariff_column()
    box_delivery_marketplace_liter = _tariff_column()
    box_storage_base = _tariff_column()
    box_storage_coef_expr = _tariff_column()
    box_storage_liter = _tariff_column()

    geo_name = Column(String(255), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<BoxTariff(date={self.date}, warehouse={self.warehouse_name})>"
