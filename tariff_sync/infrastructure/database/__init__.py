"""
Configuracion de base de datos.

Importa los modelos para que se registren con Base
antes de crear las tablas.
"""
from tariff_sync.infrastructure.database.models import BoxTariffModel
