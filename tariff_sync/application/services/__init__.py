"""
Servicios de aplicacion.

Contiene la logica de negocio reutilizable que no pertenece
a un caso de uso especifico.
"""
from tariff_sync.application.services.tariff_normalizer import TariffNormalizer

__all__ = [
    "TariffNormalizer",
]
