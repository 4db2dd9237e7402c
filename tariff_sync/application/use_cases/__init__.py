"""
Casos de uso de la aplicacion.
"""
from .tariff_sync_use_cases import SyncRunResult, TariffSyncUseCase

__all__ = ["SyncRunResult", "TariffSyncUseCase"]
