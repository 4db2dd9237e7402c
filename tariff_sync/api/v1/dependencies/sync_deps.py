"""
Dependencias para inyeccion de los componentes del pipeline.

Los componentes viven en `app.state.container` (se construyen en el
startup); los tests los reemplazan con `dependency_overrides`.
"""
from fastapi import Request

from tariff_sync.core.container import SyncContainer
from tariff_sync.infrastructure.repositories.tariff_repository import TariffRepository
from tariff_sync.infrastructure.scheduler.sync_scheduler import TariffSyncScheduler
from tariff_sync.shared.exceptions.base import AppException


def _get_container(request: Request) -> SyncContainer:
    container = getattr(request.app.state, "container", None)
    if container is None:
        raise AppException(
            message="El servicio de sincronizacion no esta inicializado",
            status_code=503,
            error_code="SERVICE_NOT_READY",
        )
    return container


def get_sync_scheduler(request: Request) -> TariffSyncScheduler:
    """
    Dependencia para obtener el scheduler (dueno del guard single-flight).

    Returns:
        TariffSyncScheduler: Scheduler de la aplicacion
    """
    return _get_container(request).scheduler


def get_tariff_repository(request: Request) -> TariffRepository:
    """
    Dependencia para obtener el repositorio de tarifas.

    Returns:
        TariffRepository: Gateway de persistencia de la aplicacion
    """
    return _get_container(request).repository
