"""
Construccion del grafo de objetos a partir de Settings.

La configuracion se lee una sola vez y se pasa explicitamente a cada
constructor; ningun componente lee variables de entorno por su cuenta.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncEngine

from tariff_sync.application.services.tariff_normalizer import TariffNormalizer
from tariff_sync.application.use_cases.tariff_sync_use_cases import TariffSyncUseCase
from tariff_sync.core.config import Settings
from tariff_sync.core.metrics import SyncMetrics, get_metrics
from tariff_sync.infrastructure.database.session import build_engine, build_session_factory
from tariff_sync.infrastructure.external.google_sheets.publisher import SheetsFanOutPublisher
from tariff_sync.infrastructure.external.google_sheets.sheets_client import (
    GoogleSheetsClient,
    ServiceAccountCredentials,
    build_authorized_session,
)
from tariff_sync.infrastructure.external.wb_api.client import WbTariffsClient
from tariff_sync.infrastructure.repositories.tariff_repository import TariffRepository
from tariff_sync.infrastructure.scheduler.sync_scheduler import TariffSyncScheduler
from tariff_sync.shared.exceptions.config import SyncConfigError


@dataclass
class SyncContainer:
    """Componentes del pipeline ya cableados."""

    engine: AsyncEngine
    fetcher: WbTariffsClient
    normalizer: TariffNormalizer
    repository: TariffRepository
    publisher: SheetsFanOutPublisher
    use_case: TariffSyncUseCase
    scheduler: TariffSyncScheduler
    metrics: SyncMetrics

    async def aclose(self) -> None:
        """Libera cliente HTTP y engine (el scheduler se detiene aparte)."""
        await self.fetcher.aclose()
        await self.repository.close()


def validate_settings(settings: Settings) -> List[str]:
    """
    Valida la configuracion obligatoria.

    Raises:
        SyncConfigError: Si falta el token de la API o la service account

    Returns:
        Lista de advertencias no fatales
    """
    if not settings.WB_API_TOKEN:
        raise SyncConfigError("WB_API_TOKEN no configurado", setting="WB_API_TOKEN")
    if not settings.GOOGLE_SERVICE_ACCOUNT_EMAIL:
        raise SyncConfigError(
            "GOOGLE_SERVICE_ACCOUNT_EMAIL no configurado", setting="GOOGLE_SERVICE_ACCOUNT_EMAIL"
        )
    if not settings.GOOGLE_PRIVATE_KEY:
        raise SyncConfigError("GOOGLE_PRIVATE_KEY no configurado", setting="GOOGLE_PRIVATE_KEY")

    warnings = []
    if not settings.spreadsheet_id_list:
        warnings.append("SPREADSHEET_IDS vacio - no se publicara en Google Sheets")
    return warnings


def build_container(
    settings: Settings,
    *,
    sheets_client: Optional[GoogleSheetsClient] = None,
    metrics: Optional[SyncMetrics] = None,
) -> SyncContainer:
    """
    Construye todos los componentes a partir de `settings`.

    Args:
        settings: Configuracion ya cargada
        sheets_client: Cliente de Sheets alternativo (tests); por defecto se
            autentica con la service account
        metrics: Colector de metricas; por defecto el global del proceso

    Raises:
        SyncConfigError: Configuracion obligatoria ausente o invalida
    """
    for warning in validate_settings(settings):
        logger.warning(f"CONFIG: {warning}")

    metrics = metrics or get_metrics()

    if sheets_client is None:
        try:
            session = build_authorized_session(
                ServiceAccountCredentials(
                    client_email=settings.GOOGLE_SERVICE_ACCOUNT_EMAIL,
                    private_key=settings.GOOGLE_PRIVATE_KEY,
                )
            )
        except ValueError as e:
            raise SyncConfigError(
                f"No se pudo construir la credencial de Google: {e}", setting="GOOGLE_PRIVATE_KEY"
            ) from e
        sheets_client = GoogleSheetsClient(session)

    engine = build_engine(
        settings.effective_database_url,
        echo=settings.DEBUG,
        pool_size=settings.DB_POOL_SIZE,
        max_overflow=settings.DB_MAX_OVERFLOW,
    )
    repository = TariffRepository(
        build_session_factory(engine),
        engine=engine,
        window_days=settings.RECENT_WINDOW_DAYS,
        metrics=metrics,
    )
    fetcher = WbTariffsClient(
        settings.WB_API_TOKEN,
        base_url=settings.WB_API_URL,
        timeout_s=settings.WB_API_TIMEOUT_SECONDS,
        metrics=metrics,
    )
    normalizer = TariffNormalizer()
    publisher = SheetsFanOutPublisher(
        sheets_client,
        sheet_name=settings.SHEET_NAME,
        clear_range=settings.SHEET_CLEAR_RANGE,
        metrics=metrics,
    )
    use_case = TariffSyncUseCase(
        fetcher,
        normalizer,
        repository,
        publisher,
        settings.spreadsheet_id_list,
    )
    scheduler = TariffSyncScheduler(
        use_case,
        cron_minute=settings.SYNC_CRON_MINUTE,
        timezone_name=settings.SYNC_TIMEZONE,
        startup_delay_s=settings.SYNC_STARTUP_DELAY_SECONDS,
        metrics=metrics,
    )

    return SyncContainer(
        engine=engine,
        fetcher=fetcher,
        normalizer=normalizer,
        repository=repository,
        publisher=publisher,
        use_case=use_case,
        scheduler=scheduler,
        metrics=metrics,
    )
