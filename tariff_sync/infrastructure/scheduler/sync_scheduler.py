"""
Scheduler del pipeline de tarifas (APScheduler).

Dos disparadores invocan la misma transicion Idle -> Running:
- cron al minuto `cron_minute` de cada hora
- una sola vez `startup_delay_s` segundos despues de arrancar

El endpoint manual y el CLI usan `trigger()` directamente, con el mismo
guard single-flight.
"""

from __future__ import annotations

from datetime import date as date_type, datetime, timedelta, timezone
from typing import Callable, Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from apscheduler.triggers.date import DateTrigger
from loguru import logger

from tariff_sync.application.use_cases.tariff_sync_use_cases import (
    STATUS_FAILED,
    STATUS_SKIPPED,
    SyncRunResult,
    TariffSyncUseCase,
)
from tariff_sync.core.metrics import SyncMetrics, get_metrics
from tariff_sync.infrastructure.scheduler.run_guard import SingleFlightGuard
from tariff_sync.shared.utils.date_utils import to_calendar_date_str, utc_today

HOURLY_JOB_ID = "tariff_sync_hourly"
STARTUP_JOB_ID = "tariff_sync_startup"


class TariffSyncScheduler:
    """Dueno del unico estado compartido entre corridas: el guard."""

    def __init__(
        self,
        use_case: TariffSyncUseCase,
        *,
        guard: Optional[SingleFlightGuard] = None,
        cron_minute: int = 0,
        timezone_name: str = "UTC",
        startup_delay_s: float = 10.0,
        today_provider: Callable[[], date_type] = utc_today,
        metrics: Optional[SyncMetrics] = None,
        log=None,
    ):
        self._use_case = use_case
        self._guard = guard or SingleFlightGuard()
        self._cron_minute = cron_minute
        self._timezone_name = timezone_name
        self._startup_delay_s = startup_delay_s
        self._today = today_provider
        self._metrics = metrics or get_metrics()
        self._log = log or logger.bind(component="scheduler")
        self._scheduler: Optional[AsyncIOScheduler] = None
        self._stopped = False

    @property
    def is_running(self) -> bool:
        """True mientras haya una corrida en curso."""
        return self._guard.is_running

    @property
    def scheduler(self) -> Optional[AsyncIOScheduler]:
        return self._scheduler

    async def trigger(self, date: Optional[str] = None, *, publish: bool = True) -> SyncRunResult:
        """
        Ejecuta una corrida si no hay otra en curso.

        Nunca lanza: los errores del pipeline se loguean con traceback y la
        corrida queda como "failed". El guard se libera en todos los casos.
        """
        run_date = date or to_calendar_date_str(self._today())

        if self._stopped:
            self._log.warning("Scheduler detenido; se ignora el disparo")
            return self._finish(SyncRunResult(status=STATUS_SKIPPED, date=run_date))

        with self._guard.hold() as acquired:
            if not acquired:
                self._log.info("Sincronizacion ya en curso (already running); se omite este disparo")
                return self._finish(SyncRunResult(status=STATUS_SKIPPED, date=run_date))

            try:
                result = await self._use_case.execute(run_date, publish=publish)
            except Exception as e:
                self._log.exception(f"Error en la sincronizacion de tarifas ({run_date}): {e}")
                result = SyncRunResult(status=STATUS_FAILED, date=run_date, error=str(e))

        return self._finish(result)

    def _finish(self, result: SyncRunResult) -> SyncRunResult:
        self._metrics.record_run(result.status)
        return result

    async def _scheduled_run(self) -> None:
        await self.trigger()

    def start(self) -> AsyncIOScheduler:
        """Registra los dos jobs y arranca el AsyncIOScheduler (requiere event loop activo)."""
        scheduler = AsyncIOScheduler(timezone=self._timezone_name)
        scheduler.add_job(
            self._scheduled_run,
            trigger=CronTrigger(minute=self._cron_minute, timezone=self._timezone_name),
            id=HOURLY_JOB_ID,
            max_instances=1,
            coalesce=True,
            replace_existing=True,
        )
        run_at = datetime.now(timezone.utc) + timedelta(seconds=self._startup_delay_s)
        scheduler.add_job(
            self._scheduled_run,
            trigger=DateTrigger(run_date=run_at),
            id=STARTUP_JOB_ID,
            replace_existing=True,
        )
        scheduler.start()
        self._scheduler = scheduler
        self._stopped = False
        self._log.info(
            f"Scheduler iniciado: cada hora al minuto {self._cron_minute:02d} ({self._timezone_name}), "
            f"primera corrida en {self._startup_delay_s:g}s"
        )
        return scheduler

    def shutdown(self) -> None:
        """Deja de aceptar disparos; la corrida en curso (si hay) termina sola."""
        self._stopped = True
        if self._scheduler is not None and self._scheduler.running:
            self._scheduler.shutdown(wait=False)
        self._scheduler = None
        self._log.info("Scheduler detenido")
