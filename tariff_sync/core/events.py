"""
Manejadores de eventos de inicio y cierre de la aplicacion.
"""
import sys
from contextlib import asynccontextmanager
from typing import AsyncIterator, Callable

from fastapi import FastAPI
from loguru import logger

from tariff_sync.core.config import Settings, settings as default_settings
from tariff_sync.core.container import build_container
from tariff_sync.infrastructure.database.session import init_db

LOG_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{line}</cyan> - <level>{message}</level> | {extra}"
)


def configure_logging(settings: Settings) -> None:
    """Sink stderr con los campos `extra` + archivo rotativo."""
    logger.remove()
    logger.add(sys.stderr, level=settings.LOG_LEVEL, format=LOG_FORMAT)
    logger.add(
        settings.LOG_FILE,
        rotation="500 MB",
        retention="10 days",
        level=settings.LOG_LEVEL,
    )


def startup_handler(app: FastAPI, settings: Settings) -> Callable:
    """
    Manejador de eventos de inicio de la aplicacion.

    Args:
        app: Instancia de FastAPI
        settings: Configuracion ya cargada

    Returns:
        Callable: Funcion asincrona de inicio
    """
    async def startup() -> None:
        """Inicializa recursos al inicio de la aplicacion."""
        try:
            configure_logging(settings)
            logger.info(f"Iniciando {settings.APP_NAME} v{settings.APP_VERSION}")
            logger.info(f"Entorno: {settings.ENVIRONMENT}")

            # Valida configuracion critica y construye los componentes
            container = build_container(settings)
            app.state.container = container

            # Inicializar base de datos (crea tablas si no existen)
            await init_db(container.engine)
            logger.info("Base de datos inicializada")

            app.state.scheduler = container.scheduler.start()

            logger.success("Aplicacion iniciada correctamente")

            _print_available_urls(settings)

        except Exception as e:
            logger.error(f"Error durante startup: {e}")
            logger.exception("Detalle del error:")
            raise

    return startup


def _print_available_urls(settings: Settings) -> None:
    """Imprime las URLs disponibles de la aplicacion."""
    # Determinar la URL base de acceso
    if settings.HOST == "0.0.0.0":
        access_host = "localhost"
    else:
        access_host = settings.HOST

    base_url = f"http://{access_host}:{settings.PORT}"

    # Mostrar las URLs disponibles
    logger.opt(colors=True).info("<bold><green>" + "=" * 80 + "</green></bold>")
    logger.opt(colors=True).info("<bold><green>URLS DISPONIBLES:</green></bold>")
    logger.opt(colors=True).info("<bold><green>" + "=" * 80 + "</green></bold>")
    logger.opt(colors=True).info(f"<cyan>  Swagger UI:  {base_url}/docs</cyan>")
    logger.opt(colors=True).info(f"<cyan>  Health:      {base_url}/health</cyan>")
    logger.opt(colors=True).info(f"<cyan>  Metrics:     {base_url}/metrics</cyan>")
    logger.opt(colors=True).info(f"<cyan>  Sync manual: POST {base_url}/api/v1/sync/run</cyan>")
    logger.opt(colors=True).info("<bold><green>" + "=" * 80 + "</green></bold>")


def shutdown_handler(app: FastAPI) -> Callable:
    """
    Manejador de eventos de cierre de la aplicacion.

    Args:
        app: Instancia de FastAPI

    Returns:
        Callable: Funcion asincrona de cierre
    """
    async def shutdown() -> None:
        """Libera recursos al cerrar la aplicacion."""
        logger.info("Cerrando aplicacion...")

        container = getattr(app.state, "container", None)
        if container is None:
            return

        # Detener el scheduler: no se aceptan nuevos disparos
        container.scheduler.shutdown()
        app.state.scheduler = None

        # Cerrar cliente HTTP y conexiones de base de datos
        await container.aclose()
        logger.info("Cliente HTTP y conexiones de base de datos cerrados")

        logger.success("Aplicacion cerrada correctamente")

    return shutdown


def build_lifespan(settings: Settings = default_settings):
    """Lifespan de FastAPI que envuelve los manejadores de inicio y cierre."""

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        await startup_handler(app, settings)()
        try:
            yield
        finally:
            await shutdown_handler(app)()

    return lifespan
