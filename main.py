"""
Punto de entrada principal de la aplicacion FastAPI.
Configura la aplicacion, middlewares, rutas y el ciclo de vida
(scheduler horario + corrida de arranque).
"""
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, Response
from prometheus_client import CONTENT_TYPE_LATEST

from tariff_sync.core.config import Settings, settings as default_settings
from tariff_sync.core.events import build_lifespan
from tariff_sync.core.metrics import get_metrics
from tariff_sync.api.v1.router import api_router
from tariff_sync.api.middlewares.error_handler import ErrorHandlerMiddleware
from tariff_sync.shared.exceptions.base import AppException


def create_application(settings: Optional[Settings] = None, *, with_lifespan: bool = True) -> FastAPI:
    """
    Factory para crear y configurar la aplicacion FastAPI.

    Args:
        settings: Configuracion; por defecto la instancia global
        with_lifespan: False para tests (no arranca scheduler ni base de datos)

    Returns:
        FastAPI: Instancia configurada de la aplicacion
    """
    settings = settings or default_settings

    application = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        description="Sincronizacion de tarifas de almacenes hacia PostgreSQL y Google Sheets",
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=build_lifespan(settings) if with_lifespan else None,
    )
    application.state.container = None
    application.state.scheduler = None

    # Middleware personalizado para manejo de errores
    application.add_middleware(ErrorHandlerMiddleware)

    # Incluir routers de la API
    application.include_router(api_router, prefix="/api")

    # Manejador global de excepciones personalizadas
    @application.exception_handler(AppException)
    async def app_exception_handler(request: Request, exc: AppException):
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    # Health check endpoint
    @application.get("/health", tags=["Health"])
    async def health_check(request: Request):
        """Endpoint para verificar el estado de la aplicacion."""
        container = request.app.state.container
        return {
            "status": "healthy",
            "app_name": settings.APP_NAME,
            "version": settings.APP_VERSION,
            "environment": settings.ENVIRONMENT,
            "sync_running": bool(container and container.scheduler.is_running),
        }

    @application.get("/metrics", tags=["Health"], include_in_schema=False)
    async def metrics():
        """Metricas Prometheus del pipeline."""
        container = application.state.container
        collector = container.metrics if container else get_metrics()
        return Response(content=collector.render(), media_type=CONTENT_TYPE_LATEST)

    return application


# Crear instancia de la aplicacion
app = create_application()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "main:app",
        host=default_settings.HOST,
        port=default_settings.PORT,
        reload=default_settings.DEBUG,
        log_level=default_settings.LOG_LEVEL.lower()
    )
