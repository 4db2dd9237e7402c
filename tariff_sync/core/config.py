"""
Configuracion central de la aplicacion.
Gestiona variables de entorno y configuraciones globales.
Soporta configuracion dinamica para desarrollo (ENVIRONMENT=development)
y produccion (ENVIRONMENT=production).
"""
from typing import List
from pydantic_settings import BaseSettings
from pydantic import Field, computed_field


class Settings(BaseSettings):
    """
    Clase de configuracion de la aplicacion.
    Lee variables de entorno y proporciona valores por defecto.

    - DATABASE_URL se puede especificar completa o por componentes
    - WB_API_TOKEN y la service account de Google son obligatorios al
      arrancar el servicio (se validan en el startup, no al importar)
    - SPREADSHEET_IDS es una lista separada por comas
    """

    # Configuracion de la aplicacion
    APP_NAME: str = Field(default="Tariff Sync Service")
    APP_VERSION: str = Field(default="1.0.0")
    DEBUG: bool = Field(default=False)
    ENVIRONMENT: str = Field(default="production")

    # Configuracion del servidor
    HOST: str = Field(default="0.0.0.0")
    PORT: int = Field(default=8000)

    # Base de datos - Componentes separados (recomendado para flexibilidad)
    DATABASE_HOST: str = Field(default="localhost")
    DATABASE_PORT: int = Field(default=5432)
    DATABASE_USER: str = Field(default="postgres")
    DATABASE_PASSWORD: str = Field(default="postgres")
    DATABASE_NAME: str = Field(default="postgres")

    # Base de datos - URL completa (override de componentes si se proporciona)
    DATABASE_URL: str = Field(default="")
    DB_POOL_SIZE: int = Field(default=5)
    DB_MAX_OVERFLOW: int = Field(default=10)

    # API de tarifas de Wildberries
    WB_API_TOKEN: str = Field(default="")
    WB_API_URL: str = Field(default="https://common-api.wildberries.ru/api/v1/tariffs/box")
    WB_API_TIMEOUT_SECONDS: float = Field(default=30.0)

    # Google Sheets (service account)
    GOOGLE_SERVICE_ACCOUNT_EMAIL: str = Field(default="")
    GOOGLE_PRIVATE_KEY: str = Field(default="")
    SPREADSHEET_IDS: str = Field(default="")
    SHEET_NAME: str = Field(default="stocks_coefs")
    SHEET_CLEAR_RANGE: str = Field(default="A1:Z1000")

    # Scheduler
    SYNC_CRON_MINUTE: int = Field(default=0, ge=0, le=59)
    SYNC_TIMEZONE: str = Field(default="UTC")
    SYNC_STARTUP_DELAY_SECONDS: float = Field(default=10.0, ge=0)
    RECENT_WINDOW_DAYS: int = Field(default=7, ge=0)

    # Logging
    LOG_LEVEL: str = Field(default="INFO")
    LOG_FILE: str = Field(default="logs/app.log")

    @computed_field
    @property
    def effective_database_url(self) -> str:
        """
        Retorna la URL de base de datos efectiva.
        Si DATABASE_URL esta definida, la usa directamente.
        Si no, construye la URL desde los componentes individuales.
        """
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return (
            f"postgresql+asyncpg://{self.DATABASE_USER}:{self.DATABASE_PASSWORD}"
            f"@{self.DATABASE_HOST}:{self.DATABASE_PORT}/{self.DATABASE_NAME}"
        )

    @computed_field
    @property
    def spreadsheet_id_list(self) -> List[str]:
        """IDs de hojas destino; se ignoran entradas vacias."""
        return parse_spreadsheet_ids(self.SPREADSHEET_IDS)

    @computed_field
    @property
    def is_development(self) -> bool:
        """Indica si el entorno es de desarrollo."""
        return self.ENVIRONMENT.lower() == "development"

    class Config:
        """Configuracion de Pydantic."""
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"  # Ignorar campos extra del .env


def parse_spreadsheet_ids(raw: str) -> List[str]:
    """
    Parsea la lista de hojas destino.
    Acepta "id1,id2, id3"; los espacios y las entradas vacias se descartan.
    """
    return [item.strip() for item in (raw or "").split(",") if item.strip()]


# Instancia global de configuracion
settings = Settings()
