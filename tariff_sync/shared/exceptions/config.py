"""
Errores de configuracion del servicio.
"""
from tariff_sync.shared.exceptions.base import AppException


class SyncConfigError(AppException):
    """Falta configuracion obligatoria al arrancar. Es fatal para el proceso."""

    def __init__(self, message: str, setting: str | None = None):
        super().__init__(
            message=message,
            status_code=500,
            error_code="CONFIG_ERROR",
            details={"setting": setting} if setting else None,
        )
