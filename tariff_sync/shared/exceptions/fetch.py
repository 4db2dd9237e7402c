"""
Errores clasificados del cliente de la API de tarifas.

Solo estos errores llegan al nivel de la corrida (scheduler). Cualquier otro
fallo del fetch se absorbe en el dataset de respaldo (ver
`UNKNOWN_FETCH_CONDITION` en el cliente).
"""
from typing import Any, Dict, Optional

from tariff_sync.shared.exceptions.base import AppException


class TariffFetchError(AppException):
    """Excepcion base para errores clasificados del fetch de tarifas."""

    def __init__(
        self,
        message: str,
        error_code: str = "TARIFF_FETCH_ERROR",
        status_code: int = 502,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            message=message,
            status_code=status_code,
            error_code=error_code,
            details=details,
        )


class ValidationError(TariffFetchError):
    """Fecha invalida (formato distinto de YYYY-MM-DD o fecha inexistente)."""

    def __init__(self, message: str = "Invalid date parameter. Use format YYYY-MM-DD", details=None):
        super().__init__(
            message=message,
            error_code="INVALID_DATE",
            status_code=400,
            details=details,
        )


class AuthError(TariffFetchError):
    """Token ausente o rechazado por la API."""

    def __init__(self, message: str = "Unauthorized: Invalid or missing API token", details=None):
        super().__init__(message=message, error_code="UNAUTHORIZED", details=details)


class RateLimitError(TariffFetchError):
    """La API respondio con limite de peticiones excedido."""

    def __init__(self, message: str = "Rate limit exceeded. Try again later", details=None):
        super().__init__(message=message, error_code="RATE_LIMITED", details=details)


class MalformedTokenError(TariffFetchError):
    """El token tiene un formato que la API no reconoce."""

    def __init__(self, message: str = "Invalid token format", details=None):
        super().__init__(message=message, error_code="MALFORMED_TOKEN", details=details)


class ApiConnectionError(TariffFetchError):
    """Conexion rechazada por el host de la API (URL o red mal configurada)."""

    def __init__(self, message: str = "Connection refused - check API URL", details=None):
        super().__init__(message=message, error_code="CONNECTION_REFUSED", details=details)


class NotFoundError(TariffFetchError):
    """El endpoint configurado no existe (HTTP 404)."""

    def __init__(self, message: str = "API endpoint not found", details=None):
        super().__init__(message=message, error_code="ENDPOINT_NOT_FOUND", details=details)
