"""
Excepcion base para todas las excepciones personalizadas del servicio.
"""
from typing import Optional, Dict, Any


class AppException(Exception):
    """
    Excepcion base del servicio de tarifas.
    Todas las excepciones propias deben heredar de esta clase para que
    el manejador global de FastAPI las serialice igual.
    """

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        error_code: str = "INTERNAL_ERROR",
        details: Optional[Dict[str, Any]] = None
    ):
        """
        Inicializa la excepcion.

        Args:
            message: Mensaje de error descriptivo
            status_code: Codigo de estado HTTP al exponerse por la API
            error_code: Codigo de error estable (para logs y clientes)
            details: Detalles adicionales del error
        """
        self.message = message
        self.status_code = status_code
        self.error_code = error_code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Cuerpo JSON usado por el manejador global de excepciones."""
        return {
            "error": self.error_code,
            "message": self.message,
            "details": self.details,
        }
