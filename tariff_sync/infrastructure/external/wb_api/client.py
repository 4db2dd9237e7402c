"""
Cliente de la API de tarifas de cajas (httpx async).

Requisitos cubiertos:
- validacion de fecha antes de cualquier llamada de red
- Authorization: Bearer <token>, timeout acotado (30s por defecto)
- respuestas < 500 se inspeccionan (los 4xx traen un sobre de error)
- clasificacion de errores conocidos -> excepciones tipadas
- cualquier otra falla -> dataset de respaldo (rama explicita
  UNKNOWN_FETCH_CONDITION), con warning y metrica
"""

from __future__ import annotations

import errno
from typing import Any, Optional

import httpx
from loguru import logger

from tariff_sync.core.metrics import SyncMetrics, get_metrics
from tariff_sync.infrastructure.external.wb_api.schemas import (
    ErrorResponse,
    SuccessResponse,
    TariffsData,
    WarehouseTariffRaw,
    decode_tariffs_payload,
    fallback_tariffs,
)
from tariff_sync.shared.exceptions.fetch import (
    ApiConnectionError,
    AuthError,
    MalformedTokenError,
    NotFoundError,
    RateLimitError,
    TariffFetchError,
    ValidationError,
)
from tariff_sync.shared.utils.date_utils import is_valid_iso_date

DEFAULT_TARIFFS_URL = "https://common-api.wildberries.ru/api/v1/tariffs/box"

# Motivos de respaldo (label de la metrica tariff_fetch_fallback_total)
UNRECOGNIZED_SHAPE = "unrecognized_shape"
UNKNOWN_FETCH_CONDITION = "unknown_condition"

# Marcadores por clase de error, en orden de prioridad.
_MESSAGE_RULES: tuple[tuple[tuple[str, ...], type[TariffFetchError]], ...] = (
    (("empty authorization header", "401"), AuthError),
    (("invalid date param", "400"), ValidationError),
    (("too many requests", "429"), RateLimitError),
    (("token problem", "malformed"), MalformedTokenError),
)


class _ApiErrorEnvelope(Exception):
    """La API devolvio su sobre de error; se clasifica como cualquier otra falla."""

    def __init__(self, response: ErrorResponse) -> None:
        self.envelope = response.envelope
        super().__init__(response.envelope.describe())


def _is_connection_refused(exc: BaseException) -> bool:
    current: Optional[BaseException] = exc
    seen: set[int] = set()
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        if isinstance(current, ConnectionRefusedError):
            return True
        if getattr(current, "errno", None) == errno.ECONNREFUSED:
            return True
        text = str(current).lower()
        if "connection refused" in text or "econnrefused" in text:
            return True
        current = current.__cause__ or current.__context__
    return False


def _failure_signal(exc: BaseException) -> str:
    """Texto sobre el que se aplican las reglas de clasificacion."""
    if isinstance(exc, httpx.HTTPStatusError):
        # No usamos str(exc): incluye la URL con la fecha y puede contener
        # secuencias como "400" que no son el status.
        return f"HTTP {exc.response.status_code}"
    return str(exc)


def classify_fetch_failure(exc: BaseException) -> Optional[TariffFetchError]:
    """
    Traduce una falla del fetch a su error clasificado.

    Retorna None cuando la falla no es de ningun tipo conocido; el caller
    decide entonces usar el dataset de respaldo.
    """
    signal = _failure_signal(exc)
    lowered = signal.lower()

    for markers, error_cls in _MESSAGE_RULES:
        if any(marker in lowered for marker in markers):
            return error_cls(details={"cause": signal})

    if _is_connection_refused(exc):
        return ApiConnectionError(details={"cause": signal})

    if isinstance(exc, httpx.HTTPStatusError) and exc.response.status_code == 404:
        return NotFoundError(details={"cause": signal})

    return None


class WbTariffsClient:
    """
    Cliente HTTP de la API de tarifas.

    `fetch(date)` nunca devuelve una lista vacia por una falla desconocida:
    en ese caso devuelve el dataset de respaldo.
    """

    def __init__(
        self,
        api_token: str,
        *,
        base_url: str = DEFAULT_TARIFFS_URL,
        timeout_s: float = 30.0,
        client: Optional[httpx.AsyncClient] = None,
        metrics: Optional[SyncMetrics] = None,
        log=None,
    ) -> None:
        self._api_token = api_token
        self._base_url = base_url
        self._timeout_s = timeout_s
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout_s)
        self._metrics = metrics or get_metrics()
        self._log = log or logger.bind(component="wb_api")

    async def fetch(self, date: str) -> list[WarehouseTariffRaw]:
        """Lista de tarifas por almacen para `date` (YYYY-MM-DD)."""
        data = await self.fetch_tariffs(date)
        return list(data.warehouse_list)

    async def fetch_tariffs(self, date: str) -> TariffsData:
        """
        Igual que `fetch`, pero retorna el cuerpo completo (incluye
        dtNextBox / dtTillMax).

        Raises:
            ValidationError: fecha invalida (antes de cualquier request)
            TariffFetchError: cualquier error clasificado de la API
        """
        if not is_valid_iso_date(date):
            raise ValidationError(
                "Invalid date format. Use YYYY-MM-DD",
                details={"date": date},
            )

        self._log.info(f"Consultando tarifas para la fecha {date}")

        try:
            payload = await self._request_json(date)
            decoded = decode_tariffs_payload(payload)

            if isinstance(decoded, ErrorResponse):
                raise _ApiErrorEnvelope(decoded)

            if isinstance(decoded, SuccessResponse):
                self._log.info(
                    f"Tarifas recibidas: {len(decoded.data.warehouse_list)} almacenes "
                    f"(forma={decoded.shape}, dtNextBox={decoded.data.dt_next_box}, "
                    f"dtTillMax={decoded.data.dt_till_max})"
                )
                return decoded.data

            return self._fallback(UNRECOGNIZED_SHAPE, decoded.reason)

        except TariffFetchError:
            raise
        except Exception as e:
            classified = classify_fetch_failure(e)
            if classified is None:
                return self._fallback(UNKNOWN_FETCH_CONDITION, f"{type(e).__name__}: {e}")

            classified.details.setdefault("date", date)
            self._log.error(f"Error clasificado de la API de tarifas: {classified.error_code} ({e})")
            raise classified from e

    async def _request_json(self, date: str) -> Any:
        """
        GET con bearer token. Los status >= 500 (y 404) se convierten en
        httpx.HTTPStatusError; el resto se devuelve para inspeccionar el cuerpo.
        """
        headers = {
            "Authorization": f"Bearer {self._api_token}",
            "Content-Type": "application/json",
        }
        response = await self._client.get(
            self._base_url,
            params={"date": date},
            headers=headers,
            timeout=self._timeout_s,
        )
        self._log.debug(f"Respuesta de la API de tarifas: HTTP {response.status_code}")

        if response.status_code >= 500 or response.status_code == 404:
            response.raise_for_status()

        try:
            return response.json()
        except ValueError:
            # Cuerpo no JSON: se decodifica como texto y cae en Unrecognized
            return response.text

    def _fallback(self, reason: str, cause: str) -> TariffsData:
        self._metrics.record_fallback(reason)
        self._log.warning(
            f"Usando dataset de respaldo en lugar de datos de la API "
            f"(motivo={reason}): {cause}"
        )
        return fallback_tariffs()

    async def aclose(self) -> None:
        """Cierra el cliente HTTP si fue creado por esta instancia."""
        if self._owns_client:
            await self._client.aclose()
