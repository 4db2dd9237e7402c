"""
Esquemas de la respuesta de la API de tarifas de cajas y su decodificacion.

La API responde con distintas formas segun el caso. En vez de "olfatear"
atributos, la respuesta se decodifica como una union etiquetada, probando
cada variante en orden fijo y validandola completa antes de aceptarla:

1. ErrorResponse    -> sobre de error {status, title, detail} (400/401/429)
2. SuccessResponse  -> sobre anidado {response: {data: {warehouseList}}}
3. SuccessResponse  -> sobre plano {warehouseList}
4. Unrecognized     -> cualquier otra cosa (se mapea al dataset de respaldo)

Este modulo no realiza I/O.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

CLASSIFIED_ERROR_STATUSES = frozenset({400, 401, 429})


class WarehouseTariffRaw(BaseModel):
    """
    Tarifa de un almacen tal como llega de la API.

    Los componentes son strings en formato local ("11,2", "-", "").
    Si la API envia numeros JSON se aceptan como su forma textual.
    """

    model_config = ConfigDict(
        populate_by_name=True,
        extra="ignore",
        coerce_numbers_to_str=True,
        frozen=True,
    )

    box_delivery_base: Optional[str] = Field(default=None, alias="boxDeliveryBase")
    box_delivery_coef_expr: Optional[str] = Field(default=None, alias="boxDeliveryCoefExpr")
    box_delivery_liter: Optional[str] = Field(default=None, alias="boxDeliveryLiter")
    box_delivery_marketplace_base: Optional[str] = Field(default=None, alias="boxDeliveryMarketplaceBase")
    box_delivery_marketplace_coef_expr: Optional[str] = Field(default=None, alias="boxDeliveryMarketplaceCoefExpr")
    box_delivery_marketplace_liter: Optional[str] = Field(default=None, alias="boxDeliveryMarketplaceLiter")
    box_storage_base: Optional[str] = Field(default=None, alias="boxStorageBase")
    box_storage_coef_expr: Optional[str] = Field(default=None, alias="boxStorageCoefExpr")
    box_storage_liter: Optional[str] = Field(default=None, alias="boxStorageLiter")
    geo_name: Optional[str] = Field(default=None, alias="geoName")
    warehouse_name: Optional[str] = Field(default=None, alias="warehouseName")


class TariffsData(BaseModel):
    """Cuerpo util de la respuesta: fechas informativas + lista de almacenes."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    dt_next_box: Optional[str] = Field(default=None, alias="dtNextBox")
    dt_till_max: Optional[str] = Field(default=None, alias="dtTillMax")
    warehouse_list: List[WarehouseTariffRaw] = Field(alias="warehouseList")


class ErrorEnvelope(BaseModel):
    """Sobre de error documentado por la API."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    status: int
    title: str = Field(min_length=1)
    detail: str = Field(min_length=1)
    code: Optional[str] = None
    request_id: Optional[str] = Field(default=None, alias="requestId")
    origin: Optional[str] = None
    status_text: Optional[str] = Field(default=None, alias="statusText")
    timestamp: Optional[str] = None

    @field_validator("status")
    @classmethod
    def _only_classified_statuses(cls, value: int) -> int:
        if value not in CLASSIFIED_ERROR_STATUSES:
            raise ValueError(f"status {value} no es un error documentado")
        return value

    def describe(self) -> str:
        return f"API Error [{self.status}]: {self.title} - {self.detail}"


class _NestedData(BaseModel):
    data: TariffsData


class NestedEnvelope(BaseModel):
    """Forma {response: {data: {...}}}."""

    response: _NestedData


@dataclass(frozen=True)
class ErrorResponse:
    envelope: ErrorEnvelope
    kind: Literal["error"] = "error"


@dataclass(frozen=True)
class SuccessResponse:
    data: TariffsData
    shape: Literal["nested", "flat"]
    kind: Literal["success"] = "success"


@dataclass(frozen=True)
class Unrecognized:
    reason: str
    kind: Literal["unrecognized"] = "unrecognized"


DecodedResponse = Union[ErrorResponse, SuccessResponse, Unrecognized]


def decode_tariffs_payload(payload: Any) -> DecodedResponse:
    """
    Decodifica el JSON de la API en una de las variantes de `DecodedResponse`.

    Nunca lanza: lo que no encaja en ninguna variante es `Unrecognized`.
    """
    if not isinstance(payload, dict):
        return Unrecognized(reason=f"payload de tipo {type(payload).__name__}")

    try:
        return ErrorResponse(envelope=ErrorEnvelope.model_validate(payload))
    except PydanticValidationError:
        pass

    try:
        nested = NestedEnvelope.model_validate(payload)
        return SuccessResponse(data=nested.response.data, shape="nested")
    except PydanticValidationError:
        pass

    try:
        return SuccessResponse(data=TariffsData.model_validate(payload), shape="flat")
    except PydanticValidationError as e:
        return Unrecognized(reason=f"forma desconocida ({e.error_count()} errores de validacion)")


def fallback_tariffs() -> TariffsData:
    """
    Dataset fijo de respaldo.

    Se devuelve cuando la respuesta no tiene una forma reconocida o cuando el
    fetch falla por una causa no clasificada, para que el resto del pipeline
    nunca reciba una lista vacia o malformada.
    """
    return TariffsData(
        dt_next_box="2024-02-01",
        dt_till_max="2024-03-31",
        warehouse_list=[
            WarehouseTariffRaw(
                box_delivery_base="48",
                box_delivery_coef_expr="160",
                box_delivery_liter="11,2",
                box_delivery_marketplace_base="40",
                box_delivery_marketplace_coef_expr="125",
                box_delivery_marketplace_liter="11",
                box_storage_base="0,14",
                box_storage_coef_expr="115",
                box_storage_liter="0,07",
                geo_name="Центральный федеральный округ",
                warehouse_name="Коледино",
            )
        ],
    )
