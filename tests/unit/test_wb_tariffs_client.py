"""
Tests unitarios para WbTariffsClient.

Usa httpx.MockTransport: no hay llamadas de red reales.

Verifica:
- la fecha se valida antes de cualquier request
- los sobres de error y fallas de transporte se clasifican
- las formas desconocidas y fallas no clasificadas usan el dataset de respaldo
"""
from __future__ import annotations

from typing import Callable, List

import httpx
import pytest

from tariff_sync.infrastructure.external.wb_api.client import (
    UNKNOWN_FETCH_CONDITION,
    UNRECOGNIZED_SHAPE,
    WbTariffsClient,
    classify_fetch_failure,
)
from tariff_sync.shared.exceptions.fetch import (
    ApiConnectionError,
    AuthError,
    MalformedTokenError,
    NotFoundError,
    RateLimitError,
    ValidationError,
)

API_URL = "https://tariffs.test/api/v1/tariffs/box"

WAREHOUSE = {"boxDeliveryBase": "48", "warehouseName": "Коледино", "geoName": "ЦФО"}


def _client(handler: Callable[[httpx.Request], httpx.Response], metrics, requests: List[httpx.Request] | None = None):
    def recording_handler(request: httpx.Request) -> httpx.Response:
        if requests is not None:
            requests.append(request)
        return handler(request)

    http = httpx.AsyncClient(transport=httpx.MockTransport(recording_handler))
    return WbTariffsClient("secret-token", base_url=API_URL, client=http, metrics=metrics)


def _fallback_count(metrics, reason: str) -> float:
    return metrics.registry.get_sample_value("tariff_fetch_fallback_total", {"reason": reason}) or 0.0


class TestDateValidation:

    @pytest.mark.parametrize("bad_date", ["2024-1-5", "15-01-2024", "2024-02-30", "2024-13-01", ""])
    async def test_invalid_date_raises_before_request(self, metrics, bad_date) -> None:
        requests: List[httpx.Request] = []
        client = _client(lambda r: httpx.Response(200, json={"warehouseList": []}), metrics, requests)

        with pytest.raises(ValidationError):
            await client.fetch(bad_date)

        assert requests == []


class TestSuccessfulFetch:

    async def test_sends_bearer_token_and_date(self, metrics) -> None:
        requests: List[httpx.Request] = []
        client = _client(lambda r: httpx.Response(200, json={"warehouseList": [WAREHOUSE]}), metrics, requests)

        await client.fetch("2024-01-15")

        assert len(requests) == 1
        assert requests[0].headers["Authorization"] == "Bearer secret-token"
        assert requests[0].url.params["date"] == "2024-01-15"

    async def test_nested_envelope(self, metrics) -> None:
        payload = {"response": {"data": {"dtNextBox": "", "dtTillMax": "", "warehouseList": [WAREHOUSE]}}}
        client = _client(lambda r: httpx.Response(200, json=payload), metrics)

        result = await client.fetch("2024-01-15")

        assert [w.warehouse_name for w in result] == ["Коледино"]

    async def test_flat_envelope(self, metrics) -> None:
        client = _client(lambda r: httpx.Response(200, json={"warehouseList": [WAREHOUSE, WAREHOUSE]}), metrics)

        result = await client.fetch("2024-01-15")

        assert len(result) == 2

    async def test_empty_list_is_returned_as_is(self, metrics) -> None:
        client = _client(lambda r: httpx.Response(200, json={"warehouseList": []}), metrics)

        assert await client.fetch("2024-01-15") == []
        assert _fallback_count(metrics, UNRECOGNIZED_SHAPE) == 0


class TestClassifiedErrors:

    @pytest.mark.parametrize(
        "status,title,detail,expected",
        [
            (401, "unauthorized", "empty Authorization header", AuthError),
            (400, "bad request", "Invalid date param", ValidationError),
            (429, "too many requests", "Limited by global limiter", RateLimitError),
        ],
    )
    async def test_error_envelopes(self, metrics, status, title, detail, expected) -> None:
        body = {"status": status, "title": title, "detail": detail}
        client = _client(lambda r: httpx.Response(status, json=body), metrics)

        with pytest.raises(expected) as exc_info:
            await client.fetch("2024-01-15")

        assert exc_info.value.details["date"] == "2024-01-15"

    async def test_malformed_token_envelope(self, metrics) -> None:
        body = {"status": 401, "title": "token problem", "detail": "malformed token"}
        client = _client(lambda r: httpx.Response(401, json=body), metrics)

        # La regla de autorizacion tiene prioridad sobre la de token malformado
        with pytest.raises(AuthError):
            await client.fetch("2024-01-15")

    async def test_connection_refused(self, metrics) -> None:
        def refuse(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("[Errno 111] Connection refused", request=request)

        client = _client(refuse, metrics)

        with pytest.raises(ApiConnectionError):
            await client.fetch("2024-01-15")

    async def test_http_404_is_not_found(self, metrics) -> None:
        client = _client(lambda r: httpx.Response(404, text="no such route"), metrics)

        with pytest.raises(NotFoundError):
            await client.fetch("2024-01-15")


class TestFallback:

    async def test_unrecognized_shape_returns_fallback(self, metrics, log_messages) -> None:
        client = _client(lambda r: httpx.Response(200, json={"something": "else"}), metrics)

        result = await client.fetch("2024-01-15")

        assert [w.warehouse_name for w in result] == ["Коледино"]
        assert _fallback_count(metrics, UNRECOGNIZED_SHAPE) == 1
        assert any(m.startswith("WARNING|") and "respaldo" in m for m in log_messages)

    async def test_server_error_returns_fallback(self, metrics) -> None:
        client = _client(lambda r: httpx.Response(503, text="unavailable"), metrics)

        result = await client.fetch("2024-01-15")

        assert len(result) == 1
        assert _fallback_count(metrics, UNKNOWN_FETCH_CONDITION) == 1

    async def test_timeout_returns_fallback(self, metrics) -> None:
        def timeout(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        client = _client(timeout, metrics)

        result = await client.fetch("2024-01-15")

        assert result[0].warehouse_name == "Коледино"
        assert _fallback_count(metrics, UNKNOWN_FETCH_CONDITION) == 1

    async def test_invalid_json_returns_fallback(self, metrics) -> None:
        client = _client(lambda r: httpx.Response(200, text="<html>"), metrics)

        result = await client.fetch("2024-01-15")

        assert len(result) == 1
        assert _fallback_count(metrics, UNRECOGNIZED_SHAPE) == 1

    async def test_invalid_json_with_status_like_position_returns_fallback(self, metrics) -> None:
        # el error de decodificacion menciona "char 401"; no debe leerse como 401
        prefix = "{\"a\":\"" + "x" * 393 + "\"}"
        assert len(prefix) == 401
        client = _client(lambda r: httpx.Response(200, text=prefix + "trailing"), metrics)

        result = await client.fetch("2024-01-15")

        assert [w.warehouse_name for w in result] == ["Коледино"]
        assert _fallback_count(metrics, UNRECOGNIZED_SHAPE) == 1


class TestClassifyFetchFailure:

    @pytest.mark.parametrize(
        "message,expected",
        [
            ("empty Authorization header", AuthError),
            ("Invalid date param", ValidationError),
            ("too many requests", RateLimitError),
            ("token problem", MalformedTokenError),
            ("token is malformed", MalformedTokenError),
        ],
    )
    def test_message_rules(self, message, expected) -> None:
        assert isinstance(classify_fetch_failure(RuntimeError(message)), expected)

    def test_priority_order(self) -> None:
        # Contiene marcadores de auth y de rate limit: gana auth
        error = classify_fetch_failure(RuntimeError("401 too many requests"))

        assert isinstance(error, AuthError)

    def test_connection_refused_builtin(self) -> None:
        assert isinstance(classify_fetch_failure(ConnectionRefusedError()), ApiConnectionError)

    def test_unknown_failure_is_not_classified(self) -> None:
        assert classify_fetch_failure(RuntimeError("boom")) is None

    def test_status_error_uses_status_not_url(self) -> None:
        request = httpx.Request("GET", "https://x.test/api?date=2024-01-15&page=401")
        response = httpx.Response(503, request=request)
        error = httpx.HTTPStatusError("Server error", request=request, response=response)

        assert classify_fetch_failure(error) is None
