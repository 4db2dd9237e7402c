"""
Cliente minimo de Google Sheets REST API v4 (sin googleapiclient).

Requisitos cubiertos:
- requests (via google.auth AuthorizedSession, que agrega el bearer token
  de la service account y lo refresca)
- rate-limit/backoff (429, 5xx)
- las cuatro operaciones que necesita el publicador: listar hojas, crear
  hoja, limpiar rango y escribir valores
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any, Callable, Optional
from urllib.parse import quote

import requests
from google.auth.transport.requests import AuthorizedSession
from google.oauth2 import service_account

SHEETS_SCOPES = ["https://www.googleapis.com/auth/spreadsheets"]
DEFAULT_SHEETS_URL = "https://sheets.googleapis.com/v4/spreadsheets"
DEFAULT_TOKEN_URI = "https://oauth2.googleapis.com/token"


@dataclass(frozen=True)
class ServiceAccountCredentials:
    client_email: str
    private_key: str
    token_uri: str = DEFAULT_TOKEN_URI

    def normalized_private_key(self) -> str:
        """Las variables de entorno suelen traer la llave con '\\n' literales."""
        return self.private_key.replace("\\n", "\n")


class GoogleSheetsApiError(RuntimeError):
    """Error de integracion con Google Sheets."""

    def __init__(self, message: str, *, status_code: Optional[int] = None, reason: Optional[str] = None) -> None:
        self.status_code = status_code
        self.reason = reason
        super().__init__(message)


def build_authorized_session(credentials: ServiceAccountCredentials) -> requests.Session:
    """Sesion requests autenticada con la service account (scope spreadsheets)."""
    info = {
        "type": "service_account",
        "client_email": credentials.client_email,
        "private_key": credentials.normalized_private_key(),
        "token_uri": credentials.token_uri,
    }
    google_credentials = service_account.Credentials.from_service_account_info(info, scopes=SHEETS_SCOPES)
    return AuthorizedSession(google_credentials)


def _error_message(resp: requests.Response) -> tuple[str, Optional[str]]:
    """Extrae (mensaje, status simbolico) del cuerpo de error de Google."""
    try:
        payload = resp.json()
    except ValueError:
        return resp.text[:500], None
    error = payload.get("error") if isinstance(payload, dict) else None
    if not isinstance(error, dict):
        return resp.text[:500], None
    return str(error.get("message") or ""), error.get("status")


class GoogleSheetsClient:
    """
    Cliente HTTP bloqueante de Google Sheets.

    Importante:
    - No sabe nada de tarifas: recibe matrices de valores ya renderizadas.
    - Los rangos se pasan en notacion A1 ("hoja!A1:Z1000").
    """

    def __init__(
        self,
        session: requests.Session,
        *,
        base_url: str = DEFAULT_SHEETS_URL,
        timeout_s: int = 30,
        max_retries: int = 4,
        min_backoff_s: float = 0.8,
        max_backoff_s: float = 20.0,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._session = session
        self._base_url = base_url.rstrip("/")
        self._timeout_s = timeout_s
        self._max_retries = max_retries
        self._min_backoff_s = min_backoff_s
        self._max_backoff_s = max_backoff_s
        self._sleep = sleep

    def get_sheet_titles(self, spreadsheet_id: str) -> list[str]:
        payload = self._request_json(
            "GET",
            f"{self._base_url}/{spreadsheet_id}",
            params={"fields": "sheets.properties.title"},
        )
        sheets = payload.get("sheets") or []
        return [str((s.get("properties") or {}).get("title")) for s in sheets]

    def add_sheet(self, spreadsheet_id: str, title: str) -> None:
        self._request_json(
            "POST",
            f"{self._base_url}/{spreadsheet_id}:batchUpdate",
            json={"requests": [{"addSheet": {"properties": {"title": title}}}]},
        )

    def clear_values(self, spreadsheet_id: str, a1_range: str) -> None:
        self._request_json(
            "POST",
            f"{self._base_url}/{spreadsheet_id}/values/{quote(a1_range, safe='')}:clear",
            json={},
        )

    def update_values(
        self,
        spreadsheet_id: str,
        a1_range: str,
        values: list[list[Any]],
        *,
        value_input_option: str = "USER_ENTERED",
    ) -> None:
        self._request_json(
            "PUT",
            f"{self._base_url}/{spreadsheet_id}/values/{quote(a1_range, safe='')}",
            params={"valueInputOption": value_input_option},
            json={"range": a1_range, "majorDimension": "ROWS", "values": values},
        )

    def _request_json(
        self,
        method: str,
        url: str,
        *,
        params: Optional[dict[str, Any]] = None,
        json: Optional[dict[str, Any]] = None,
    ) -> dict[str, Any]:
        """
        Request HTTP con backoff para 429/5xx.

        Estrategia:
        - 429: respeta Retry-After si existe, si no exponencial con jitter simple.
        - 5xx: exponencial con jitter.
        - 4xx (no 429): error inmediato (permisos, hoja/rango inexistente).
        """
        for attempt in range(self._max_retries + 1):
            resp = self._session.request(
                method=method,
                url=url,
                params=params,
                json=json,
                timeout=self._timeout_s,
            )

            if 200 <= resp.status_code < 300:
                return resp.json() if resp.content else {}

            message, reason = _error_message(resp)

            # Errores recuperables
            if resp.status_code == 429 or 500 <= resp.status_code < 600:
                if attempt >= self._max_retries:
                    raise GoogleSheetsApiError(
                        f"Google Sheets error {resp.status_code} tras {attempt} reintentos: {message}",
                        status_code=resp.status_code,
                        reason=reason,
                    )

                retry_after = resp.headers.get("Retry-After")
                if retry_after:
                    try:
                        sleep_s = float(retry_after)
                    except ValueError:
                        sleep_s = self._min_backoff_s
                else:
                    base = min(self._max_backoff_s, self._min_backoff_s * (2**attempt))
                    sleep_s = base + (0.15 * base)

                self._sleep(sleep_s)
                continue

            # Errores no recuperables
            raise GoogleSheetsApiError(
                f"Google Sheets request fallo {resp.status_code} {reason or ''}: {message}".strip(),
                status_code=resp.status_code,
                reason=reason,
            )

        raise GoogleSheetsApiError(f"Google Sheets sin respuesta valida: {method} {url}")
