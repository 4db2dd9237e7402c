"""
Utilidades de fechas de calendario para el pipeline de tarifas.

Todas las fechas de negocio viajan como strings YYYY-MM-DD; "hoy" se
calcula siempre en UTC.
"""
import re
from datetime import date, datetime, timedelta, timezone
from typing import Union

ISO_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")

DateLike = Union[str, date, datetime]


def utc_today() -> date:
    """Fecha de calendario actual en UTC."""
    return datetime.now(timezone.utc).date()


def is_valid_iso_date(value: str) -> bool:
    """
    True si `value` es exactamente YYYY-MM-DD y la fecha existe
    (rechaza 2024-02-30, 2024-13-01, '2024-1-5', etc.).
    """
    if not isinstance(value, str) or not ISO_DATE_RE.match(value):
        return False
    try:
        date.fromisoformat(value)
    except ValueError:
        return False
    return True


def to_calendar_date_str(value: DateLike) -> str:
    """
    Trunca a precision de dia y serializa como YYYY-MM-DD.

    Acepta strings ISO (con o sin hora), `date` y `datetime`.
    """
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    return str(value).split("T")[0].strip()[:10]


def window_start(today: date, days: int) -> date:
    """Primer dia (inclusive) de la ventana reciente de `days` dias."""
    return today - timedelta(days=days)
