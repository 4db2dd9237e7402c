from datetime import date, datetime, timezone

from tariff_sync.shared.utils.date_utils import is_valid_iso_date, to_calendar_date_str, window_start


def test_is_valid_iso_date_accepts_strict_format():
    assert is_valid_iso_date("2024-01-15")
    assert is_valid_iso_date("2024-02-29")  # bisiesto


def test_is_valid_iso_date_rejects_bad_values():
    assert not is_valid_iso_date("2024-1-15")
    assert not is_valid_iso_date("2024/01/15")
    assert not is_valid_iso_date("2023-02-29")  # no bisiesto
    assert not is_valid_iso_date("2024-13-01")
    assert not is_valid_iso_date("2024-01-15T00:00:00")
    assert not is_valid_iso_date(None)


def test_to_calendar_date_str_truncates_to_day():
    assert to_calendar_date_str("2024-01-15T10:30:00Z") == "2024-01-15"
    assert to_calendar_date_str("2024-01-15") == "2024-01-15"
    assert to_calendar_date_str(date(2024, 1, 15)) == "2024-01-15"
    assert to_calendar_date_str(datetime(2024, 1, 15, 23, 59, tzinfo=timezone.utc)) == "2024-01-15"


def test_window_start():
    # 7 dias hacia atras, inclusive
    assert window_start(date(2024, 1, 15), 7) == date(2024, 1, 8)
    # cruza el cambio de mes
    assert window_start(date(2024, 3, 3), 7) == date(2024, 2, 25)
