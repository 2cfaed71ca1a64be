from __future__ import annotations

from datetime import datetime, timedelta, timezone

from brief.utils.dates import parse_dt_any, resolve_timezone, utc_date_iso


def test_parse_dt_any_provider_formats():
    assert parse_dt_any("2026-10-19T00:30:00Z") == datetime(2026, 10, 19, 0, 30, tzinfo=timezone.utc)
    assert parse_dt_any("2026-10-19 13:30:00") == datetime(2026, 10, 19, 13, 30, tzinfo=timezone.utc)
    assert parse_dt_any("2026-10-19") == datetime(2026, 10, 19, tzinfo=timezone.utc)
    assert parse_dt_any("2026-10-19T11:00:00+10:00") == datetime(2026, 10, 19, 1, 0, tzinfo=timezone.utc)


def test_parse_dt_any_garbage():
    assert parse_dt_any(None) is None
    assert parse_dt_any("") is None
    assert parse_dt_any("yesterday") is None
    assert parse_dt_any(1760835600) is None


def test_resolve_timezone_falls_back_to_utc():
    assert resolve_timezone("Not/AZone") is timezone.utc
    sydney = resolve_timezone("Australia/Sydney")
    assert datetime(2026, 10, 19, 1, tzinfo=timezone.utc).astimezone(sydney).utcoffset() == timedelta(hours=11)


def test_utc_date_iso():
    dt = datetime(2026, 10, 19, 23, 30, tzinfo=timezone(timedelta(hours=-5)))
    assert utc_date_iso(dt) == "2026-10-20"
