"""
Datetime parsing for provider timestamps.
"""
from __future__ import annotations

from datetime import datetime, timezone, tzinfo
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def parse_dt_any(value: Any) -> datetime | None:
    """
    Parse the timestamp formats the providers return, as an aware UTC datetime.

    Naive values are taken as UTC (FMP returns "2025-12-22 13:30:00";
    NewsAPI returns "2025-12-22T13:30:00Z").
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.astimezone(timezone.utc) if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if not isinstance(value, str):
        return None
    s = value.strip()
    if not s:
        return None
    if s.endswith("Z"):
        s = s[:-1] + "+00:00"
    try:
        dt = datetime.fromisoformat(s)
    except ValueError:
        dt = None
    if dt is None:
        for fmt in ("%Y-%m-%d %H:%M:%S", "%Y-%m-%d %H:%M", "%Y-%m-%d"):
            try:
                dt = datetime.strptime(s, fmt)
                break
            except ValueError:
                continue
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def resolve_timezone(name: str) -> tzinfo:
    """ZoneInfo for ``name``, falling back to UTC for unknown zone names."""
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        return timezone.utc


def utc_date_iso(dt: datetime) -> str:
    """YYYY-MM-DD of ``dt`` in UTC."""
    return dt.astimezone(timezone.utc).date().isoformat()
