"""
Safe field access over heterogeneous provider payloads.

Provider rows are plain JSON: keys go missing, numbers arrive as strings,
lists arrive as dicts. These helpers never raise and answer with the
``SENTINEL`` (or ``None`` for the typed variants) instead.
"""
from __future__ import annotations

import math
from collections.abc import Mapping
from typing import Any

SENTINEL = "N/A"


def is_number(x: Any) -> bool:
    """True for finite ints/floats (bools excluded)."""
    if isinstance(x, bool) or not isinstance(x, (int, float)):
        return False
    return math.isfinite(x)


def get_field(records: Any, symbol_key: str, field_name: str) -> Any:
    """
    Value of ``records[symbol_key][field_name]`` or ``SENTINEL``.

    The sentinel covers every failure mode: ``records`` not a mapping, the
    symbol or field missing, the per-symbol record not a mapping, or a
    ``None`` value.
    """
    if not isinstance(records, Mapping):
        return SENTINEL
    row = records.get(symbol_key)
    if not isinstance(row, Mapping):
        return SENTINEL
    value = row.get(field_name)
    if value is None:
        return SENTINEL
    return value


def get_number(records: Any, symbol_key: str, field_name: str) -> float | str:
    """Like ``get_field`` but also answers ``SENTINEL`` for anything that is not a finite number."""
    value = get_field(records, symbol_key, field_name)
    if not is_number(value):
        return SENTINEL
    return float(value)


def optional_number(records: Any, symbol_key: str, field_name: str) -> float | None:
    value = get_number(records, symbol_key, field_name)
    return None if value == SENTINEL else value


def optional_text(row: Any, *field_names: str) -> str | None:
    """First non-blank string among ``field_names`` of a single row."""
    if not isinstance(row, Mapping):
        return None
    for name in field_names:
        value = row.get(name)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None


def index_by(rows: Any, key: str = "symbol") -> dict[str, Mapping[str, Any]]:
    """
    Map provider rows by ``key``.

    Non-list payloads give an empty mapping; rows that are not mappings or
    lack a usable key are skipped. First occurrence wins.
    """
    out: dict[str, Mapping[str, Any]] = {}
    if not isinstance(rows, list):
        return out
    for row in rows:
        if not isinstance(row, Mapping):
            continue
        value = row.get(key)
        if not isinstance(value, str) or not value.strip():
            continue
        out.setdefault(value.strip().upper(), row)
    return out
