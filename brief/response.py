"""
Response assembly: aggregation result -> JSON payload -> HTTP envelope.

The payload always carries every promised key. Upstream failures show up as
placeholder lines inside a 200; only a defect in aggregation or assembly
itself turns into a 500.
"""
from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from typing import Any

from pydantic import ValidationError

from brief.aggregator import AggregationResult, run_aggregation
from brief.config import InvocationOptions, Settings, load_settings
from brief.sources.calendar import CALENDAR_KEYS

logger = logging.getLogger(__name__)

GENERIC_ERROR = "Failed to fetch all data"
JSON_HEADERS = {"Content-Type": "application/json"}

_QUERY_FIELDS = ("symbolSet", "freshnessWindowHours")
# Keys whose lists must never be empty; degradedSources may be.
_NON_EMPTY = ("newsHeadlines", "marketData", "scrapedHeadlines")


class AssemblyError(Exception):
    """The assembled payload does not have the promised shape."""


def flatten_market(market: Mapping[str, list[str]]) -> list[str]:
    """``*Section*`` header, its lines, blank line between sections."""
    lines: list[str] = []
    for i, (name, rows) in enumerate(market.items()):
        if i:
            lines.append("")
        lines.append(f"*{name}*")
        lines.extend(rows)
    return lines


def _check_lines(key: str, value: Any, *, allow_empty: bool = False) -> None:
    if not isinstance(value, list) or not all(isinstance(x, str) for x in value):
        raise AssemblyError(f"{key} must be a list of strings")
    if not value and not allow_empty:
        raise AssemblyError(f"{key} is empty")


def validate_payload(payload: Mapping[str, Any]) -> None:
    for key in _NON_EMPTY:
        if key not in payload:
            raise AssemblyError(f"missing key {key}")
        _check_lines(key, payload[key])
    calendar = payload.get("economicCalendar")
    if not isinstance(calendar, Mapping):
        raise AssemblyError("economicCalendar must be an object")
    for key in CALENDAR_KEYS:
        if key not in calendar:
            raise AssemblyError(f"missing key economicCalendar.{key}")
        _check_lines(f"economicCalendar.{key}", calendar[key])
    _check_lines("degradedSources", payload.get("degradedSources"), allow_empty=True)
    if not isinstance(payload.get("asof"), str):
        raise AssemblyError("asof must be a string")


def assemble_payload(result: AggregationResult) -> dict[str, Any]:
    payload = {
        "newsHeadlines": list(result.headlines),
        "marketData": flatten_market(result.market),
        "economicCalendar": {key: list(result.calendar.get(key) or []) for key in CALENDAR_KEYS},
        "scrapedHeadlines": list(result.scraped),
        "degradedSources": sorted(result.failures),
        "asof": result.asof.isoformat(),
    }
    validate_payload(payload)
    return payload


def options_from_query(params: Mapping[str, Any] | None) -> InvocationOptions:
    """
    Per-request overrides from a query string.

    Invalid values are dropped with a warning so the defaults apply; a bad
    query parameter never fails the request.
    """
    raw = {k: params.get(k) for k in _QUERY_FIELDS if params and params.get(k) not in (None, "")}
    try:
        return InvocationOptions.model_validate(raw)
    except ValidationError as e:
        bad = {str(err["loc"][0]) for err in e.errors() if err.get("loc")}
        logger.warning(f"Ignoring invalid query parameter(s): {', '.join(sorted(bad))}")
        return InvocationOptions.model_validate({k: v for k, v in raw.items() if k not in bad})


def build_response(
    settings: Settings | None = None,
    query: Mapping[str, Any] | None = None,
    **aggregate_kwargs: Any,
) -> tuple[int, dict[str, Any]]:
    """``(status, body)`` for one invocation."""
    options = options_from_query(query)
    try:
        settings = (settings or load_settings()).with_overrides(options)
        result = run_aggregation(settings, **aggregate_kwargs)
        return 200, assemble_payload(result)
    except Exception:
        logger.exception("Market brief assembly failed")
        return 500, {"error": GENERIC_ERROR}


def handler(event: Mapping[str, Any] | None, context: Any = None) -> dict[str, Any]:
    """Serverless-function entry point."""
    query = (event or {}).get("queryStringParameters") or {}
    status, body = build_response(query=query)
    return {"statusCode": status, "headers": dict(JSON_HEADERS), "body": json.dumps(body)}
