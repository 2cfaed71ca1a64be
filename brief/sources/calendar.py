"""
Economic calendar (FMP) and the read-time bucket classifier.

Endpoint: ``/api/v3/economic_calendar?from=YYYY-MM-DD&to=YYYY-MM-DD``

The request window starts at the UTC date of ``now - lookback``. It ends at
the later of ``now + lookahead`` and the last instant of "tomorrow" in the
display timezone, as a UTC date, so both local days are always requested.
"""
from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime, time, timedelta, tzinfo
from enum import Enum
from typing import Any

import httpx

from brief.config import FMP_BASE_URL
from brief.sources.base import FETCH_ERRORS, SourceError, SourceResult, describe_error, get_json
from brief.utils.dates import parse_dt_any, resolve_timezone, utc_date_iso, utc_now
from brief.utils.extract import SENTINEL, optional_text
from brief.utils.formatting import fmt_value

logger = logging.getLogger(__name__)

ANNOUNCEMENTS = "announcements"
TODAY = "today"
TOMORROW = "tomorrow"
CALENDAR_KEYS = (ANNOUNCEMENTS, TODAY, TOMORROW)

CALENDAR_UNAVAILABLE = "Could not fetch calendar data."
EMPTY_PLACEHOLDERS = {
    ANNOUNCEMENTS: "No recent data announcements.",
    TODAY: "No further events today.",
    TOMORROW: "No events scheduled tomorrow.",
}


class Bucket(str, Enum):
    ANNOUNCEMENT = "announcement"
    TODAY = "today"
    TOMORROW = "tomorrow"
    OTHER = "other"


@dataclass(frozen=True)
class CalendarEvent:
    timestamp_utc: datetime
    country: str | None
    event_name: str
    actual_value: str | None = None


def normalize_fmp_economic_calendar(rows: Any) -> list[CalendarEvent]:
    """Provider rows -> events sorted by time. Rows without a time or a name are dropped."""
    if not isinstance(rows, list):
        raise SourceError(f"unexpected economic_calendar payload: {type(rows).__name__}")
    out: list[CalendarEvent] = []
    for r in rows:
        if not isinstance(r, dict):
            continue
        dt = parse_dt_any(r.get("date"))
        name = optional_text(r, "event", "eventName")
        if dt is None or not name:
            continue
        actual = r.get("actual")
        actual_text = fmt_value(actual) if actual is not None and actual != "" else None
        if actual_text == SENTINEL:
            actual_text = None
        out.append(
            CalendarEvent(
                timestamp_utc=dt,
                country=optional_text(r, "country"),
                event_name=name,
                actual_value=actual_text,
            )
        )
    out.sort(key=lambda e: e.timestamp_utc)
    return out


def classify_event(event: CalendarEvent, *, now: datetime, tz: tzinfo) -> Bucket:
    """
    Past events with an actual are announcements; past events without one are ignored.
    Upcoming events are bucketed by their local date in ``tz``.
    """
    if event.timestamp_utc < now:
        return Bucket.ANNOUNCEMENT if event.actual_value else Bucket.OTHER
    local_day = event.timestamp_utc.astimezone(tz).date()
    today = now.astimezone(tz).date()
    if local_day == today:
        return Bucket.TODAY
    if local_day == today + timedelta(days=1):
        return Bucket.TOMORROW
    return Bucket.OTHER


def _label(event: CalendarEvent) -> str:
    return f"{event.country} {event.event_name}" if event.country else event.event_name


def build_calendar_sections(
    events: Sequence[CalendarEvent],
    *,
    now: datetime,
    tz: tzinfo,
    announcement_limit: int = 5,
) -> dict[str, list[str]]:
    """Display lines per bucket; empty buckets hold a placeholder line."""
    announcements: list[CalendarEvent] = []
    today: list[CalendarEvent] = []
    tomorrow: list[CalendarEvent] = []
    for ev in events:
        bucket = classify_event(ev, now=now, tz=tz)
        if bucket is Bucket.ANNOUNCEMENT:
            announcements.append(ev)
        elif bucket is Bucket.TODAY:
            today.append(ev)
        elif bucket is Bucket.TOMORROW:
            tomorrow.append(ev)

    announcements.sort(key=lambda e: e.timestamp_utc, reverse=True)
    today.sort(key=lambda e: e.timestamp_utc)
    tomorrow.sort(key=lambda e: e.timestamp_utc)

    sections = {
        ANNOUNCEMENTS: [f"- {_label(e)}: {e.actual_value}" for e in announcements[: max(0, announcement_limit)]],
        TODAY: [f"- {e.timestamp_utc.astimezone(tz):%H:%M} {_label(e)}" for e in today],
        TOMORROW: [f"- {e.timestamp_utc.astimezone(tz):%H:%M} {_label(e)}" for e in tomorrow],
    }
    for key, lines in sections.items():
        if not lines:
            lines.append(EMPTY_PLACEHOLDERS[key])
    return sections


def unavailable_sections() -> dict[str, list[str]]:
    return {key: [CALENDAR_UNAVAILABLE] for key in CALENDAR_KEYS}


class CalendarSource:
    name = "calendar"

    def __init__(
        self,
        *,
        api_key: str | None,
        now: datetime | None = None,
        lookback_hours: float = 15.0,
        lookahead_hours: float = 24.0,
        display_timezone: str = "Australia/Sydney",
        timeout: float | None = None,
        base_url: str = FMP_BASE_URL,
    ) -> None:
        self.api_key = api_key
        self.now = now
        self.lookback_hours = lookback_hours
        self.lookahead_hours = lookahead_hours
        self.tz = resolve_timezone(display_timezone)
        self.timeout = timeout
        self.base_url = base_url

    def window(self) -> tuple[str, str]:
        now = self.now or utc_now()
        local_today = now.astimezone(self.tz).date()
        # Last instant of local tomorrow.
        day_after = datetime.combine(local_today + timedelta(days=2), time.min, tzinfo=self.tz)
        tomorrow_end = day_after - timedelta(microseconds=1)
        end = max(now + timedelta(hours=self.lookahead_hours), tomorrow_end)
        return utc_date_iso(now - timedelta(hours=self.lookback_hours)), utc_date_iso(end)

    async def fetch(self, client: httpx.AsyncClient) -> SourceResult:
        try:
            if not self.api_key:
                raise SourceError("missing FMP_API_KEY")
            from_date, to_date = self.window()
            rows = await get_json(
                client,
                f"{self.base_url}/v3/economic_calendar",
                params={"from": from_date, "to": to_date, "apikey": self.api_key},
                timeout=self.timeout,
            )
            events = normalize_fmp_economic_calendar(rows)
        except FETCH_ERRORS as e:
            error = describe_error(e)
            logger.warning(f"Economic calendar fetch failed: {error}")
            return SourceResult.failed(self.name, error)
        return SourceResult.success(self.name, events)
