"""
Fan out to every source, wait for all of them, and build the brief.

No single upstream failure may abort the others or the overall result: each
section is computed only from its own sources' (possibly failed) results and
always ends up with at least one display line.
"""
from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from datetime import datetime

import httpx

from brief.config import Settings, load_settings
from brief.sources.base import Source, SourceResult, settle_all
from brief.sources.calendar import CalendarSource, build_calendar_sections, unavailable_sections
from brief.sources.news import FmpGeneralNewsHeadlines, NewsApiHeadlines, merge_headlines
from brief.sources.quotes import QuoteSource, SymbolSpec, empty_quotes, render_market_sections, resolve_symbol_set
from brief.sources.scrape import build_scrape_source, render_scraped
from brief.utils.dates import resolve_timezone, utc_now

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SourcePlan:
    """The sources of one invocation, grouped by the section they feed."""

    specs: tuple[SymbolSpec, ...]
    quotes: Source
    headlines: tuple[Source, ...]  # priority order
    calendar: Source
    scrape: Source

    def all(self) -> list[Source]:
        sources = [self.quotes, *self.headlines, self.calendar, self.scrape]
        names = [s.name for s in sources]
        if len(set(names)) != len(names):
            raise ValueError(f"source names must be unique, got {names}")
        return sources


@dataclass
class AggregationResult:
    headlines: list[str]
    market: dict[str, list[str]]
    calendar: dict[str, list[str]]
    scraped: list[str]
    asof: datetime
    failures: dict[str, str] = field(default_factory=dict)


def build_plan(settings: Settings, *, now: datetime | None = None) -> SourcePlan:
    """Default sources for ``settings``."""
    now = now or utc_now()
    timeout = settings.request_timeout_seconds
    specs = resolve_symbol_set(settings.symbol_set)
    headline_kwargs = dict(
        limit=settings.provider_headline_limit,
        freshness_hours=settings.freshness_window_hours,
        now=now,
        timeout=timeout,
    )
    return SourcePlan(
        specs=specs,
        quotes=QuoteSource(api_key=settings.fmp_api_key, specs=specs, timeout=timeout),
        headlines=(
            NewsApiHeadlines(api_key=settings.news_api_key, **headline_kwargs),
            FmpGeneralNewsHeadlines(api_key=settings.fmp_api_key, **headline_kwargs),
        ),
        calendar=CalendarSource(
            api_key=settings.fmp_api_key,
            now=now,
            lookback_hours=settings.calendar_lookback_hours,
            lookahead_hours=settings.calendar_lookahead_hours,
            display_timezone=settings.display_timezone,
            timeout=timeout,
        ),
        scrape=build_scrape_source(
            settings.scrape_url,
            selector=settings.scrape_selector,
            limit=settings.scrape_limit,
            timeout=timeout,
        ),
    )


def build_result(
    plan: SourcePlan,
    settled: dict[str, SourceResult],
    *,
    settings: Settings,
    now: datetime,
) -> AggregationResult:
    """Assemble sections from settled results. Pure; no I/O."""

    def _get(source: Source) -> SourceResult:
        return settled.get(source.name) or SourceResult.failed(source.name, "no result")

    quotes = _get(plan.quotes)
    market = render_market_sections(quotes.items or tuple(empty_quotes(plan.specs)), plan.specs)

    headlines = merge_headlines(
        [_get(s) for s in plan.headlines],
        cap=settings.headline_cap,
        freshness_hours=settings.freshness_window_hours,
    )

    cal = _get(plan.calendar)
    if cal.ok:
        calendar = build_calendar_sections(
            cal.items,
            now=now,
            tz=resolve_timezone(settings.display_timezone),
            announcement_limit=settings.announcement_limit,
        )
    else:
        calendar = unavailable_sections()

    failures = {name: r.error for name, r in settled.items() if not r.ok and r.error}
    return AggregationResult(
        headlines=headlines,
        market=market,
        calendar=calendar,
        scraped=render_scraped(_get(plan.scrape)),
        asof=now,
        failures=failures,
    )


async def aggregate(
    settings: Settings | None = None,
    *,
    client: httpx.AsyncClient | None = None,
    plan: SourcePlan | None = None,
    now: datetime | None = None,
) -> AggregationResult:
    """
    Run one aggregation.

    A client passed in is left open for the caller; otherwise one is created
    for this invocation and closed before returning.
    """
    settings = settings or load_settings()
    now = now or utc_now()
    plan = plan or build_plan(settings, now=now)
    sources = plan.all()

    t0 = time.monotonic()
    if client is None:
        async with httpx.AsyncClient(timeout=settings.request_timeout_seconds, follow_redirects=True) as own:
            settled = await settle_all(sources, own)
    else:
        settled = await settle_all(sources, client)
    elapsed_ms = (time.monotonic() - t0) * 1000

    result = build_result(plan, settled, settings=settings, now=now)
    if result.failures:
        detail = ", ".join(f"{k}: {v}" for k, v in result.failures.items())
        logger.warning(f"Degraded sources ({len(result.failures)}/{len(sources)}): {detail}")
    logger.info(f"[Perf] {len(sources)} sources settled in {elapsed_ms:.0f}ms")
    return result


def run_aggregation(settings: Settings | None = None, **kwargs) -> AggregationResult:
    """Synchronous entry point for the Flask view, the function handler and the CLI."""
    return asyncio.run(aggregate(settings, **kwargs))
