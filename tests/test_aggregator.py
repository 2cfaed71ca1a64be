from __future__ import annotations

import asyncio

import httpx

from conftest import CALENDAR, NEWS_A, NEWS_B, NOW, QUOTES, fmp_news_payload, make_client, make_settings, quote_row
from brief.aggregator import SourcePlan, aggregate, build_plan
from brief.sources.base import SourceResult, StaticFixtureSource, settle_all
from brief.sources.calendar import CALENDAR_UNAVAILABLE
from brief.sources.news import HEADLINES_UNAVAILABLE
from brief.sources.quotes import OTHER_MARKETS, SYMBOL_SETS
from brief.sources.scrape import NO_SCRAPE_CONFIGURED


class _Exploding:
    def __init__(self, name: str, exc: Exception) -> None:
        self.name = name
        self.exc = exc

    async def fetch(self, client):
        raise self.exc


class _Slow:
    name = "slow"

    async def fetch(self, client):
        await asyncio.sleep(0.01)
        return SourceResult.success(self.name, ["done"])


def test_settle_all_isolates_escaped_errors():
    sources = [_Exploding("boom", RuntimeError("kaput")), _Slow(), StaticFixtureSource("fixed", ["x"])]

    async def run():
        async with make_client({}) as client:
            return await settle_all(sources, client)

    settled = asyncio.run(run())
    assert settled["boom"].error == "kaput"
    assert settled["slow"].items == ("done",)
    assert settled["fixed"].ok


def test_every_upstream_failing_still_fills_every_section(settings):
    routes = {QUOTES: 500, NEWS_A: httpx.ConnectError, NEWS_B: 502, CALENDAR: httpx.ReadTimeout}

    async def run():
        async with make_client(routes) as client:
            return await aggregate(settings, client=client, now=NOW)

    result = asyncio.run(run())
    assert result.headlines == [HEADLINES_UNAVAILABLE]
    assert sum(len(rows) for rows in result.market.values()) == 14
    assert all(line.endswith("N/A, Last: N/A") for rows in result.market.values() for line in rows)
    assert result.calendar == {k: [CALENDAR_UNAVAILABLE] for k in ("announcements", "today", "tomorrow")}
    assert result.scraped == list(NO_SCRAPE_CONFIGURED)
    assert set(result.failures) == {"quotes", "news_a", "news_b", "calendar"}
    assert result.asof == NOW


def test_one_failure_does_not_affect_other_sections(settings, sample_calendar_rows):
    routes = {
        QUOTES: [quote_row("BTCUSD", price=68000.5, change=1.2)],
        NEWS_A: 401,
        NEWS_B: fmp_news_payload("Futures edge up"),
        CALENDAR: sample_calendar_rows,
    }

    async def run():
        async with make_client(routes) as client:
            result = await aggregate(settings, client=client, now=NOW)
            assert not client.is_closed
            return result

    result = asyncio.run(run())
    assert result.headlines == ["- Futures edge up"]
    assert "- Bitcoin: +1.20%, Last: 68,000.5" in result.market[OTHER_MARKETS]
    assert result.calendar["today"] == ["- 16:00 GB Rightmove HPI"]
    assert result.failures == {"news_a": "HTTP 401"}


def test_build_plan_follows_settings():
    plan = build_plan(make_settings(BRIEF_SYMBOL_SET="classic", BRIEF_SCRAPE_URL="https://example.test/p"), now=NOW)
    assert plan.specs is SYMBOL_SETS["classic"]
    assert [s.name for s in plan.all()] == ["quotes", "news_a", "news_b", "calendar", "scrape"]
    assert plan.scrape.url == "https://example.test/p"

    unknown = build_plan(make_settings(BRIEF_SYMBOL_SET="weird"), now=NOW)
    assert unknown.specs is SYMBOL_SETS["default"]


def test_injected_plan_is_used(settings):
    specs = SYMBOL_SETS["classic"]
    plan = SourcePlan(
        specs=specs,
        quotes=StaticFixtureSource("quotes", []),
        headlines=(_Exploding("news_a", ValueError("bad json")), StaticFixtureSource("news_b", [])),
        calendar=StaticFixtureSource("calendar", []),
        scrape=StaticFixtureSource("scrape", ["Static line"]),
    )

    async def run():
        async with make_client({}) as client:
            return await aggregate(settings, client=client, plan=plan, now=NOW)

    result = asyncio.run(run())
    assert sum(len(rows) for rows in result.market.values()) == 12
    assert result.headlines == ["No fresh headlines in the last 4 hours."]
    assert result.calendar["tomorrow"] == ["No events scheduled tomorrow."]
    assert result.scraped == ["Static line"]
    assert result.failures == {"news_a": "bad json"}
