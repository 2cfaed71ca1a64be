from __future__ import annotations

import asyncio
from datetime import timedelta

import httpx

from conftest import NEWS_A, NEWS_B, NOW, fmp_news_payload, make_client, newsapi_payload
from brief.sources.base import SourceResult
from brief.sources.news import (
    HEADLINES_UNAVAILABLE,
    FmpGeneralNewsHeadlines,
    Headline,
    HeadlineSource,
    NewsApiHeadlines,
    merge_headlines,
    parse_newsapi_articles,
    select_headlines,
)


def _fetch_both(routes, **kwargs):
    kwargs.setdefault("now", NOW)

    async def run():
        async with make_client(routes) as client:
            a = await NewsApiHeadlines(api_key="a", **kwargs).fetch(client)
            b = await FmpGeneralNewsHeadlines(api_key="b", **kwargs).fetch(client)
            return [a, b]

    return asyncio.run(run())


def test_provider_a_fails_b_contributes_alone():
    results = _fetch_both({NEWS_A: 503, NEWS_B: fmp_news_payload("One", "Two", "Three")})
    assert not results[0].ok
    assert merge_headlines(results) == ["- One", "- Two", "- Three"]


def test_both_providers_fail_single_placeholder():
    results = _fetch_both({NEWS_A: httpx.ConnectTimeout, NEWS_B: 500})
    assert results[0].error == "timed out"
    assert results[1].error == "HTTP 500"
    assert merge_headlines(results) == [HEADLINES_UNAVAILABLE]


def test_duplicates_across_providers_keep_first_position():
    results = _fetch_both({
        NEWS_A: newsapi_payload("Fed holds", "Oil climbs"),
        NEWS_B: fmp_news_payload("Oil climbs", "Gold slips"),
    })
    assert merge_headlines(results) == ["- Fed holds", "- Oil climbs", "- Gold slips"]


def test_per_provider_limit_and_merged_cap():
    titles_a = [f"A{i}" for i in range(10)]
    titles_b = [f"B{i}" for i in range(10)]
    results = _fetch_both({NEWS_A: newsapi_payload(*titles_a), NEWS_B: fmp_news_payload(*titles_b)}, limit=5)
    assert len(results[0].items) == 5
    assert len(results[1].items) == 5
    merged = merge_headlines(results, cap=8)
    assert merged == [f"- A{i}" for i in range(5)] + [f"- B{i}" for i in range(3)]


def test_newsapi_error_status_is_a_failure():
    payload = {"status": "error", "code": "apiKeyInvalid", "message": "Your API key is invalid."}
    results = _fetch_both({NEWS_A: payload, NEWS_B: []})
    assert not results[0].ok
    assert "apiKeyInvalid" in results[0].error
    assert results[1].ok
    assert merge_headlines(results, freshness_hours=4) == ["No fresh headlines in the last 4 hours."]


def test_missing_key_fails_without_request():
    async def run():
        async with make_client({}) as client:
            return await NewsApiHeadlines(api_key="", now=NOW).fetch(client)

    result = asyncio.run(run())
    assert not result.ok
    assert result.error == "missing NEWS_API_KEY"


def test_select_headlines_freshness_window():
    rows = [
        Headline("fresh", HeadlineSource.A, NOW - timedelta(hours=1)),
        Headline("stale", HeadlineSource.A, NOW - timedelta(hours=5)),
        Headline("undated", HeadlineSource.A, None),
    ]
    kept = select_headlines(rows, now=NOW, freshness_hours=4, limit=5)
    assert [h.text for h in kept] == ["fresh", "undated"]
    assert len(select_headlines(rows, now=NOW, freshness_hours=None, limit=5)) == 3
    assert select_headlines(rows, now=NOW, freshness_hours=4, limit=0) == []


def test_stale_provider_headlines_are_dropped_on_fetch():
    results = _fetch_both({
        NEWS_A: newsapi_payload("Old news", published="2026-10-18T12:00:00Z"),
        NEWS_B: fmp_news_payload("Breaking", published="2026-10-19 00:45:00"),
    })
    assert merge_headlines(results) == ["- Breaking"]


def test_parse_newsapi_skips_untitled_articles():
    payload = {"status": "ok", "articles": [{"title": None}, {"title": " Stocks rally "}, "junk"]}
    rows = parse_newsapi_articles(payload)
    assert [h.text for h in rows] == ["Stocks rally"]


def test_merge_ignores_items_of_failed_results():
    results = [
        SourceResult.failed("news_a", "HTTP 500", [Headline("leaked", HeadlineSource.A)]),
        SourceResult.success("news_b", [Headline("kept", HeadlineSource.B)]),
    ]
    assert merge_headlines(results) == ["- kept"]
    assert merge_headlines([SourceResult.success("news_a", [])]) == ["No headlines available."]
