"""
Business headlines from two independent providers, merged into one list.

Provider A: NewsAPI top headlines (business, English).
Provider B: FMP general news.

Each provider is fetched and judged on its own; one failing never affects
the other's contribution. The merge takes successful providers in priority
order (A then B), drops exact-text duplicates keeping the first occurrence,
and caps the list. The merged list is never empty.
"""
from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Any

import httpx

from brief.config import FMP_BASE_URL, NEWS_API_BASE_URL
from brief.sources.base import FETCH_ERRORS, SourceError, SourceResult, describe_error, get_json
from brief.utils.dates import parse_dt_any, utc_now
from brief.utils.extract import optional_text

logger = logging.getLogger(__name__)

HEADLINES_UNAVAILABLE = "Could not fetch headlines."


class HeadlineSource(str, Enum):
    A = "A"
    B = "B"


@dataclass(frozen=True)
class Headline:
    text: str
    source: HeadlineSource
    published_at: datetime | None = None


def parse_newsapi_articles(payload: Any) -> list[Headline]:
    """NewsAPI: ``{"status": "ok", "articles": [{"title", "publishedAt", ...}]}``."""
    if not isinstance(payload, dict):
        raise SourceError(f"unexpected NewsAPI payload: {type(payload).__name__}")
    if payload.get("status") == "error":
        raise SourceError(f"NewsAPI error: {payload.get('code') or payload.get('message') or 'unknown'}")
    articles = payload.get("articles")
    if not isinstance(articles, list):
        raise SourceError("NewsAPI payload has no article list")
    out: list[Headline] = []
    for row in articles:
        title = optional_text(row, "title")
        if not title:
            continue
        out.append(Headline(text=title, source=HeadlineSource.A, published_at=parse_dt_any(row.get("publishedAt"))))
    return out


def parse_fmp_general_news(payload: Any) -> list[Headline]:
    """FMP general news: ``[{"title", "publishedDate", "site", ...}]`` (UTC timestamps)."""
    if not isinstance(payload, list):
        raise SourceError(f"unexpected FMP news payload: {type(payload).__name__}")
    out: list[Headline] = []
    for row in payload:
        title = optional_text(row, "title")
        if not title:
            continue
        out.append(Headline(text=title, source=HeadlineSource.B, published_at=parse_dt_any(row.get("publishedDate"))))
    return out


def select_headlines(
    headlines: Sequence[Headline],
    *,
    now: datetime,
    freshness_hours: float | None,
    limit: int,
) -> list[Headline]:
    """
    Keep provider order, drop headlines older than the freshness window, take ``limit``.

    Headlines without a timestamp are kept; the window only applies when the
    provider tells us when something was published.
    """
    cutoff = now - timedelta(hours=freshness_hours) if freshness_hours else None
    out: list[Headline] = []
    if limit <= 0:
        return out
    for h in headlines:
        if cutoff is not None and h.published_at is not None and h.published_at < cutoff:
            continue
        out.append(h)
        if len(out) >= limit:
            break
    return out


class _HeadlineProvider:
    name = ""
    key_name = ""

    def __init__(
        self,
        *,
        api_key: str | None,
        limit: int = 5,
        freshness_hours: float | None = 4.0,
        now: datetime | None = None,
        timeout: float | None = None,
    ) -> None:
        self.api_key = api_key
        self.limit = limit
        self.freshness_hours = freshness_hours
        self.now = now
        self.timeout = timeout

    async def _request(self, client: httpx.AsyncClient) -> Any:
        raise NotImplementedError

    def parse(self, payload: Any) -> list[Headline]:
        raise NotImplementedError

    async def fetch(self, client: httpx.AsyncClient) -> SourceResult:
        try:
            if not self.api_key:
                raise SourceError(f"missing {self.key_name}")
            rows = self.parse(await self._request(client))
        except FETCH_ERRORS as e:
            error = describe_error(e)
            logger.warning(f"Headline provider '{self.name}' failed: {error}")
            return SourceResult.failed(self.name, error)

        kept = select_headlines(
            rows,
            now=self.now or utc_now(),
            freshness_hours=self.freshness_hours,
            limit=self.limit,
        )
        logger.info(f"Headline provider '{self.name}': {len(rows)} received, {len(kept)} kept")
        return SourceResult.success(self.name, kept)


class NewsApiHeadlines(_HeadlineProvider):
    name = "news_a"
    key_name = "NEWS_API_KEY"

    def __init__(self, *, base_url: str = NEWS_API_BASE_URL, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self.base_url = base_url

    async def _request(self, client: httpx.AsyncClient) -> Any:
        return await get_json(
            client,
            f"{self.base_url}/top-headlines",
            params={"category": "business", "language": "en", "apiKey": self.api_key},
            timeout=self.timeout,
        )

    def parse(self, payload: Any) -> list[Headline]:
        return parse_newsapi_articles(payload)


class FmpGeneralNewsHeadlines(_HeadlineProvider):
    name = "news_b"
    key_name = "FMP_API_KEY"

    def __init__(self, *, base_url: str = FMP_BASE_URL, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self.base_url = base_url

    async def _request(self, client: httpx.AsyncClient) -> Any:
        return await get_json(
            client,
            f"{self.base_url}/v4/general_news",
            params={"page": 0, "apikey": self.api_key},
            timeout=self.timeout,
        )

    def parse(self, payload: Any) -> list[Headline]:
        return parse_fmp_general_news(payload)


def merge_headlines(
    results: Sequence[SourceResult],
    *,
    cap: int = 8,
    freshness_hours: float | None = None,
) -> list[str]:
    """
    Merge provider results (already in priority order) into display lines.

    Returns exactly one placeholder line when nothing usable came back.
    """
    seen: set[str] = set()
    lines: list[str] = []
    for result in results:
        if not result.ok:
            continue
        for h in result.items:
            if not isinstance(h, Headline) or h.text in seen:
                continue
            seen.add(h.text)
            lines.append(f"- {h.text}")
    if lines:
        return lines[: max(1, cap)]
    if any(r.ok for r in results):
        if freshness_hours:
            return [f"No fresh headlines in the last {freshness_hours:g} hours."]
        return ["No headlines available."]
    return [HEADLINES_UNAVAILABLE]
