"""
Page scrape: pull visible headline text out of a fixed-shape HTML page.

When no page is configured the section is served by a static fixture, which
is just another source as far as the aggregator is concerned.
"""
from __future__ import annotations

import logging

import httpx
from bs4 import BeautifulSoup
from soupsieve import SelectorSyntaxError

from brief.sources.base import FETCH_ERRORS, SourceError, SourceResult, StaticFixtureSource, describe_error

logger = logging.getLogger(__name__)

SCRAPE_UNAVAILABLE = "Could not fetch page headlines."
NO_SCRAPE_CONFIGURED = ("Page scrape not configured (set BRIEF_SCRAPE_URL).",)


def extract_blocks(html: str, selector: str, limit: int = 5) -> list[str]:
    """Visible text of every element matching ``selector``, deduplicated, in page order."""
    soup = BeautifulSoup(html, "html.parser")
    try:
        matches = soup.select(selector)
    except SelectorSyntaxError as e:
        raise SourceError(f"invalid selector {selector!r}") from e
    seen: set[str] = set()
    out: list[str] = []
    for el in matches:
        text = " ".join(el.get_text(" ", strip=True).split())
        if not text or text in seen:
            continue
        seen.add(text)
        out.append(text)
        if len(out) >= limit:
            break
    return out


class ScrapeSource:
    def __init__(
        self,
        *,
        url: str,
        selector: str = "h3.headline",
        limit: int = 5,
        timeout: float | None = None,
        name: str = "scrape",
    ) -> None:
        self.name = name
        self.url = url
        self.selector = selector
        self.limit = limit
        self.timeout = timeout

    async def fetch(self, client: httpx.AsyncClient) -> SourceResult:
        try:
            kwargs = {"timeout": self.timeout} if self.timeout is not None else {}
            resp = await client.get(self.url, **kwargs)
            resp.raise_for_status()
            blocks = extract_blocks(resp.text, self.selector, self.limit)
            if not blocks:
                raise SourceError("selector matched no elements")
        except FETCH_ERRORS as e:
            error = describe_error(e)
            logger.warning(f"Scrape of {self.url} failed: {error}")
            return SourceResult.failed(self.name, error)
        return SourceResult.success(self.name, blocks)


def build_scrape_source(
    url: str | None,
    *,
    selector: str = "h3.headline",
    limit: int = 5,
    timeout: float | None = None,
) -> ScrapeSource | StaticFixtureSource:
    if url:
        return ScrapeSource(url=url, selector=selector, limit=limit, timeout=timeout)
    return StaticFixtureSource("scrape", NO_SCRAPE_CONFIGURED)


def render_scraped(result: SourceResult) -> list[str]:
    if not result.ok or not result.items:
        return [SCRAPE_UNAVAILABLE]
    return [str(item) for item in result.items]
