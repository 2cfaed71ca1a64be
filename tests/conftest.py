"""
Pytest configuration and shared fixtures for brief tests.

Usage:
    @pytest.fixture functions are automatically available to all tests.
    Import helpers from conftest when needed.
"""
import os
from datetime import datetime, timezone
from typing import Any, Callable

import httpx
import pytest

from brief.config import Settings


# Fixed clock: 01:00 UTC is 12:00 in Sydney (AEDT, UTC+11) on the same date.
NOW = datetime(2026, 10, 19, 1, 0, tzinfo=timezone.utc)

# Path fragments of the upstream endpoints.
QUOTES = "/v3/quote/"
NEWS_A = "/top-headlines"
NEWS_B = "/v4/general_news"
CALENDAR = "/v3/economic_calendar"


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep the developer's environment out of Settings()."""
    for key in list(os.environ):
        if key.startswith("BRIEF_") or key in {"FMP_API_KEY", "NEWS_API_KEY"}:
            monkeypatch.delenv(key, raising=False)


# =============================================================================
# Settings Fixture
# =============================================================================

def make_settings(**overrides: Any) -> Settings:
    """
    Settings with test credentials and no .env file.

    Usage:
        settings = make_settings(BRIEF_SYMBOL_SET="classic")
    """
    values = {"FMP_API_KEY": "test_fmp_key", "NEWS_API_KEY": "test_news_key"}
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
def now() -> datetime:
    return NOW


# =============================================================================
# Mock upstreams
# =============================================================================

Route = Any  # JSON body | status code | exception class | callable(request) -> Response


def make_client(routes: dict[str, Route]) -> httpx.AsyncClient:
    """
    AsyncClient whose requests are answered from ``routes`` (path fragment -> answer).

    Unmatched paths get a 404. An exception class is raised as a transport
    error for that request.

    Usage:
        client = make_client({QUOTES: [...], NEWS_A: 503, NEWS_B: httpx.ConnectTimeout})
    """

    def handler(request: httpx.Request) -> httpx.Response:
        for fragment, answer in routes.items():
            if fragment not in request.url.path:
                continue
            if isinstance(answer, type) and issubclass(answer, Exception):
                raise answer("mock failure", request=request)
            if callable(answer):
                return answer(request)
            if isinstance(answer, int):
                return httpx.Response(answer, json={"error": "mock"})
            return httpx.Response(200, json=answer)
        return httpx.Response(404, json={"error": "not found"})

    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


@pytest.fixture
def client_factory() -> Callable[[dict[str, Route]], httpx.AsyncClient]:
    return make_client


# =============================================================================
# Sample payloads
# =============================================================================

def quote_row(symbol: str, price: Any = 100.0, change: Any = 0.5) -> dict:
    return {"symbol": symbol, "price": price, "changesPercentage": change}


def newsapi_payload(*titles: str, published: str = "2026-10-19T00:30:00Z") -> dict:
    return {
        "status": "ok",
        "totalResults": len(titles),
        "articles": [{"title": t, "publishedAt": published, "source": {"name": "Wire"}} for t in titles],
    }


def fmp_news_payload(*titles: str, published: str = "2026-10-19 00:15:00") -> list:
    return [{"title": t, "publishedDate": published, "site": "example.com"} for t in titles]


@pytest.fixture
def sample_calendar_rows() -> list[dict]:
    """Announcement an hour ago, one event later today and one tomorrow (Sydney)."""
    return [
        {"date": "2026-10-19 00:00:00", "country": "AU", "event": "Westpac Leading Index", "actual": 0.1},
        {"date": "2026-10-19 05:00:00", "country": "GB", "event": "Rightmove HPI", "actual": None},
        {"date": "2026-10-19 20:00:00", "country": "US", "event": "Building Permits", "actual": None},
    ]
