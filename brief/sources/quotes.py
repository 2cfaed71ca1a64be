"""
Quote fetcher (FMP batched quote endpoint) and the versioned symbol sets.

Endpoint: ``/api/v3/quote/{SYM1,SYM2,...}``

The result always carries one ``SymbolQuote`` per requested symbol, in
symbol-set order. Symbols the provider omitted (or sent garbage for) keep
``None`` fields and render as ``N/A``.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any
from urllib.parse import quote as url_quote

import httpx

from brief.config import FMP_BASE_URL
from brief.sources.base import FETCH_ERRORS, SourceError, SourceResult, describe_error, get_json
from brief.utils.extract import index_by, optional_number
from brief.utils.formatting import fmt_percent, fmt_price

logger = logging.getLogger(__name__)

INDICES = "Indices"
CURRENCIES = "Currencies"
OTHER_MARKETS = "Other Markets ($USD)"
SECTION_ORDER = (INDICES, CURRENCIES, OTHER_MARKETS)


@dataclass(frozen=True)
class SymbolSpec:
    symbol: str
    display_name: str
    section: str
    price_style: str = "grouped"  # "grouped" | "fixed:<places>"


@dataclass(frozen=True)
class SymbolQuote:
    symbol: str
    display_name: str | None = None
    price: float | None = None
    change_percent: float | None = None


_CLASSIC: tuple[SymbolSpec, ...] = (
    SymbolSpec("NDAQ", "US Nasdaq", INDICES),
    SymbolSpec("^GSPC", "US S&P 500", INDICES),
    SymbolSpec("^DJI", "US Dow Jones", INDICES),
    SymbolSpec("^FTSE", "UK FTSE 100", INDICES),
    SymbolSpec("EURUSD", "EUR/USD", CURRENCIES, "fixed:4"),
    SymbolSpec("AUDUSD", "AUD/USD", CURRENCIES, "fixed:4"),
    SymbolSpec("USDJPY", "USD/JPY", CURRENCIES, "fixed:2"),
    SymbolSpec("GBPUSD", "GBP/USD", CURRENCIES, "fixed:4"),
    SymbolSpec("BTCUSD", "Bitcoin", OTHER_MARKETS),
    SymbolSpec("GCUSD", "Gold", OTHER_MARKETS),
    SymbolSpec("CLUSD", "WTI Oil", OTHER_MARKETS),
    SymbolSpec("^VIX", "VIX", OTHER_MARKETS, "fixed:2"),
)

_DEFAULT: tuple[SymbolSpec, ...] = (
    SymbolSpec("NDAQ", "US Nasdaq", INDICES),
    SymbolSpec("^GSPC", "US S&P 500", INDICES),
    SymbolSpec("^DJI", "US Dow Jones", INDICES),
    SymbolSpec("^FTSE", "UK FTSE 100", INDICES),
    SymbolSpec("^AXJO", "AU ASX 200", INDICES),
    SymbolSpec("EURUSD", "EUR/USD", CURRENCIES, "fixed:4"),
    SymbolSpec("AUDUSD", "AUD/USD", CURRENCIES, "fixed:4"),
    SymbolSpec("USDJPY", "USD/JPY", CURRENCIES, "fixed:2"),
    SymbolSpec("GBPUSD", "GBP/USD", CURRENCIES, "fixed:4"),
    SymbolSpec("BTCUSD", "Bitcoin", OTHER_MARKETS),
    SymbolSpec("ETHUSD", "Ethereum", OTHER_MARKETS),
    SymbolSpec("GCUSD", "Gold", OTHER_MARKETS),
    SymbolSpec("CLUSD", "WTI Oil", OTHER_MARKETS),
    SymbolSpec("^VIX", "VIX", OTHER_MARKETS, "fixed:2"),
)

SYMBOL_SETS: dict[str, tuple[SymbolSpec, ...]] = {
    "default": _DEFAULT,
    "classic": _CLASSIC,
}
DEFAULT_SYMBOL_SET = "default"


def resolve_symbol_set(name: str | None) -> tuple[SymbolSpec, ...]:
    """Symbol set by name; unknown names fall back to the default set."""
    key = (name or DEFAULT_SYMBOL_SET).strip().lower()
    if key not in SYMBOL_SETS:
        logger.warning(f"Unknown symbol set '{name}', using '{DEFAULT_SYMBOL_SET}'")
        key = DEFAULT_SYMBOL_SET
    return SYMBOL_SETS[key]


def parse_quotes(payload: Any, specs: tuple[SymbolSpec, ...]) -> list[SymbolQuote]:
    """One quote per spec from a raw provider payload. Never raises."""
    by_symbol = index_by(payload, "symbol")
    out: list[SymbolQuote] = []
    for spec in specs:
        key = spec.symbol.upper()
        change = optional_number(by_symbol, key, "changesPercentage")
        if change is None:
            # FMP has shipped both spellings.
            change = optional_number(by_symbol, key, "changePercentage")
        out.append(
            SymbolQuote(
                symbol=spec.symbol,
                display_name=spec.display_name,
                price=optional_number(by_symbol, key, "price"),
                change_percent=change,
            )
        )
    return out


def empty_quotes(specs: tuple[SymbolSpec, ...]) -> list[SymbolQuote]:
    return [SymbolQuote(symbol=s.symbol, display_name=s.display_name) for s in specs]


def render_quote_line(spec: SymbolSpec, q: SymbolQuote | None) -> str:
    price = q.price if q else None
    change = q.change_percent if q else None
    return f"- {spec.display_name}: {fmt_percent(change)}, Last: {fmt_price(price, spec.price_style)}"


def render_market_sections(
    quotes: list[SymbolQuote] | tuple[SymbolQuote, ...],
    specs: tuple[SymbolSpec, ...],
) -> dict[str, list[str]]:
    """Ordered section name -> display lines. Every spec gets a line."""
    by_symbol = {q.symbol: q for q in quotes if isinstance(q, SymbolQuote)}
    sections: dict[str, list[str]] = {}
    for name in SECTION_ORDER:
        members = [s for s in specs if s.section == name]
        if members:
            sections[name] = [render_quote_line(s, by_symbol.get(s.symbol)) for s in members]
    # Sections outside the standard order keep first-seen order after it.
    for s in specs:
        if s.section not in SECTION_ORDER:
            sections.setdefault(s.section, []).append(render_quote_line(s, by_symbol.get(s.symbol)))
    return sections


class QuoteSource:
    """Batched quote request for a whole symbol set."""

    name = "quotes"

    def __init__(
        self,
        *,
        api_key: str | None,
        specs: tuple[SymbolSpec, ...],
        timeout: float | None = None,
        base_url: str = FMP_BASE_URL,
    ) -> None:
        self.api_key = api_key
        self.specs = specs
        self.timeout = timeout
        self.base_url = base_url

    async def fetch(self, client: httpx.AsyncClient) -> SourceResult:
        try:
            if not self.api_key:
                raise SourceError("missing FMP_API_KEY")
            symbols = ",".join(url_quote(s.symbol, safe="") for s in self.specs)
            payload = await get_json(
                client,
                f"{self.base_url}/v3/quote/{symbols}",
                params={"apikey": self.api_key},
                timeout=self.timeout,
            )
        except FETCH_ERRORS as e:
            error = describe_error(e)
            logger.warning(f"Quote fetch failed: {error}")
            return SourceResult.failed(self.name, error, empty_quotes(self.specs))

        if not isinstance(payload, list):
            logger.warning(f"Quote payload is {type(payload).__name__}, not a list; rendering N/A")
        quotes = parse_quotes(payload, self.specs)
        missing = [q.symbol for q in quotes if q.price is None]
        if missing:
            logger.info(f"Quotes missing price for {len(missing)} symbol(s): {', '.join(missing)}")
        return SourceResult.success(self.name, quotes)
