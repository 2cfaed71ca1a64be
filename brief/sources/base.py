"""
Source contract and the settle-all join shared by every fetcher.

A source is anything with a ``name`` and an ``async fetch(client)`` that
returns a ``SourceResult``. Fetchers convert their own failures into a failed
result; ``settle_all`` is the backstop for anything that still escapes.
"""
from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import Any, Protocol

import httpx

logger = logging.getLogger(__name__)


class SourceError(Exception):
    """An upstream answered, but not with anything we can use (or we could not ask it)."""


# Errors a fetcher turns into a failed result. ValueError covers bad JSON bodies.
FETCH_ERRORS = (httpx.HTTPError, SourceError, ValueError)


@dataclass(frozen=True)
class SourceResult:
    """Outcome of one source for one invocation."""

    source: str
    items: tuple[Any, ...] = ()
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, source: str, items: Iterable[Any]) -> "SourceResult":
        return cls(source=source, items=tuple(items))

    @classmethod
    def failed(cls, source: str, error: str, items: Iterable[Any] = ()) -> "SourceResult":
        return cls(source=source, items=tuple(items), error=error or "unknown error")


class Source(Protocol):
    name: str

    async def fetch(self, client: httpx.AsyncClient) -> SourceResult:
        ...


async def get_json(
    client: httpx.AsyncClient,
    url: str,
    *,
    params: dict[str, Any] | None = None,
    timeout: float | None = None,
) -> Any:
    """GET ``url`` and decode the JSON body. Non-2xx raises ``httpx.HTTPStatusError``."""
    kwargs: dict[str, Any] = {"params": params}
    if timeout is not None:
        kwargs["timeout"] = timeout
    resp = await client.get(url, **kwargs)
    resp.raise_for_status()
    return resp.json()


def describe_error(exc: BaseException) -> str:
    """Short, key-free description of a fetch failure."""
    if isinstance(exc, httpx.HTTPStatusError):
        return f"HTTP {exc.response.status_code}"
    if isinstance(exc, httpx.TimeoutException):
        return "timed out"
    if isinstance(exc, httpx.HTTPError):
        return f"{type(exc).__name__}"
    return str(exc) or type(exc).__name__


class StaticFixtureSource:
    """A source that always succeeds with constant items."""

    def __init__(self, name: str, items: Sequence[Any]) -> None:
        self.name = name
        self.items = tuple(items)

    async def fetch(self, client: httpx.AsyncClient) -> SourceResult:
        return SourceResult.success(self.name, self.items)


async def settle_all(sources: Sequence[Source], client: httpx.AsyncClient) -> dict[str, SourceResult]:
    """
    Run every source concurrently and wait for all of them to settle.

    One source raising or timing out never cancels its siblings: whatever
    escapes a fetcher becomes that source's failed result.
    """
    outcomes = await asyncio.gather(*(s.fetch(client) for s in sources), return_exceptions=True)
    settled: dict[str, SourceResult] = {}
    for source, outcome in zip(sources, outcomes):
        if isinstance(outcome, SourceResult):
            settled[source.name] = outcome
            continue
        if isinstance(outcome, BaseException) and not isinstance(outcome, Exception):
            # KeyboardInterrupt / CancelledError belong to the caller.
            raise outcome
        logger.warning(f"Source '{source.name}' escaped its fetch boundary: {outcome!r}")
        error = describe_error(outcome) if isinstance(outcome, Exception) else "unexpected result type"
        settled[source.name] = SourceResult.failed(source.name, error)
    return settled
