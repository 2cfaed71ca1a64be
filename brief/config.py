from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

FMP_BASE_URL = "https://financialmodelingprep.com/api"
NEWS_API_BASE_URL = "https://newsapi.org/v2"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Provider credentials. Missing keys degrade the matching section to a placeholder.
    FMP_API_KEY: str | None = None
    NEWS_API_KEY: str | None = None

    BRIEF_SYMBOL_SET: str = "default"
    # Same bounds as the per-request override.
    BRIEF_FRESHNESS_WINDOW_HOURS: float = Field(default=4.0, gt=0, le=24 * 365, allow_inf_nan=False)
    BRIEF_PROVIDER_HEADLINE_LIMIT: int = 5
    BRIEF_HEADLINE_CAP: int = 8

    # Calendar window bridges the provider's UTC clock and the display zone.
    BRIEF_DISPLAY_TIMEZONE: str = "Australia/Sydney"
    BRIEF_CALENDAR_LOOKBACK_HOURS: float = 15.0
    BRIEF_CALENDAR_LOOKAHEAD_HOURS: float = 24.0
    BRIEF_ANNOUNCEMENT_LIMIT: int = 5

    BRIEF_REQUEST_TIMEOUT_SECONDS: float = 10.0

    # Optional page scrape; unset means the static fixture serves the section.
    BRIEF_SCRAPE_URL: str | None = None
    BRIEF_SCRAPE_SELECTOR: str = "h3.headline"
    BRIEF_SCRAPE_LIMIT: int = 5

    BRIEF_LOG_LEVEL: str = "INFO"

    # snake_case accessors used across the codebase.
    @property
    def fmp_api_key(self) -> str | None:
        return self.FMP_API_KEY

    @property
    def news_api_key(self) -> str | None:
        return self.NEWS_API_KEY

    @property
    def symbol_set(self) -> str:
        return (self.BRIEF_SYMBOL_SET or "default").strip().lower()

    @property
    def freshness_window_hours(self) -> float:
        return float(self.BRIEF_FRESHNESS_WINDOW_HOURS)

    @property
    def provider_headline_limit(self) -> int:
        return max(0, int(self.BRIEF_PROVIDER_HEADLINE_LIMIT))

    @property
    def headline_cap(self) -> int:
        return max(1, int(self.BRIEF_HEADLINE_CAP))

    @property
    def display_timezone(self) -> str:
        return self.BRIEF_DISPLAY_TIMEZONE

    @property
    def calendar_lookback_hours(self) -> float:
        return float(self.BRIEF_CALENDAR_LOOKBACK_HOURS)

    @property
    def calendar_lookahead_hours(self) -> float:
        return float(self.BRIEF_CALENDAR_LOOKAHEAD_HOURS)

    @property
    def announcement_limit(self) -> int:
        return max(0, int(self.BRIEF_ANNOUNCEMENT_LIMIT))

    @property
    def request_timeout_seconds(self) -> float:
        return float(self.BRIEF_REQUEST_TIMEOUT_SECONDS)

    @property
    def scrape_url(self) -> str | None:
        return (self.BRIEF_SCRAPE_URL or "").strip() or None

    @property
    def scrape_selector(self) -> str:
        return self.BRIEF_SCRAPE_SELECTOR

    @property
    def scrape_limit(self) -> int:
        return max(1, int(self.BRIEF_SCRAPE_LIMIT))

    @property
    def log_level(self) -> str:
        return (self.BRIEF_LOG_LEVEL or "INFO").strip().upper()

    def with_overrides(self, options: "InvocationOptions") -> "Settings":
        """Copy of these settings with the per-request options applied."""
        update: dict[str, object] = {}
        if options.symbol_set is not None:
            update["BRIEF_SYMBOL_SET"] = options.symbol_set
        if options.freshness_window_hours is not None:
            update["BRIEF_FRESHNESS_WINDOW_HOURS"] = options.freshness_window_hours
        return self.model_copy(update=update) if update else self


class InvocationOptions(BaseModel):
    """Optional per-request overrides (query string or CLI flags)."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    symbol_set: str | None = Field(default=None, alias="symbolSet")
    # Bounded so the cutoff timestamp stays representable.
    freshness_window_hours: float | None = Field(
        default=None, alias="freshnessWindowHours", gt=0, le=24 * 365, allow_inf_nan=False
    )


def load_settings() -> Settings:
    return Settings()
