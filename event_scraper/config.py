"""Scraper configuration for one source."""

import os
from typing import Optional

from pydantic import BaseModel, Field

ENV_PREFIX = "EVENT_SCRAPER_"

DEFAULT_MAX_PAGES = 20
DEFAULT_TIMEOUT = 30.0


class ScraperConfigError(ValueError):
    """Configuration that makes a pull impossible (e.g. no source URL)."""


class ScraperConfig(BaseModel):
    """Per-source settings.

    search and exclude_keywords are comma-separated, case-insensitive terms
    matched against title and description. venue is an id resolved through a
    VenueResolver; the venue_* fields are literal overrides used when no id
    is given.
    """

    source_url: str = ""
    search: str = ""
    exclude_keywords: str = ""

    venue: Optional[str] = None
    venue_name: str = ""
    venue_address: str = ""
    venue_city: str = ""
    venue_state: str = ""
    venue_zip: str = ""
    venue_country: str = ""
    venue_phone: str = ""
    venue_website: str = ""

    skip_title_keywords: list[str] = Field(default_factory=lambda: ["closed"])
    max_pages: int = DEFAULT_MAX_PAGES
    timeout: float = DEFAULT_TIMEOUT

    class Config:
        extra = "ignore"

    def require_source_url(self) -> str:
        url = self.source_url.strip()
        if not url:
            raise ScraperConfigError("No source URL configured")
        return url

    @classmethod
    def from_env(cls, **overrides) -> "ScraperConfig":
        """Build from EVENT_SCRAPER_* variables; explicit overrides win."""
        values: dict = {}
        for name in cls.model_fields:
            raw = os.getenv(ENV_PREFIX + name.upper())
            if raw is None:
                continue
            if name == "skip_title_keywords":
                values[name] = [k.strip() for k in raw.split(",") if k.strip()]
            else:
                values[name] = raw
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls.model_validate(values)
