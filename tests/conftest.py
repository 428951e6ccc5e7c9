"""Shared test fixtures and configuration."""

from datetime import date, timedelta
from typing import Optional, Union

import pytest

from event_scraper.config import ScraperConfig
from event_scraper.fetch import FetchResult
from event_scraper.processing.ledger import MemoryLedger


class FakeHttpClient:
    """Serves canned bodies by URL; unknown URLs answer 404.

    A page may be a body string or an int status code. Every request is
    recorded in `requests` as (url, browser_mode).
    """

    def __init__(self, pages: Optional[dict[str, Union[str, int]]] = None):
        self.pages = dict(pages or {})
        self.requests: list[tuple[str, bool]] = []

    def get(self, url, timeout=30.0, headers=None, browser_mode=False) -> FetchResult:
        self.requests.append((url, browser_mode))
        page = self.pages.get(url, 404)
        if isinstance(page, int):
            return FetchResult(False, status_code=page, error=str(page))
        return FetchResult(True, status_code=200, body=page)

    @property
    def urls(self) -> list[str]:
        return [url for url, _ in self.requests]

    def close(self) -> None:
        pass


@pytest.fixture
def fake_client() -> FakeHttpClient:
    return FakeHttpClient()


@pytest.fixture
def make_client():
    """Factory for a FakeHttpClient preloaded with pages."""
    def _make(pages: Optional[dict[str, Union[str, int]]] = None) -> FakeHttpClient:
        return FakeHttpClient(pages)
    return _make


@pytest.fixture
def ledger() -> MemoryLedger:
    return MemoryLedger()


@pytest.fixture
def config() -> ScraperConfig:
    return ScraperConfig(source_url="https://venue.example.com/events")


@pytest.fixture
def future_day() -> str:
    """A date comfortably in the future, as YYYY-MM-DD."""
    return (date.today() + timedelta(days=30)).isoformat()


@pytest.fixture
def past_day() -> str:
    return (date.today() - timedelta(days=30)).isoformat()
