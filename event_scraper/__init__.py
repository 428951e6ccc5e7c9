"""Structured event extraction and pagination for venue and calendar pages."""

from event_scraper.config import ScraperConfig, ScraperConfigError
from event_scraper.models import EventPacket, NormalizedEvent
from event_scraper.scraper import UniversalScraper

__all__ = [
    "ScraperConfig",
    "ScraperConfigError",
    "EventPacket",
    "NormalizedEvent",
    "UniversalScraper",
]
