"""Data models for the event scraper."""

from event_scraper.models.event import (
    EventPacket,
    ExtractionResult,
    NormalizedEvent,
    import_timestamp,
)

__all__ = [
    "EventPacket",
    "ExtractionResult",
    "NormalizedEvent",
    "import_timestamp",
]
