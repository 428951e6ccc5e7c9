"""Format extractors: page or feed content → NormalizedEvent records.

Each extractor recognizes one embedded data shape:
- Platform feeds (AEG/AXS, Freshtix, Firebase, DoStuff, Wix, Squarespace)
- Schema.org JSON-LD and microdata
- Calendar feeds (raw ICS, embedded Google Calendar)
- WordPress event plugins (The Events Calendar REST API, RHP Events)
- Venue-specific listing markup (Red Rocks, music__item templates, OpenDate)

The registry probes them in a fixed priority order.
"""

from event_scraper.extractors.base import FormatExtractor
from event_scraper.extractors.registry import ExtractorRegistry, default_extractors

__all__ = [
    "FormatExtractor",
    "ExtractorRegistry",
    "default_extractors",
]
