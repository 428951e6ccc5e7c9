"""Tests for listing-markup extractors and the extractor registry."""

import json

import pytest

from event_scraper.extractors import ExtractorRegistry, default_extractors
from event_scraper.extractors.music_item import MusicItemExtractor
from event_scraper.extractors.rhp_events import RhpEventsExtractor
from event_scraper.models import NormalizedEvent
from event_scraper.utils.dates import parse_month_day, today

SOURCE = "https://venue.example.com/events"

RHP_PAGE = """
<html><body>
<div class="rhp-events-list-separator-month"><span>June 2030</span></div>
<div class="rhpSingleEvent rhp-event__single-event--list">
  <div class="eventTitleDiv"><a href="/event/the-districts/"><h2 class="rhp-event__title--list">The Districts</h2></a></div>
  <div class="singleEventDate">Sat, Jun 14</div>
  <span class="rhp-event__time-text--list">Doors: 7 pm // Show: 8 pm</span>
  <div class="eventTagLine">Cat's Cradle</div>
  <span class="rhp-event__cost-text--list">$20 ADV / $25 DOS</span>
  <img class="eventListImage" src="https://venue.example.com/d.jpg">
  <div class="rhp-event-cta"><a href="https://www.etix.com/ticket/p/123">Buy Tickets</a></div>
  <span class="rhp-event__age-restriction">18+</span>
</div>
</body></html>
"""


class TestRhpEvents:
    def test_list_view(self):
        extractor = RhpEventsExtractor()
        assert extractor.can_handle(RHP_PAGE)
        event = extractor.extract(RHP_PAGE, SOURCE)[0]
        assert event.title == "The Districts"
        assert event.start_date == "2030-06-14"
        assert (event.doors_time, event.start_time) == ("19:00", "20:00")
        assert event.venue_name == "Cat's Cradle"
        assert event.price == "$20"
        assert event.ticket_url == "https://www.etix.com/ticket/p/123"
        assert event.source_url == "https://venue.example.com/event/the-districts/"
        assert event.age_restriction == "18+"

    @pytest.mark.parametrize("value,expected", [
        ("7", "7:00"),
        ("7:30", "7:30"),
        ("8 pm", "8 pm"),
    ])
    def test_bare_hours_get_minutes(self, value: str, expected: str):
        assert RhpEventsExtractor._with_minutes(value) == expected


MUSIC_ITEM_PAGE = """
<html><head><title>Music | The Saxon Pub</title></head><body>
<div class="music__item">
  <div class="music__artist">Bob Schneider</div>
  <div class="music__date">Fri, Dec 26 <span class="music__time">8-11</span></div>
  <div class="music__description">Weekly residency</div>
  <div class="music__image"><img src="/img/bob.jpg"></div>
</div>
<footer>1320 S Lamar Blvd<br>Austin, TX 78704</footer>
</body></html>
"""


class TestMusicItem:
    def test_item_with_page_venue(self):
        extractor = MusicItemExtractor()
        assert extractor.can_handle(MUSIC_ITEM_PAGE)
        event = extractor.extract(MUSIC_ITEM_PAGE, SOURCE)[0]
        assert event.title == "Bob Schneider"
        assert event.start_date == parse_month_day("Dec 26", year=today().year).isoformat()
        # "8-11" is an evening range
        assert (event.start_time, event.end_time) == ("20:00", "23:00")
        assert event.image_url == "https://venue.example.com/img/bob.jpg"
        assert event.venue_name == "The Saxon Pub"
        assert event.venue_address == "1320 S Lamar Blvd"
        assert event.venue_city == "Austin"


BOTH_FORMATS_PAGE = """
<html><head><script type="application/ld+json">{"@type": "Event", "name": "From JSON-LD",
  "startDate": "2030-01-05T20:00:00"}</script></head>
<body><div itemscope itemtype="https://schema.org/Event">
  <span itemprop="name">From Microdata</span>
  <meta itemprop="startDate" content="2030-01-05T20:00:00">
</div></body></html>
"""


class ExplodingExtractor:
    def identifier(self) -> str:
        return "exploding"

    def can_handle(self, content: str) -> bool:
        return True

    def extract(self, content: str, source_url: str) -> list[NormalizedEvent]:
        raise KeyError("title")


class EmptyExtractor(ExplodingExtractor):
    def identifier(self) -> str:
        return "empty"

    def extract(self, content: str, source_url: str) -> list[NormalizedEvent]:
        return []


class TestRegistry:
    """Priority order and failure isolation."""

    def test_default_order(self, fake_client):
        assert ExtractorRegistry.default(fake_client).identifiers() == [
            "aeg_axs",
            "red_rocks",
            "freshtix",
            "firebase",
            "embedded_calendar",
            "squarespace",
            "jsonld",
            "wordpress",
            "wix_events",
            "rhp_events",
            "opendate",
            "microdata",
            "dostuff_media_api",
            "music_item",
            "ics_feed",
        ]

    def test_jsonld_beats_microdata(self, fake_client):
        registry = ExtractorRegistry.default(fake_client)
        result = registry.first_match(BOTH_FORMATS_PAGE, SOURCE)
        assert result.method == "jsonld"
        assert result.events[0].title == "From JSON-LD"
        assert [r.method for r in registry.iter_results(BOTH_FORMATS_PAGE, SOURCE)] == ["jsonld", "microdata"]

    def test_failing_and_empty_extractors_are_skipped(self, fake_client):
        registry = ExtractorRegistry([ExplodingExtractor(), EmptyExtractor(), *default_extractors(fake_client)])
        assert registry.first_match(BOTH_FORMATS_PAGE, SOURCE).method == "jsonld"

    def test_no_match(self, fake_client):
        assert ExtractorRegistry.default(fake_client).first_match("<html><p>nothing</p></html>", SOURCE) is None

    def test_lookup(self, fake_client):
        registry = ExtractorRegistry.default(fake_client)
        assert registry.get("ics_feed").identifier() == "ics_feed"
        assert registry.get("missing") is None

    def test_json_feed_goes_to_its_extractor(self, fake_client):
        feed = json.dumps({"event_groups": [{"events": [{"title": "Show", "begin_time": "2030-01-01T20:00:00"}]}]})
        assert ExtractorRegistry.default(fake_client).first_match(feed, SOURCE).method == "dostuff_media_api"
