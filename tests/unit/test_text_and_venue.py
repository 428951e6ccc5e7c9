"""Tests for text cleanup and venue heuristics."""

import pytest

from event_scraper.utils.text import (
    absolute_url,
    clean_html_for_ai,
    clean_text,
    sanitize_url,
    strip_tags,
    truncate_section,
)
from event_scraper.utils.venue import (
    PageVenueExtractor,
    format_coordinates,
    merge_page_venue,
    parse_coordinates,
    split_location,
)


class TestText:
    def test_clean_text_strips_tags_and_entities(self):
        assert clean_text("<b>Rock &amp; Roll</b>\n  Night ") == "Rock & Roll Night"

    def test_clean_text_none(self):
        assert clean_text(None) == ""

    def test_strip_tags_keeps_line_breaks(self):
        assert strip_tags("<p>Doors 7pm<br>Show 8pm</p>") == "Doors 7pm\nShow 8pm"

    def test_clean_html_removes_scripts_styles_comments(self):
        markup = "<div><script>var x = 1;</script><style>.a{}</style><!-- note --><p>Show</p></div>"
        assert clean_html_for_ai(markup) == "<div><p>Show</p></div>"

    def test_truncate(self):
        assert truncate_section("x" * 60, max_length=50) == "x" * 50

    @pytest.mark.parametrize("url,expected", [
        ("https://tix.example.com/a", "https://tix.example.com/a"),
        ("tix.example.com/a", "https://tix.example.com/a"),
        ("//cdn.example.com/i.jpg", "https://cdn.example.com/i.jpg"),
        ("not a url", ""),
        ("", ""),
    ])
    def test_sanitize_url(self, url: str, expected: str):
        assert sanitize_url(url) == expected

    @pytest.mark.parametrize("href,expected", [
        ("/shows/1", "https://venue.example.com/shows/1"),
        ("detail", "https://venue.example.com/events/detail"),
        ("mailto:box@venue.example.com", ""),
        ("#top", ""),
    ])
    def test_absolute_url(self, href: str, expected: str):
        assert absolute_url(href, "https://venue.example.com/events/") == expected


class TestCoordinates:
    @pytest.mark.parametrize("value,expected", [
        ("39.66,-105.20", (39.66, -105.20)),
        ("91,0", None),
        ("0,181", None),
        ("abc,def", None),
        ("1,2,3", None),
        ("", None),
    ])
    def test_parse(self, value: str, expected):
        assert parse_coordinates(value) == expected

    def test_format_rejects_missing_half(self):
        assert format_coordinates(39.6, None) == ""
        assert format_coordinates(39.6, -105.2) == "39.6,-105.2"


class TestLocationSplit:
    @pytest.mark.parametrize("location,expected", [
        ("The Parish, 214 E 6th St, Austin", ("The Parish", "214 E 6th St, Austin")),
        ("The Parish", ("The Parish", "")),
        ("", ("", "")),
    ])
    def test_first_comma_splits(self, location: str, expected: tuple):
        assert split_location(location) == expected

    def test_merge_fills_only_blanks(self):
        merged = merge_page_venue(
            {"venue_name": "Stage", "venue_city": ""},
            {"venue_name": "Other", "venue_city": "Austin"},
        )
        assert merged == {"venue_name": "Stage", "venue_city": "Austin"}


class TestPageVenue:
    """Page-level venue details for single-venue sites."""

    PAGE = """
    <html><head><title>Upcoming Events | The Blue Door</title>
    <meta name="timezone" content="America/Chicago"></head>
    <body><main>Shows</main>
    <footer>The Blue Door<br>1200 Main Street<br>Dallas, TX 75201</footer>
    </body></html>
    """

    def test_name_skips_page_chrome(self):
        assert PageVenueExtractor().venue_name(self.PAGE) == "The Blue Door"

    def test_address_from_footer(self):
        venue = PageVenueExtractor().extract(self.PAGE)
        assert venue["venue_address"] == "1200 Main Street"
        assert venue["venue_city"] == "Dallas"
        assert venue["venue_state"] == "TX"
        assert venue["venue_zip"] == "75201"
        assert venue["venue_timezone"] == "America/Chicago"

    def test_squarespace_site_title_wins(self):
        page = '<script>Static.SQUARESPACE_CONTEXT = {"siteTitle": "Skylark Lounge", "timeZone": "America/Denver"};</script>'
        extractor = PageVenueExtractor()
        assert extractor.venue_name(page) == "Skylark Lounge"
        assert extractor.timezone(page) == "America/Denver"
