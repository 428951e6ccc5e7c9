"""Venue heuristics: page-level venue details, coordinates and location strings."""

import re
from typing import Optional

from bs4 import BeautifulSoup

from event_scraper.utils.text import clean_text, strip_tags

US_STATES = (
    "AL|AK|AZ|AR|CA|CO|CT|DE|FL|GA|HI|ID|IL|IN|IA|KS|KY|LA|ME|MD|MA|MI|MN|MS|MO|MT|"
    "NE|NV|NH|NJ|NM|NY|NC|ND|OH|OK|OR|PA|RI|SC|SD|TN|TX|UT|VT|VA|WA|WV|WI|WY"
)

# Words that mark a <title> segment as page chrome rather than a venue name
TITLE_FILTER_WORDS = [
    "events",
    "calendar",
    "shows",
    "upcoming events",
    "concerts",
    "schedule",
    "tickets",
    "reservations",
    "live music",
    "event calendar",
    "upcoming",
]
TITLE_SEPARATORS = [" — ", " – ", " - ", " | ", ": ", " · "]
GENERIC_TITLES = {"home", "welcome", "index"}

CITY_STATE_ZIP_RE = re.compile(
    rf"([A-Z][a-z]+(?:[ ][A-Z][a-z]+)*),?\s+({US_STATES})\s+(\d{{5}}(?:-\d{{4}})?)",
    re.M,
)
STREET_RE = re.compile(
    r"(\d+[ ]+[A-Za-z0-9. ]+(?:Street|St|Avenue|Ave|Road|Rd|Drive|Dr|Boulevard|Blvd|Lane|Ln|"
    r"Way|Court|Ct|Circle|Cir|Highway|Hwy|Pkwy|Parkway|Plaza|Pl|Square|Sq|Trail|Trl|Loop|Broadway)[.]?)",
    re.I,
)
LOOSE_STREET_RE = re.compile(r"(\d{1,5}\s+[A-Z][A-Za-z0-9\s]{5,50})", re.M)
TIME_LIKE_RE = re.compile(r"\d+\s*(?:am|pm)", re.I)

SQUARESPACE_SITE_TITLE_RE = re.compile(
    r'Static\.SQUARESPACE_CONTEXT\s*=\s*\{[^}]*"siteTitle"\s*:\s*"([^"]+)"', re.S
)
SQUARESPACE_TZ_RE = re.compile(
    r'Static\.SQUARESPACE_CONTEXT\s*=\s*\{[^}]*"timeZone"\s*:\s*"([^"]+)"', re.S
)
JSON_TZ_RE = re.compile(r'"timezone"\s*:\s*"([^"]+)"', re.I)


def parse_coordinates(value: Optional[str]) -> Optional[tuple[float, float]]:
    """Parse "lat,lng" into floats, rejecting out-of-range values."""
    if not value:
        return None
    parts = [p.strip() for p in str(value).split(",")]
    if len(parts) != 2:
        return None
    try:
        lat, lng = float(parts[0]), float(parts[1])
    except ValueError:
        return None
    if not (-90 <= lat <= 90 and -180 <= lng <= 180):
        return None
    return lat, lng


def format_coordinates(lat: object, lng: object) -> str:
    """Join a lat/lng pair as "lat,lng" when both are valid numbers."""
    if lat in (None, "") or lng in (None, ""):
        return ""
    coords = parse_coordinates(f"{lat},{lng}")
    if coords is None:
        return ""
    return f"{lat},{lng}"


def split_location(location: Optional[str]) -> tuple[str, str]:
    """Split "Venue, 123 Main St, City" on the first comma into (venue, address)."""
    location = clean_text(location)
    if not location:
        return "", ""
    if "," not in location:
        return location, ""
    venue, address = location.split(",", 1)
    return venue.strip(), address.strip()


class PageVenueExtractor:
    """Best-effort venue details for single-venue sites.

    Used when a calendar feed carries event times but no location: the page
    hosting the calendar usually names the venue in its <title> and prints
    the address in a footer or announcement bar.
    """

    def extract(self, html: str) -> dict[str, str]:
        """Venue fields keyed like NormalizedEvent attributes."""
        venue = {
            "venue_name": self.venue_name(html),
            "venue_address": "",
            "venue_city": "",
            "venue_state": "",
            "venue_zip": "",
            "venue_country": "US",
            "venue_timezone": self.timezone(html),
        }
        venue.update(self.address(html))
        return venue

    def venue_name(self, html: str) -> str:
        match = SQUARESPACE_SITE_TITLE_RE.search(html)
        if match:
            return clean_text(match.group(1))

        soup = BeautifulSoup(html, "lxml")
        if not soup.title or not soup.title.string:
            return ""
        title = clean_text(soup.title.string)

        for sep in TITLE_SEPARATORS:
            if sep not in title:
                continue
            candidate = ""
            for part in title.split(sep):
                part = part.strip()
                lower = part.lower()
                if not part:
                    continue
                if any(word in lower for word in TITLE_FILTER_WORDS):
                    continue
                if lower in GENERIC_TITLES:
                    continue
                candidate = part
            if candidate:
                return candidate
        return title

    def timezone(self, html: str) -> str:
        match = SQUARESPACE_TZ_RE.search(html)
        if match:
            return match.group(1)

        match = JSON_TZ_RE.search(html)
        if match and "/" in match.group(1):
            return match.group(1)

        soup = BeautifulSoup(html, "lxml")
        meta = soup.find("meta", attrs={"name": "timezone"})
        if meta and meta.get("content"):
            return meta["content"].strip()
        return ""

    def address(self, html: str) -> dict[str, str]:
        """Street, city, state and ZIP from the most address-like region."""
        soup = BeautifulSoup(html, "lxml")
        found: dict[str, str] = {}

        for region in self._candidate_regions(soup):
            text = strip_tags(str(region))
            csz = self.city_state_zip(text)
            if not csz:
                continue
            found = dict(csz)
            found["venue_address"] = self.street_address(text)
            if found["venue_address"]:
                return found
        return found

    def _candidate_regions(self, soup: BeautifulSoup) -> list:
        regions = []
        bar = soup.find(class_=re.compile(r"sqs-announcement-bar"))
        if bar:
            regions.append(bar)
        footer = (
            soup.find("footer")
            or soup.find(id="footer-sections")
            or soup.find("section", id=re.compile("footer"))
            or soup.find("div", class_=re.compile("footer"))
        )
        if footer:
            regions.append(footer)
        if soup.body:
            regions.append(soup.body)
        return regions

    @staticmethod
    def city_state_zip(text: str) -> dict[str, str]:
        match = CITY_STATE_ZIP_RE.search(text)
        if not match:
            return {}
        return {
            "venue_city": match.group(1).strip(),
            "venue_state": match.group(2).upper(),
            "venue_zip": match.group(3),
        }

    @staticmethod
    def street_address(text: str) -> str:
        match = STREET_RE.search(text)
        if match:
            return clean_text(match.group(1))
        match = LOOSE_STREET_RE.search(text)
        if match:
            potential = match.group(1).strip()
            if not TIME_LIKE_RE.search(potential):
                return clean_text(potential)
        return ""


def merge_page_venue(event_fields: dict, page_venue: dict) -> dict:
    """Fill blank venue fields of an event from page-level venue data."""
    merged = dict(event_fields)
    for key, value in page_venue.items():
        if value and not merged.get(key):
            merged[key] = value
    return merged
