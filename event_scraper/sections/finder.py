"""Fallback locator for one unprocessed event section in arbitrary markup.

Used only when no format extractor recognizes a page. The section is handed
on as cleaned HTML for downstream interpretation; nothing here tries to read
event fields out of it.
"""

import base64
import binascii
import hashlib
import html as html_lib
import json
import re
from dataclasses import dataclass
from typing import Callable, Optional, Sequence

import lxml.html
from lxml import etree
from rich.console import Console

from event_scraper.sections.selectors import SECTION_RULES, SectionRule
from event_scraper.utils.dates import is_past_date, parse_loose_date
from event_scraper.utils.text import clean_html_for_ai

console = Console()

SKIPPED_TAGS = {"body", "header", "footer", "nav", "aside", "main"}
MIN_RAW_LENGTH = 50
MIN_CLEANED_LENGTH = 30

DATE_CELL = './/td[contains(@class, "event-date")]'
ROW_DATE_QUERIES = [
    f"{DATE_CELL}//time/@datetime",
    f"{DATE_CELL}//time",
    f'{DATE_CELL}//span[contains(@class, "date")]',
    DATE_CELL,
]


def md5(value: str) -> str:
    return hashlib.md5(value.encode("utf-8")).hexdigest()


@dataclass
class EventSection:
    html: str
    raw_html: str
    identifier: str
    selector: str
    url: str


def decode_calendar_event(node) -> Optional[dict]:
    """The JSON event behind a data-calendar-event attribute, if complete."""
    encoded = node.get("data-calendar-event")
    if not encoded:
        return None
    try:
        decoded = base64.b64decode(encoded, validate=True)
        data = json.loads(decoded)
    except (binascii.Error, ValueError):
        return None
    if not isinstance(data, dict) or not data.get("summary") or not data.get("start"):
        return None
    return data


def row_date_text(row) -> Optional[str]:
    """Date text from a row's event-date cell, most precise source first."""
    for query in ROW_DATE_QUERIES:
        found = row.xpath(query)
        if not found:
            continue
        first = found[0]
        value = str(first) if isinstance(first, str) else first.text_content()
        value = value.strip()
        return value or None
    return None


def row_date(date_text: str) -> Optional[str]:
    text = re.sub(r"\s+", " ", html_lib.unescape(date_text)).strip()
    # "Fri, Jan 9 @ 8:00 pm"
    text = re.sub(r"\s*@\s*.*$", "", text)
    return parse_loose_date(text) if text else None


def is_header_row(row) -> bool:
    return bool(row.xpath(".//th")) and not row.xpath(".//td")


class EventSectionFinder:
    """Walks the rules in order and returns the first eligible node.

    is_processed receives a section identifier and reports whether it was
    already emitted; is_past receives a YYYY-MM-DD string.
    """

    def __init__(
        self,
        is_processed: Callable[[str], bool],
        is_past: Callable[[str], bool] = is_past_date,
        rules: Sequence[SectionRule] = SECTION_RULES,
    ):
        self.is_processed = is_processed
        self.is_past = is_past
        self.rules = list(rules)

    def find_first_eligible_section(self, content: str, url: str) -> Optional[EventSection]:
        if not content or not content.strip():
            return None
        try:
            root = lxml.html.document_fromstring(content)
        except (etree.ParserError, ValueError) as e:
            console.print(f"[dim]Section finder could not parse {url}: {e}[/dim]")
            return None

        for rule in self.rules:
            try:
                nodes = root.xpath(rule.xpath)
            except etree.XPathError as e:
                console.print(f"[yellow]Bad section rule {rule.xpath!r}: {e}[/yellow]")
                continue
            for node in nodes:
                if not isinstance(node.tag, str) or node.tag.lower() in SKIPPED_TAGS:
                    continue
                if rule.base64_event:
                    section = self._calendar_section(node, rule, url)
                else:
                    section = self._markup_section(node, rule, url)
                if section is not None:
                    return section
        return None

    def _calendar_section(self, node, rule: SectionRule, url: str) -> Optional[EventSection]:
        data = decode_calendar_event(node)
        if data is None:
            return None
        summary = str(data["summary"])
        if summary.strip().lower() == "closed":
            return None

        start = str(data["start"])
        day = parse_loose_date(start)
        if day and self.is_past(day):
            return None

        identifier = md5(url + summary + start)
        if self.is_processed(identifier):
            return None

        return EventSection(
            html=json.dumps(data, indent=4),
            raw_html=lxml.html.tostring(node, encoding="unicode", with_tail=False),
            identifier=identifier,
            selector=rule.xpath,
            url=url,
        )

    def _markup_section(self, node, rule: SectionRule, url: str) -> Optional[EventSection]:
        if node.tag.lower() == "tr":
            if is_header_row(node):
                return None
            if rule.table_row_date_filter and self._past_row(node):
                return None

        raw_html = lxml.html.tostring(node, encoding="unicode", with_tail=False)
        if len(raw_html) < MIN_RAW_LENGTH:
            return None

        identifier = md5(url + md5(raw_html))
        if self.is_processed(identifier):
            return None

        cleaned = clean_html_for_ai(raw_html)
        if len(cleaned) < MIN_CLEANED_LENGTH:
            return None

        return EventSection(html=cleaned, raw_html=raw_html, identifier=identifier, selector=rule.xpath, url=url)

    def _past_row(self, row) -> bool:
        text = row_date_text(row)
        if text is None:
            return False
        day = row_date(text)
        return bool(day) and self.is_past(day)


TITLE_QUERIES = [
    "//h1",
    "//h2",
    "//h3",
    "//*[contains(@class, 'title')]",
    "//*[contains(@class, 'event-name')]",
    "//*[contains(@class, 'EventLink')]//a",
    "//*[@itemprop='name']",
]


def section_title(markup: str) -> str:
    """Text of the first heading-like element in a section, or ""."""
    if not markup or not markup.strip():
        return ""
    try:
        root = lxml.html.fragment_fromstring(markup, create_parent="div")
    except (etree.ParserError, ValueError):
        return ""
    for query in TITLE_QUERIES:
        nodes = root.xpath(query)
        if nodes:
            text = nodes[0].text_content().strip()
            if text:
                return text
    return ""
