"""Format extractor contract and the small helpers extractors share."""

import json
import re
from typing import Any, Optional, Protocol, runtime_checkable

from bs4 import BeautifulSoup
from pydantic import ValidationError
from rich.console import Console

from event_scraper.models import NormalizedEvent

console = Console()


@runtime_checkable
class FormatExtractor(Protocol):
    """Detects and parses one embedded event data shape.

    can_handle must stay cheap (substring or regex probes), since every
    extractor is probed on every page. extract returns an empty list for
    anything it cannot parse instead of raising.
    """

    def identifier(self) -> str:
        ...

    def can_handle(self, content: str) -> bool:
        ...

    def extract(self, content: str, source_url: str) -> list[NormalizedEvent]:
        ...


def load_json(content: Optional[str]) -> Any:
    """json.loads that returns None for blank or malformed input."""
    if not content:
        return None
    try:
        return json.loads(content.strip())
    except (json.JSONDecodeError, TypeError, ValueError):
        return None


def looks_like_json(content: str) -> bool:
    stripped = content.lstrip()
    return stripped.startswith("{") or stripped.startswith("[")


def make_soup(content: str) -> BeautifulSoup:
    return BeautifulSoup(content, "lxml")


def build_event(fields: dict[str, Any], source_url: str = "") -> Optional[NormalizedEvent]:
    """NormalizedEvent from snake_case fields; None without a title or when a field will not validate."""
    if not fields.get("title"):
        return None
    if source_url and not fields.get("source_url"):
        fields = {**fields, "source_url": source_url}
    try:
        return NormalizedEvent(**fields)
    except ValidationError as e:
        console.print(f"[dim]Dropping event {fields.get('title')!r}: {e.error_count()} invalid fields[/dim]")
        return None


def dig(data: Any, *keys: Any, default: Any = None) -> Any:
    """Nested lookup over dicts and lists that never raises."""
    current = data
    for key in keys:
        if isinstance(current, dict):
            current = current.get(key)
        elif isinstance(current, list) and isinstance(key, int):
            current = current[key] if -len(current) <= key < len(current) else None
        else:
            return default
        if current is None:
            return default
    return current


_DECODER = json.JSONDecoder()


def decode_object_at(content: str, pattern: re.Pattern) -> Any:
    """Decode the JSON value that starts where pattern's match ends.

    pattern should end right before the opening brace or bracket, e.g.
    r"events\\s*=\\s*". Returns None when nothing decodes.
    """
    for match in pattern.finditer(content):
        try:
            value, _ = _DECODER.raw_decode(content, match.end())
        except (json.JSONDecodeError, ValueError):
            continue
        return value
    return None
