"""Deduplication key for extracted events."""

import hashlib
import re

_WS_RE = re.compile(r"\s+")


def normalize_part(value: str) -> str:
    return _WS_RE.sub(" ", (value or "").casefold()).strip()


def event_identity(title: str, start_date: str = "", venue_name: str = "") -> str:
    """SHA-256 of the normalized (title, start date, venue) triple.

    Descriptions, times and ticket links never take part, so the same show
    re-listed with edited copy keeps its identity.
    """
    key = "|".join(normalize_part(p) for p in (title, start_date, venue_name))
    return hashlib.sha256(key.encode("utf-8")).hexdigest()
