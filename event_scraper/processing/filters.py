"""Keyword and title filters applied to candidate events."""

from typing import Iterable, Optional

# Titles containing these never describe a real event ("CLOSED", "Closed for a private party")
GLOBAL_SKIP_TITLE_KEYWORDS = ["closed"]


def split_terms(terms: Optional[str]) -> list[str]:
    """Comma-separated terms, trimmed and lowercased, blanks dropped."""
    if not terms:
        return []
    return [t.strip().lower() for t in terms.split(",") if t.strip()]


def include_match(text: str, terms: Optional[str]) -> bool:
    """True when no include terms are configured or any term occurs in text."""
    wanted = split_terms(terms)
    if not wanted:
        return True
    haystack = (text or "").lower()
    return any(term in haystack for term in wanted)


def exclude_match(text: str, terms: Optional[str]) -> bool:
    """True when any exclude term occurs in text."""
    unwanted = split_terms(terms)
    if not unwanted:
        return False
    haystack = (text or "").lower()
    return any(term in haystack for term in unwanted)


def should_skip_title(title: str, keywords: Optional[Iterable[str]] = None) -> bool:
    if not title:
        return False
    lowered = title.lower()
    for keyword in GLOBAL_SKIP_TITLE_KEYWORDS if keywords is None else keywords:
        keyword = str(keyword).strip().lower()
        if keyword and keyword in lowered:
            return True
    return False
