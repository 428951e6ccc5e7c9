"""Text cleanup helpers shared by extractors and the section finder."""

import html as html_lib
import re
from typing import Optional
from urllib.parse import urljoin, urlparse

from bs4 import BeautifulSoup

# Comments, scripts and styles carry no event content
_SCRIPT_RE = re.compile(r"<script\b[^>]*>.*?</script>", re.I | re.S)
_STYLE_RE = re.compile(r"<style\b[^>]*>.*?</style>", re.I | re.S)
_COMMENT_RE = re.compile(r"<!--.*?-->", re.S)
_TAG_RE = re.compile(r"<[^>]+>")
_WS_RE = re.compile(r"\s+")

MAX_SECTION_LENGTH = 50000


def clean_text(value: Optional[object]) -> str:
    """Strip tags, decode entities, collapse whitespace and trim."""
    if value is None:
        return ""
    text = str(value)
    if "<" in text:
        text = _TAG_RE.sub(" ", text)
    text = html_lib.unescape(text)
    return _WS_RE.sub(" ", text).strip()


def strip_tags(value: Optional[str]) -> str:
    """Plain text of an HTML fragment, keeping paragraph breaks as newlines."""
    if not value:
        return ""
    soup = BeautifulSoup(value, "lxml")
    for br in soup.find_all("br"):
        br.replace_with("\n")
    text = soup.get_text("\n")
    lines = [_WS_RE.sub(" ", line).strip() for line in text.splitlines()]
    return "\n".join(line for line in lines if line)


def clean_html_for_ai(markup: str) -> str:
    """Remove scripts, styles and comments from markup and collapse whitespace."""
    markup = _SCRIPT_RE.sub("", markup)
    markup = _STYLE_RE.sub("", markup)
    markup = _COMMENT_RE.sub("", markup)
    return _WS_RE.sub(" ", markup).strip()


def truncate_section(markup: str, max_length: int = MAX_SECTION_LENGTH) -> str:
    return markup[:max_length]


def sanitize_url(url: Optional[str]) -> str:
    """Return an absolute http(s) URL or an empty string.

    Bare hosts get an https:// prefix. Anything that still does not parse
    as a URL with a host is dropped.
    """
    if not url:
        return ""
    url = str(url).strip()
    if not url:
        return ""
    if url.startswith("//"):
        url = "https:" + url
    elif not re.match(r"^https?://", url, re.I):
        url = "https://" + url
    parsed = urlparse(url)
    if not parsed.netloc or " " in parsed.netloc or "." not in parsed.netloc:
        return ""
    return url


def absolute_url(href: Optional[str], base_url: str) -> str:
    """Resolve href against base_url and sanitize the result."""
    if not href:
        return ""
    href = href.strip()
    if href.startswith(("javascript:", "mailto:", "tel:", "#")):
        return ""
    return sanitize_url(urljoin(base_url, href))


def first_text(*values: Optional[object]) -> str:
    """First non-blank value, cleaned."""
    for value in values:
        text = clean_text(value)
        if text:
            return text
    return ""
