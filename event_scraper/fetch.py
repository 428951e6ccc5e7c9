"""HTTP fetching for the crawler and the extractors that follow links.

Two request modes:
1. Browser mode: realistic User-Agent plus the Accept/Accept-Language set a
   desktop browser sends, to get past naive bot blocking
2. Plain mode: a short identifying User-Agent, used when browser mode is
   blocked or answered with a challenge page
"""

import random
from typing import Optional

import httpx
from rich.console import Console

console = Console()

USER_AGENTS = [
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:134.0) Gecko/20100101 Firefox/134.0",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 14.7; rv:134.0) Gecko/20100101 Firefox/134.0",
    "Mozilla/5.0 (X11; Linux x86_64; rv:134.0) Gecko/20100101 Firefox/134.0",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:133.0) Gecko/20100101 Firefox/133.0",
]

PLAIN_USER_AGENT = "event-scraper/0.1 (+https://github.com/event-scraper)"

BROWSER_HEADERS = {
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.9",
    "DNT": "1",
    "Upgrade-Insecure-Requests": "1",
}

# Bodies containing these are challenge pages, not content
CAPTCHA_MARKERS = [
    "sgcaptcha",
    "cloudflare-challenge",
    "Checking your browser",
]

DEFAULT_TIMEOUT = 30.0


class FetchResult:
    """Result of a single GET with error details."""
    def __init__(
        self,
        success: bool,
        status_code: Optional[int] = None,
        body: str = "",
        error: Optional[str] = None,
    ):
        self.success = success
        self.status_code = status_code
        self.body = body
        self.error = error  # "timeout", "connection", "404", etc.

    def __repr__(self) -> str:
        return f"FetchResult(success={self.success}, status_code={self.status_code}, error={self.error!r})"


def is_captcha(body: str) -> bool:
    return any(marker in body for marker in CAPTCHA_MARKERS)


class HttpClient:
    """Blocking HTTP GET with an explicit timeout and no retries."""

    def __init__(self, transport: Optional[httpx.BaseTransport] = None):
        self._client = httpx.Client(follow_redirects=True, transport=transport)

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "HttpClient":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def get(
        self,
        url: str,
        timeout: float = DEFAULT_TIMEOUT,
        headers: Optional[dict[str, str]] = None,
        browser_mode: bool = False,
    ) -> FetchResult:
        """GET url. Never raises for network or HTTP errors."""
        request_headers = self._headers(browser_mode)
        if headers:
            request_headers.update(headers)

        try:
            response = self._client.get(url, headers=request_headers, timeout=timeout)
            response.raise_for_status()
            return FetchResult(True, status_code=response.status_code, body=response.text)
        except httpx.TimeoutException:
            error, status = "timeout", None
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            console.print(f"[dim]GET {url} returned {status}[/dim]")
            return FetchResult(False, status_code=status, body=e.response.text, error=str(status))
        except httpx.ConnectError:
            error, status = "connection", None
        except httpx.HTTPError as e:
            error, status = type(e).__name__.lower(), None
        except httpx.InvalidURL:
            error, status = "invalid_url", None

        console.print(f"[dim]GET failed for {url}: {error}[/dim]")
        return FetchResult(False, status_code=status, error=error)

    @staticmethod
    def _headers(browser_mode: bool) -> dict[str, str]:
        if browser_mode:
            return {"User-Agent": random.choice(USER_AGENTS), **BROWSER_HEADERS}
        return {"User-Agent": PLAIN_USER_AGENT}


def fetch_page(client: HttpClient, url: str, timeout: float = DEFAULT_TIMEOUT) -> str:
    """Fetch page content, falling back to plain mode when browser mode is blocked.

    Returns an empty string on failure.
    """
    result = client.get(url, timeout=timeout, browser_mode=True)
    blocked = result.success and is_captcha(result.body)

    if not result.success or blocked:
        console.print(
            f"[yellow]Browser mode blocked for {url} "
            f"(status={result.status_code}, captcha={blocked}), retrying in plain mode[/yellow]"
        )
        result = client.get(url, timeout=timeout, browser_mode=False)

    if not result.success:
        console.print(f"[red]Failed to fetch {url}: {result.error}[/red]")
        return ""

    if not result.body:
        console.print(f"[red]Empty response body from {url}[/red]")
        return ""

    return result.body


def fetch_text(
    client: HttpClient,
    url: str,
    timeout: float = DEFAULT_TIMEOUT,
    headers: Optional[dict[str, str]] = None,
) -> Optional[str]:
    """Fetch a secondary resource (feed, API, detail page); None on failure."""
    result = client.get(url, timeout=timeout, headers=headers, browser_mode=True)
    if not result.success or not result.body:
        return None
    return result.body
