"""Tests for the HTTP client and page fetching fallbacks."""

import httpx
import pytest

from event_scraper.fetch import PLAIN_USER_AGENT, HttpClient, fetch_page, fetch_text


def client_for(handler) -> HttpClient:
    return HttpClient(transport=httpx.MockTransport(handler))


class TestHttpClient:
    def test_success(self):
        client = client_for(lambda request: httpx.Response(200, text="<html>ok</html>"))
        result = client.get("https://venue.example.com/")
        assert result.success
        assert result.status_code == 200
        assert result.body == "<html>ok</html>"

    def test_http_error_keeps_status(self):
        client = client_for(lambda request: httpx.Response(404, text="missing"))
        result = client.get("https://venue.example.com/nope")
        assert not result.success
        assert result.status_code == 404
        assert result.error == "404"

    @pytest.mark.parametrize("exc,error", [
        (httpx.ReadTimeout, "timeout"),
        (httpx.ConnectError, "connection"),
    ])
    def test_network_errors_never_raise(self, exc, error: str):
        def handler(request):
            raise exc("boom", request=request)

        result = client_for(handler).get("https://venue.example.com/")
        assert not result.success
        assert result.error == error

    def test_browser_mode_headers(self):
        seen = {}

        def handler(request):
            seen.update(request.headers)
            return httpx.Response(200, text="ok")

        client_for(handler).get("https://venue.example.com/", browser_mode=True)
        assert "Mozilla" in seen["user-agent"]
        assert seen["accept-language"].startswith("en-US")

    def test_extra_headers_win(self):
        seen = {}

        def handler(request):
            seen.update(request.headers)
            return httpx.Response(200, text="{}")

        client_for(handler).get("https://venue.example.com/", headers={"Accept": "application/json"})
        assert seen["accept"] == "application/json"


class TestFetchPage:
    """Browser mode first, plain mode when blocked."""

    def test_falls_back_to_plain_mode_on_error(self):
        agents = []

        def handler(request):
            agents.append(request.headers["user-agent"])
            if len(agents) == 1:
                return httpx.Response(403, text="forbidden")
            return httpx.Response(200, text="<html>events</html>")

        assert fetch_page(client_for(handler), "https://venue.example.com/") == "<html>events</html>"
        assert agents[1] == PLAIN_USER_AGENT

    def test_captcha_page_triggers_plain_mode(self):
        calls = []

        def handler(request):
            calls.append(request)
            if len(calls) == 1:
                return httpx.Response(200, text="<div class='sgcaptcha'>Checking your browser</div>")
            return httpx.Response(200, text="<html>events</html>")

        assert fetch_page(client_for(handler), "https://venue.example.com/") == "<html>events</html>"
        assert len(calls) == 2

    def test_both_modes_fail(self):
        client = client_for(lambda request: httpx.Response(500))
        assert fetch_page(client, "https://venue.example.com/") == ""

    def test_fetch_text_none_on_failure(self):
        client = client_for(lambda request: httpx.Response(503))
        assert fetch_text(client, "https://venue.example.com/feed.ics") is None
