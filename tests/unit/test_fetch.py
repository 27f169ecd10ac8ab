"""Tests for the shared page fetcher."""

import asyncio

import httpx
import pytest
from event_extractor.extractors.fetch import USER_AGENT, fetch_page

URL = "https://events.example.com/summit"


class TestFetchPage:
    """Tests for fetch_page."""

    def test_html(self, make_client, html_response):
        result = asyncio.run(fetch_page(URL, client=make_client({URL: html_response("<h1>Hi</h1>")})))

        assert result.ok
        assert result.status == 200
        assert result.text == "<h1>Hi</h1>"
        assert result.final_url == URL
        assert result.redirect_chain == []
        assert not result.is_calendar

    def test_identifying_headers(self, make_client, html_response):
        seen = []

        def handler(request):
            seen.append(request)
            return html_response("ok")

        asyncio.run(fetch_page(URL, client=make_client({URL: handler})))

        assert seen[0].headers["user-agent"] == USER_AGENT
        assert "text/html" in seen[0].headers["accept"]

    def test_fixed_timeout(self, make_client, html_response):
        """Every phase of the request gets the 10 second budget."""
        seen = []

        def handler(request):
            seen.append(request.extensions["timeout"])
            return html_response("ok")

        asyncio.run(fetch_page(URL, client=make_client({URL: handler})))

        assert seen == [{"connect": 10.0, "read": 10.0, "write": 10.0, "pool": 10.0}]

    def test_calendar_kept_as_bytes(self, make_client, calendar_response, calendar_body):
        result = asyncio.run(fetch_page(URL, client=make_client({URL: calendar_response(calendar_body)})))

        assert result.is_calendar
        assert result.text is None
        assert result.body == calendar_body.encode("utf-8")

    def test_redirects_followed(self, make_client, html_response):
        start = "https://short.example/x"
        client = make_client({
            start: httpx.Response(302, headers={"location": "https://mid.example/y"}),
            "https://mid.example/y": httpx.Response(301, headers={"location": URL}),
            URL: html_response("done"),
        })
        result = asyncio.run(fetch_page(start, client=client))

        assert result.final_url == URL
        assert result.redirect_chain == [start, "https://mid.example/y"]

    def test_error_status_is_not_an_error(self, make_client):
        result = asyncio.run(fetch_page(URL, client=make_client({})))

        assert result.status == 404
        assert result.error is None
        assert not result.ok

    @pytest.mark.parametrize("exc,reason", [
        (httpx.ConnectError, "connection"),
        (httpx.ConnectTimeout, "timeout"),
        (httpx.ReadTimeout, "timeout"),
        (httpx.RemoteProtocolError, "remoteprotocolerror"),
    ])
    def test_network_errors(self, make_client, exc, reason: str):
        def handler(request):
            raise exc("failed", request=request)

        result = asyncio.run(fetch_page(URL, client=make_client({URL: handler})))

        assert result.error == reason
        assert result.status is None
        assert result.final_url == URL
        assert not result.ok
