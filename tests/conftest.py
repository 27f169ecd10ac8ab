"""Shared test fixtures and configuration."""

from datetime import datetime
from typing import Callable, Union

import httpx
import pytest

# Reference "today" for every date test
FIXED_NOW = datetime(2026, 10, 19)

HTML_TYPE = "text/html; charset=utf-8"
CALENDAR_TYPE = "text/calendar; charset=utf-8"

JSON_LD_PAGE = """<!DOCTYPE html>
<html>
<head>
  <title>Tax Pro Summit | Events</title>
  <meta property="og:title" content="Tax Pro Summit 2026 - Register Now">
  <meta property="og:description" content="Two days of practice management and IRS updates.">
  <meta property="og:site_name" content="Texas Society of CPAs">
  <script type="application/ld+json">
  {
    "@context": "https://schema.org",
    "@type": "Event",
    "name": "Tax Summit 2026",
    "description": "The annual gathering for tax professionals.",
    "startDate": "2026-03-01",
    "endDate": "2026-03-03",
    "url": "https://events.example.com/tax-pro-summit",
    "location": {
      "@type": "Place",
      "name": "Hilton Austin",
      "address": {
        "@type": "PostalAddress",
        "addressLocality": "Austin",
        "addressRegion": "TX",
        "addressCountry": "US"
      }
    },
    "organizer": {"@type": "Organization", "name": "TXCPA"}
  }
  </script>
</head>
<body>
  <h1>Something Else Entirely</h1>
  <p>April 10, 2026 in Denver, CO</p>
</body>
</html>
"""

HEURISTIC_PAGE = """<!DOCTYPE html>
<html>
<head>
  <link rel="canonical" href="/events/tax-summit">
</head>
<body>
  <header><nav>Home</nav></header>
  <main>
    <h1>Tax Pro Summit</h1>
    <p>Short intro.</p>
    <p>Join hundreds of tax professionals for two days of sessions on practice management and IRS updates.</p>
    <p>When: March 1-3, 2026</p>
    <div class="event-venue"><span>Hilton Downtown</span><br><span>Austin, TX 78701</span></div>
    <div class="organizer-name">Texas Society of CPAs</div>
  </main>
  <script>var date = "December 25, 2030";</script>
</body>
</html>
"""

VENUE_ONLY_PAGE = """<html><body>
<h1>Expo</h1>
<address>San Francisco Convention Center</address>
</body></html>
"""

EMPTY_PAGE = "<html><body><div>nothing</div></body></html>"

CALENDAR_BODY = (
    "BEGIN:VCALENDAR\r\n"
    "VERSION:2.0\r\n"
    "PRODID:-//Example//Events//EN\r\n"
    "BEGIN:VEVENT\r\n"
    "UID:abc-123@example.com\r\n"
    "SUMMARY:Board Meeting\r\n"
    "DESCRIPTION:Quarterly review\\, budget and\r\n"
    "  planning\r\n"
    "LOCATION:Room 4\\, City Hall\r\n"
    "DTSTART:20260401T180000Z\r\n"
    "DTEND:20260401T200000Z\r\n"
    "ORGANIZER;CN=\"Jane Doe\":mailto:jane@example.com\r\n"
    "END:VEVENT\r\n"
    "BEGIN:VEVENT\r\n"
    "SUMMARY:Second Meeting\r\n"
    "DTSTART:20260501T180000Z\r\n"
    "END:VEVENT\r\n"
    "END:VCALENDAR\r\n"
)

Route = Union[httpx.Response, Callable[[httpx.Request], httpx.Response]]


def _html_response(html: str, status: int = 200) -> httpx.Response:
    return httpx.Response(status, text=html, headers={"content-type": HTML_TYPE})


def _calendar_response(body: str) -> httpx.Response:
    return httpx.Response(200, content=body.encode("utf-8"), headers={"content-type": CALENDAR_TYPE})


def _build_client(routes: dict[str, Route]) -> httpx.AsyncClient:
    """AsyncClient answering from a URL -> response map; unknown URLs are 404."""

    def handler(request: httpx.Request) -> httpx.Response:
        route = routes.get(str(request.url))
        if route is None:
            return httpx.Response(404, text="not found")
        if callable(route):
            return route(request)
        # Fresh copy so a route can be served more than once
        return httpx.Response(route.status_code, headers=route.headers, content=route.content)

    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


@pytest.fixture
def fixed_now() -> datetime:
    return FIXED_NOW


@pytest.fixture
def make_client() -> Callable[[dict[str, Route]], httpx.AsyncClient]:
    """Factory for mock-transport clients."""
    return _build_client


@pytest.fixture
def html_response() -> Callable[..., httpx.Response]:
    return _html_response


@pytest.fixture
def calendar_response() -> Callable[[str], httpx.Response]:
    return _calendar_response


@pytest.fixture
def json_ld_page() -> str:
    return JSON_LD_PAGE


@pytest.fixture
def heuristic_page() -> str:
    return HEURISTIC_PAGE


@pytest.fixture
def venue_only_page() -> str:
    return VENUE_ONLY_PAGE


@pytest.fixture
def empty_page() -> str:
    return EMPTY_PAGE


@pytest.fixture
def calendar_body() -> str:
    return CALENDAR_BODY


@pytest.fixture(autouse=True)
def no_llm_env(monkeypatch):
    """Keep a developer's .env from leaking into tests."""
    for name in ("OPENAI_API_KEY", "OPENAI_BASE_URL", "EVENT_EXTRACTOR_MODEL"):
        monkeypatch.delenv(name, raising=False)
