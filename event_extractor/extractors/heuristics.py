"""HTML heuristics for event extraction.

When a page carries no structured data, fall back to DOM position, selector
probing and pattern matching. Always returns a record, possibly empty.
"""

import re
from datetime import datetime
from typing import Optional

from bs4 import BeautifulSoup, Tag

from event_extractor.extractors.meta import canonical_link
from event_extractor.models import ExtractedEvent
from event_extractor.normalizers.dates import find_event_dates
from event_extractor.normalizers.location import parse_city_state

MIN_DESCRIPTION_LENGTH = 50
MAX_FIELD_LENGTH = 200

# Content areas to probe for the event blurb, most specific last resort
DESCRIPTION_SELECTORS = [
    "main p",
    ".event-description p",
    ".description p",
    ".content p",
    "p",
]

LOCATION_SELECTORS = [
    "address",
    '[class*="venue"]',
    '[class*="location"]',
    '[class*="where"]',
    '[data-testid*="location"]',
    '[data-testid*="venue"]',
    '[data-testid*="where"]',
]

ORGANIZER_SELECTORS = [
    '[class*="organizer"]',
    '[class*="host"]',
    '[class*="sponsor"]',
    '[class*="presented-by"]',
    '[data-testid*="organizer"]',
    '[data-testid*="host"]',
]


def clean_text(text: str) -> str:
    """Collapse whitespace."""
    return re.sub(r"\s+", " ", text).strip()


def first_text(soup: BeautifulSoup, selectors: list[str], min_length: int = 1) -> Optional[Tag]:
    """First element across selectors whose text reaches min_length."""
    for selector in selectors:
        for element in soup.select(selector):
            if len(clean_text(element.get_text(" "))) >= min_length:
                return element
    return None


def extract_title(soup: BeautifulSoup) -> Optional[str]:
    """Title from the first h1, falling back to <title>."""
    for tag in ("h1", "title"):
        element = soup.find(tag)
        if element:
            title = clean_text(element.get_text(" "))
            if title:
                return title[:MAX_FIELD_LENGTH]
    return None


def extract_description(soup: BeautifulSoup) -> Optional[str]:
    """First substantial paragraph, probing content areas first."""
    paragraph = first_text(soup, DESCRIPTION_SELECTORS, min_length=MIN_DESCRIPTION_LENGTH + 1)
    return clean_text(paragraph.get_text(" ")) if paragraph else None


def extract_location(soup: BeautifulSoup) -> tuple[Optional[str], Optional[str], Optional[str]]:
    """Find (venue, city, state).

    The first non-empty location element is the venue. City and state come
    from it when it parses, else from the first match anywhere on the page.
    """
    venue = None
    city_state = None

    element = first_text(soup, LOCATION_SELECTORS)
    if element:
        lines = list(element.stripped_strings)
        venue = ", ".join(lines)[:MAX_FIELD_LENGTH]
        city_state = parse_city_state("\n".join(lines))

    if not city_state:
        city_state = parse_city_state("\n".join(soup.stripped_strings))

    city, state = city_state if city_state else (None, None)
    return venue, city, state


def extract_organizer(soup: BeautifulSoup) -> Optional[str]:
    """Text of the first organizer/host/sponsor element."""
    element = first_text(soup, ORGANIZER_SELECTORS, min_length=3)
    return clean_text(element.get_text(" "))[:MAX_FIELD_LENGTH] if element else None


def extract_heuristics(
    html: str,
    final_url: str,
    now: Optional[datetime] = None,
) -> ExtractedEvent:
    """Extract event data using heuristic pattern matching.

    Args:
        html: Page HTML
        final_url: URL the page was served from (after redirects)
        now: Reference time for resolving year-less dates toward the future
    """
    soup = BeautifulSoup(html or "", "lxml")

    for tag in soup.find_all(["script", "style", "noscript", "template"]):
        tag.decompose()

    data = ExtractedEvent(extraction_method="heuristics")

    data.title = extract_title(soup)
    data.description = extract_description(soup)

    # Dates from the main content area when there is one
    root = soup.find("main") or soup.body or soup
    data.starts_at, data.ends_at = find_event_dates(root.get_text(" ", strip=True), now)

    data.venue, data.city, data.state = extract_location(soup)
    data.organizer = extract_organizer(soup)

    data.canonical_url = canonical_link(soup, final_url) or final_url

    return data
