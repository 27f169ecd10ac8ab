"""Extract event data from OpenGraph, Twitter and standard meta tags.

Meta tags never carry dates or location here; those come from JSON-LD or
the heuristics.
"""

from typing import Optional
from urllib.parse import urljoin

from bs4 import BeautifulSoup

from event_extractor.models import ExtractedEvent


def collect_meta(soup: BeautifulSoup) -> dict[str, str]:
    """Map meta property/name (lowercased) to content; first occurrence wins."""
    tags: dict[str, str] = {}

    for meta in soup.find_all("meta"):
        key = (meta.get("property") or meta.get("name") or "").strip().lower()
        content = (meta.get("content") or "").strip()
        if key and content and key not in tags:
            tags[key] = content

    return tags


def canonical_link(soup: BeautifulSoup, url: str) -> Optional[str]:
    """Absolute href of <link rel="canonical">, if any."""
    link = soup.find("link", rel="canonical")
    href = (link.get("href") or "").strip() if link else ""
    return urljoin(url, href) if href else None


def extract_meta_tags(html: str, url: str) -> Optional[ExtractedEvent]:
    """Extract title, description, organizer and canonical URL from meta tags.

    Returns None if neither a title nor a description is found.
    """
    soup = BeautifulSoup(html, "lxml")
    tags = collect_meta(soup)

    title = tags.get("og:title") or tags.get("twitter:title")
    if not title:
        title_tag = soup.find("title")
        if title_tag:
            title = title_tag.get_text().strip() or None

    description = (
        tags.get("og:description")
        or tags.get("twitter:description")
        or tags.get("description")
    )

    if not title and not description:
        return None

    data = ExtractedEvent(extraction_method="meta")
    data.title = title
    data.description = description
    data.organizer = tags.get("og:site_name")

    og_url = tags.get("og:url")
    data.canonical_url = canonical_link(soup, url) or (urljoin(url, og_url) if og_url else url)

    return data
