"""Extract schema.org Event data embedded as JSON-LD."""

import json
from typing import Any, Optional
from urllib.parse import urljoin

from bs4 import BeautifulSoup
from rich.console import Console

from event_extractor.models import ExtractedEvent
from event_extractor.normalizers.dates import to_iso

console = Console()


def extract_json_ld(soup: BeautifulSoup) -> list[dict]:
    """Extract all JSON-LD nodes from page, flattening arrays and @graph."""
    nodes: list[dict] = []

    for script in soup.find_all("script", type="application/ld+json"):
        try:
            data = json.loads(script.get_text().strip())
        except (json.JSONDecodeError, TypeError):
            continue

        for item in data if isinstance(data, list) else [data]:
            if not isinstance(item, dict):
                continue
            nodes.append(item)
            graph = item.get("@graph")
            if isinstance(graph, list):
                nodes.extend(node for node in graph if isinstance(node, dict))

    return nodes


def is_event_node(node: dict) -> bool:
    """True if the node's @type names any kind of event."""
    node_type = node.get("@type") or node.get("type") or ""
    if isinstance(node_type, list):
        node_type = ",".join(str(t) for t in node_type)
    return "event" in str(node_type).lower()


def _text(value: Any) -> Optional[str]:
    """Readable string from a JSON-LD value (string, named object or list)."""
    if isinstance(value, list):
        for item in value:
            text = _text(item)
            if text:
                return text
        return None
    if isinstance(value, dict):
        return _text(value.get("name") or value.get("@id"))
    if isinstance(value, (str, int, float)) and not isinstance(value, bool):
        text = str(value).strip()
        return text or None
    return None


def _first_place(value: Any) -> dict:
    """First location object with a name or address (skips bare VirtualLocation)."""
    if isinstance(value, list):
        places = [v for v in value if isinstance(v, dict)]
        value = next((p for p in places if p.get("name") or p.get("address")), None)
        if value is None and places:
            value = places[0]
    return value if isinstance(value, dict) else {}


def extract_from_schema_org(nodes: list[dict], url: str) -> Optional[ExtractedEvent]:
    """Map the first Event node to a partial record."""
    for node in nodes:
        if not is_event_node(node):
            continue

        data = ExtractedEvent(extraction_method="schema.org")

        data.title = _text(node.get("name") or node.get("headline"))
        data.description = _text(node.get("description") or node.get("abstract"))

        # Dates
        data.starts_at = to_iso(_text(node.get("startDate")))
        data.ends_at = to_iso(_text(node.get("endDate")))

        # Location
        location = node.get("location")
        if isinstance(location, str):
            data.venue = location.strip() or None
        else:
            place = _first_place(location)
            data.venue = _text(place.get("name"))
            address = place.get("address")
            if isinstance(address, dict):
                data.city = _text(address.get("addressLocality"))
                data.state = _text(address.get("addressRegion"))
                data.country = _text(address.get("addressCountry"))

        # Organizer (performer as last resort)
        data.organizer = _text(node.get("organizer")) or _text(node.get("performer"))

        canonical = _text(node.get("url")) or _text(node.get("mainEntityOfPage"))
        data.canonical_url = urljoin(url, canonical) if canonical else url

        return data

    return None


def extract_structured_data(html: str, url: str) -> Optional[ExtractedEvent]:
    """Extract the first schema.org Event from a page's JSON-LD blocks.

    Malformed blocks are skipped. Returns None if no Event is found.
    """
    soup = BeautifulSoup(html, "lxml")
    nodes = extract_json_ld(soup)
    data = extract_from_schema_org(nodes, url)

    if data is None and nodes:
        console.print(f"[dim]JSON-LD found but no Event node on {url}[/dim]")

    return data
