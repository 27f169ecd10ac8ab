"""Tests for schema.org JSON-LD extraction."""

import json

import pytest
from bs4 import BeautifulSoup
from event_extractor.extractors.structured import extract_json_ld, extract_structured_data, is_event_node

URL = "https://events.example.com/page"


def page(*blocks) -> str:
    scripts = "".join(
        f'<script type="application/ld+json">{b if isinstance(b, str) else json.dumps(b)}</script>'
        for b in blocks
    )
    return f"<html><head>{scripts}</head><body><h1>Ignored</h1></body></html>"


class TestExtractStructuredData:
    """Tests for Event node mapping."""

    def test_full_event(self, json_ld_page: str):
        event = extract_structured_data(json_ld_page, URL)

        assert event.title == "Tax Summit 2026"
        assert event.description == "The annual gathering for tax professionals."
        assert event.starts_at == "2026-03-01T00:00:00.000Z"
        assert event.ends_at == "2026-03-03T00:00:00.000Z"
        assert event.venue == "Hilton Austin"
        assert event.city == "Austin"
        assert event.state == "TX"
        assert event.country == "US"
        assert event.organizer == "TXCPA"
        assert event.canonical_url == "https://events.example.com/tax-pro-summit"
        assert event.extraction_method == "schema.org"

    def test_graph(self):
        html = page({
            "@context": "https://schema.org",
            "@graph": [
                {"@type": "WebPage", "name": "Not the event"},
                {"@type": "Event", "name": "Graph Event", "startDate": "2026-05-01T18:00:00-04:00"},
            ],
        })
        event = extract_structured_data(html, URL)

        assert event.title == "Graph Event"
        assert event.starts_at == "2026-05-01T22:00:00.000Z"

    def test_top_level_list(self):
        html = page([
            {"@type": "Organization", "name": "Org"},
            {"@type": ["Event", "BusinessEvent"], "name": "Listed Event"},
        ])
        assert extract_structured_data(html, URL).title == "Listed Event"

    @pytest.mark.parametrize("event_type", ["Event", "MusicEvent", "EducationEvent", "BusinessEvent"])
    def test_event_subtypes(self, event_type: str):
        html = page({"@type": event_type, "name": "Sub"})
        assert extract_structured_data(html, URL).title == "Sub"

    def test_malformed_block_skipped(self):
        """A broken block doesn't hide a valid one after it."""
        html = page('{"@type": "Event", "name": broken', {"@type": "Event", "name": "Valid"})
        assert extract_structured_data(html, URL).title == "Valid"

    def test_string_location_is_venue(self):
        html = page({"@type": "Event", "name": "E", "location": "Online"})
        event = extract_structured_data(html, URL)

        assert event.venue == "Online"
        assert event.city is None

    def test_location_list_skips_virtual_location(self):
        html = page({
            "@type": "Event",
            "name": "Hybrid",
            "location": [
                {"@type": "VirtualLocation", "url": "https://stream.example.com"},
                {"@type": "Place", "name": "Hall", "address": {"addressLocality": "Austin", "addressRegion": "TX"}},
            ],
        })
        event = extract_structured_data(html, URL)

        assert event.venue == "Hall"
        assert (event.city, event.state) == ("Austin", "TX")

    def test_performer_fallback(self):
        html = page({"@type": "Event", "name": "E", "performer": [{"@type": "Person", "name": "Jo"}]})
        assert extract_structured_data(html, URL).organizer == "Jo"

    def test_relative_url_resolved(self):
        html = page({"@type": "Event", "name": "E", "url": "/e/1"})
        assert extract_structured_data(html, URL).canonical_url == "https://events.example.com/e/1"

    def test_missing_url_uses_page(self):
        html = page({"@type": "Event", "name": "E"})
        assert extract_structured_data(html, URL).canonical_url == URL

    def test_unparseable_date_dropped(self):
        html = page({"@type": "Event", "name": "E", "startDate": "lorem ipsum"})
        event = extract_structured_data(html, URL)

        assert event.title == "E"
        assert event.starts_at is None

    @pytest.mark.parametrize("html", [
        "",
        "<html><body><h1>No data</h1></body></html>",
        page({"@type": "Organization", "name": "Org"}),
        page("{not json"),
        page("[1, 2, 3]"),
    ])
    def test_no_event(self, html: str):
        assert extract_structured_data(html, URL) is None


class TestJsonLdHelpers:
    """Tests for JSON-LD block collection."""

    def test_scalars_ignored(self):
        soup = BeautifulSoup(page("[1, 2]", '"text"'), "lxml")
        assert extract_json_ld(soup) == []

    def test_graph_nodes_flattened(self):
        soup = BeautifulSoup(page({"@graph": [{"@type": "Event"}, {"@type": "Place"}]}), "lxml")
        assert len(extract_json_ld(soup)) == 3

    @pytest.mark.parametrize("node,expected", [
        ({"@type": "Event"}, True),
        ({"@type": "SocialEvent"}, True),
        ({"@type": ["Thing", "Event"]}, True),
        ({"@type": "Organization"}, False),
        ({}, False),
    ])
    def test_is_event_node(self, node: dict, expected: bool):
        assert is_event_node(node) is expected
