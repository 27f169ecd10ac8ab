"""Deterministic extraction pipeline orchestrator.

Fetches the URL once, then:
1. Calendar responses -> iCalendar extractor alone
2. Anything else -> JSON-LD, meta tags and heuristics on the same HTML,
   merged field by field using FIELD_PRECEDENCE

Never raises: every failure ends up as absent fields plus diagnostics in
``raw``.
"""

from datetime import datetime
from typing import Any, Callable, Optional

import httpx
from rich.console import Console

from event_extractor.extractors.calendar import extract_calendar
from event_extractor.extractors.fetch import FetchResult, fetch_page
from event_extractor.extractors.heuristics import extract_heuristics
from event_extractor.extractors.meta import extract_meta_tags
from event_extractor.extractors.structured import extract_structured_data
from event_extractor.models import EVENT_FIELDS, EventPayload, ExtractedEvent
from event_extractor.validators import validate_url

console = Console()

# Source order per field; the first non-empty value wins
FIELD_PRECEDENCE: dict[str, tuple[str, ...]] = {
    "title": ("structured", "meta", "heuristics"),
    "description": ("structured", "meta", "heuristics"),
    "organizer": ("structured", "meta", "heuristics"),
    "canonical_url": ("structured", "meta", "heuristics"),
    "starts_at": ("structured", "heuristics"),
    "ends_at": ("structured", "heuristics"),
    "city": ("structured", "heuristics"),
    "state": ("structured", "heuristics"),
    "venue": ("structured", "heuristics"),
    "country": ("structured",),
}

METHOD = "deterministic"


def merge_extracted(
    partials: dict[str, Optional[ExtractedEvent]],
) -> tuple[dict[str, str], dict[str, str]]:
    """Merge partial records by FIELD_PRECEDENCE.

    Returns:
        (fields, field_sources) where field_sources names the extractor each
        populated field came from
    """
    fields: dict[str, str] = {}
    sources: dict[str, str] = {}

    for field, order in FIELD_PRECEDENCE.items():
        for name in order:
            partial = partials.get(name)
            value = getattr(partial, field, None) if partial else None
            if value:
                fields[field] = value
                sources[field] = name
                break

    return fields, sources


def _run_extractor(
    name: str,
    extractor: Callable[..., Optional[ExtractedEvent]],
    skipped: list[str],
    *args: Any,
) -> Optional[ExtractedEvent]:
    """Run one extractor; an unexpected error skips it instead of the page."""
    try:
        return extractor(*args)
    except Exception as e:
        console.print(f"[yellow]{name} extractor failed: {type(e).__name__}: {e}[/yellow]")
        skipped.append(name)
        return None


def _fetch_raw(fetched: FetchResult, method: str) -> dict[str, Any]:
    raw: dict[str, Any] = {
        "extractionMethod": method,
        "status": fetched.status,
        "contentType": fetched.content_type,
    }
    if fetched.redirect_chain:
        raw["redirectChain"] = fetched.redirect_chain
    return raw


def _from_calendar(url: str, fetched: FetchResult) -> EventPayload:
    raw = _fetch_raw(fetched, "calendar")
    skipped: list[str] = []
    event = _run_extractor("calendar", extract_calendar, skipped, fetched.body or b"", url)

    if event is None:
        raw["skipped"] = skipped or ["calendar"]
        return EventPayload(source_url=url, canonical_url=fetched.final_url, raw=raw)

    fields = {field: getattr(event, field) for field in EVENT_FIELDS if getattr(event, field)}
    fields.setdefault("canonical_url", fetched.final_url)
    return EventPayload(source_url=url, raw=raw, **fields)


def _from_html(url: str, fetched: FetchResult, now: Optional[datetime]) -> EventPayload:
    html = fetched.text or ""
    final_url = fetched.final_url
    skipped: list[str] = []

    partials = {
        "structured": _run_extractor("structured", extract_structured_data, skipped, html, final_url),
        "meta": _run_extractor("meta", extract_meta_tags, skipped, html, final_url),
        "heuristics": _run_extractor("heuristics", extract_heuristics, skipped, html, final_url, now),
    }

    fields, sources = merge_extracted(partials)
    fields.setdefault("canonical_url", final_url)

    raw = _fetch_raw(fetched, METHOD)
    raw["fieldSources"] = sources
    if skipped:
        raw["skipped"] = skipped

    return EventPayload(source_url=url, raw=raw, **fields)


async def _extract(
    url: str,
    client: Optional[httpx.AsyncClient],
    now: Optional[datetime],
) -> EventPayload:
    is_valid, reason = validate_url(url)
    if not is_valid:
        return EventPayload.minimal(url, extractionMethod=METHOD, error=reason)

    fetched = await fetch_page(url, client=client)

    if fetched.error:
        return EventPayload.minimal(url, extractionMethod=METHOD, error=fetched.error)

    if fetched.status >= 400:
        return EventPayload.minimal(url, fetched.final_url, status=fetched.status)

    if fetched.is_calendar:
        return _from_calendar(url, fetched)

    return _from_html(url, fetched, now)


async def extract_event(
    url: str,
    client: Optional[httpx.AsyncClient] = None,
    now: Optional[datetime] = None,
) -> EventPayload:
    """Extract event details from a URL with the deterministic pipeline.

    Args:
        url: Event page or calendar URL as submitted
        client: Optional httpx client to fetch with
        now: Reference time for year-less dates (defaults to current UTC time)

    Returns:
        EventPayload; failures leave fields absent and are described in ``raw``
    """
    try:
        payload = await _extract(url, client, now)
    except Exception as e:
        console.print(f"[red]Error extracting {url}: {type(e).__name__}: {e}[/red]")
        return EventPayload.minimal(url or "", extractionMethod=METHOD, error=f"exception:{type(e).__name__}")

    if payload.title:
        sources = (payload.raw or {}).get("fieldSources", {})
        method = sources.get("title", (payload.raw or {}).get("extractionMethod"))
        console.print(f"[green]Extracted:[/green] {payload.title[:50]} [dim](title via {method})[/dim]")

    return payload
