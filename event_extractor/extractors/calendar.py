"""Extract an event from an iCalendar (.ics) payload.

Only the first VEVENT is read; multi-event feeds are not expanded.
"""

import re
from datetime import datetime, timezone
from typing import Optional, Union
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from rich.console import Console

from event_extractor.models import ExtractedEvent
from event_extractor.normalizers.dates import format_iso

console = Console()

VEVENT_PATTERN = re.compile(r"^BEGIN:VEVENT\s*$(.*?)^END:VEVENT\s*$", re.DOTALL | re.MULTILINE | re.I)
PARAM_VALUE = r'(?:"[^"]*"|[^";:,]*)'
PROPERTY_PATTERN = re.compile(
    rf"^(?P<name>[A-Za-z-]+)(?P<params>(?:;[A-Za-z-]+={PARAM_VALUE}(?:,{PARAM_VALUE})*)*):(?P<value>.*)$"
)


def unfold(text: str) -> str:
    """Unfold iCal line continuations (RFC 5545 §3.1)."""
    return re.sub(r"\r?\n[ \t]", "", text)


def unescape(text: str) -> str:
    """Unescape iCal text values."""
    return re.sub(
        r"\\([\\;,nN])",
        lambda m: "\n" if m.group(1) in "nN" else m.group(1),
        text,
    )


def parse_properties(block: str) -> dict[str, tuple[dict[str, str], str]]:
    """Map property name to (params, raw value); first occurrence wins."""
    properties: dict[str, tuple[dict[str, str], str]] = {}
    for line in block.splitlines():
        match = PROPERTY_PATTERN.match(line.strip())
        if not match:
            continue
        name = match.group("name").upper()
        if name in properties:
            continue
        params = {}
        for param in re.finditer(rf";([A-Za-z-]+)=({PARAM_VALUE})", match.group("params")):
            params[param.group(1).upper()] = param.group(2).strip('"')
        properties[name] = (params, match.group("value").strip())
    return properties


def parse_ical_datetime(value: str, params: dict[str, str]) -> Optional[str]:
    """Convert a DTSTART/DTEND value to ISO-8601 UTC.

    UTC ("Z") and TZID values are converted; floating times and all-day dates
    are taken as UTC.
    """
    value = value.strip()
    if not value:
        return None

    if params.get("VALUE", "").upper() == "DATE" or "T" not in value:
        return format_iso(datetime.strptime(value[:8], "%Y%m%d"))

    dt = datetime.strptime(value[:15], "%Y%m%dT%H%M%S")
    if value.endswith("Z"):
        dt = dt.replace(tzinfo=timezone.utc)
    elif "TZID" in params:
        try:
            dt = dt.replace(tzinfo=ZoneInfo(params["TZID"]))
        except (ZoneInfoNotFoundError, ValueError, OSError):
            # OSError: TZID naming a zone directory such as "America"
            console.print(f"[dim]Unknown TZID {params['TZID']}, assuming UTC[/dim]")
    return format_iso(dt)


def _organizer(params: dict[str, str], value: str) -> Optional[str]:
    if params.get("CN"):
        return unescape(params["CN"])
    value = re.sub(r"^mailto:", "", value, flags=re.I)
    return value or None


def extract_calendar(
    body: Union[bytes, str],
    source_url: str,
) -> Optional[ExtractedEvent]:
    """Extract the first VEVENT of a calendar payload.

    Returns None when the payload has no VEVENT or can't be parsed.
    """
    try:
        text = body.decode("utf-8-sig", errors="replace") if isinstance(body, bytes) else body
        block = VEVENT_PATTERN.search(unfold(text))
        if not block:
            return None

        properties = parse_properties(block.group(1))

        def text_value(name: str) -> Optional[str]:
            if name not in properties:
                return None
            return unescape(properties[name][1]).strip() or None

        data = ExtractedEvent(extraction_method="calendar")
        data.title = text_value("SUMMARY")
        data.description = text_value("DESCRIPTION")
        data.venue = text_value("LOCATION")
        data.canonical_url = text_value("URL")

        if "DTSTART" in properties:
            data.starts_at = parse_ical_datetime(properties["DTSTART"][1], properties["DTSTART"][0])
        if "DTEND" in properties:
            data.ends_at = parse_ical_datetime(properties["DTEND"][1], properties["DTEND"][0])
        if "ORGANIZER" in properties:
            data.organizer = _organizer(*properties["ORGANIZER"])

    except ValueError as e:
        # Malformed date values
        console.print(f"[yellow]Could not parse calendar from {source_url}: {e}[/yellow]")
        return None

    return data if data.has_signal() else None
