"""Normalizers for dates and locations found in event pages."""

from event_extractor.normalizers.dates import find_event_dates, format_iso, to_iso
from event_extractor.normalizers.location import parse_city_state, state_code

__all__ = [
    "find_event_dates",
    "format_iso",
    "to_iso",
    "parse_city_state",
    "state_code",
]
