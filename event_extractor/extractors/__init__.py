"""URL → event extraction engine.

This module provides a unified extraction pipeline that:
1. Fetches the URL (HTML page or iCalendar feed)
2. Extracts event metadata using multiple strategies:
   - iCalendar VEVENT (calendar responses only)
   - Schema.org JSON-LD
   - OpenGraph / Twitter / standard meta tags
   - HTML heuristics (title, blurb, date ranges, city/state, organizer)
3. Merges them by fixed field precedence into one EventPayload

An LLM-based extractor with the same output contract is available as an
alternative entry point.
"""

from event_extractor.extractors.fetch import fetch_page, FetchResult
from event_extractor.extractors.calendar import extract_calendar
from event_extractor.extractors.structured import extract_structured_data
from event_extractor.extractors.meta import extract_meta_tags
from event_extractor.extractors.heuristics import extract_heuristics
from event_extractor.extractors.pipeline import FIELD_PRECEDENCE, extract_event, merge_extracted
from event_extractor.extractors.llm import extract_event_with_chatgpt

__all__ = [
    "fetch_page",
    "FetchResult",
    "extract_calendar",
    "extract_structured_data",
    "extract_meta_tags",
    "extract_heuristics",
    "FIELD_PRECEDENCE",
    "extract_event",
    "merge_extracted",
    "extract_event_with_chatgpt",
]
