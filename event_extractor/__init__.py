"""Best-effort event detail extraction from arbitrary URLs."""

from event_extractor.extractors import extract_event, extract_event_with_chatgpt
from event_extractor.models import EventPayload

__all__ = [
    "extract_event",
    "extract_event_with_chatgpt",
    "EventPayload",
]
