"""Data models for event extraction."""

from event_extractor.models.event import EVENT_FIELDS, EventPayload, ExtractedEvent

__all__ = [
    "EVENT_FIELDS",
    "EventPayload",
    "ExtractedEvent",
]
