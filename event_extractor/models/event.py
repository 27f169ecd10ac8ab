"""Data models for event extraction."""

import hashlib
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Fields shared by partial records and the final payload
EVENT_FIELDS = (
    "canonical_url",
    "title",
    "description",
    "starts_at",
    "ends_at",
    "city",
    "state",
    "country",
    "venue",
    "organizer",
)


def _read_only(self, *args: Any, **kwargs: Any) -> None:
    raise TypeError(f"{type(self).__name__} is read-only")


class ReadOnlyList(list):
    """List that refuses in-place changes."""

    __setitem__ = __delitem__ = __iadd__ = __imul__ = _read_only
    append = extend = insert = pop = remove = clear = sort = reverse = _read_only

    def __reduce__(self):
        return ReadOnlyList, (list(self),)


class ReadOnlyDict(dict):
    """Dict that refuses in-place changes."""

    __setitem__ = __delitem__ = __ior__ = _read_only
    clear = pop = popitem = setdefault = update = _read_only

    def __reduce__(self):
        return ReadOnlyDict, (dict(self),)


def freeze(value: Any) -> Any:
    """Read-only copy of nested dicts and lists."""
    if isinstance(value, dict):
        return ReadOnlyDict((k, freeze(v)) for k, v in value.items())
    if isinstance(value, list):
        return ReadOnlyList(freeze(v) for v in value)
    return value


class ExtractedEvent(BaseModel):
    """Partial event record produced by a single extractor."""

    canonical_url: Optional[str] = None
    title: Optional[str] = None
    description: Optional[str] = None

    # Dates (ISO-8601 UTC)
    starts_at: Optional[str] = None
    ends_at: Optional[str] = None

    # Location
    city: Optional[str] = None
    state: Optional[str] = None
    country: Optional[str] = None
    venue: Optional[str] = None

    organizer: Optional[str] = None

    extraction_method: str = "unknown"

    model_config = ConfigDict(extra="ignore")

    def has_signal(self) -> bool:
        """True if any event field is populated."""
        return any(getattr(self, field) for field in EVENT_FIELDS)


class EventPayload(BaseModel):
    """Extraction result handed to the review workflow."""

    source_url: str = Field(alias="sourceUrl")
    canonical_url: Optional[str] = Field(default=None, alias="canonicalUrl")
    title: Optional[str] = None
    description: Optional[str] = None
    starts_at: Optional[str] = Field(default=None, alias="startsAt")
    ends_at: Optional[str] = Field(default=None, alias="endsAt")
    city: Optional[str] = None
    state: Optional[str] = None
    country: Optional[str] = None
    venue: Optional[str] = None
    organizer: Optional[str] = None

    # Diagnostics only (method, status, errors, token usage)
    raw: Optional[dict[str, Any]] = None

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    @field_validator("raw")
    @classmethod
    def freeze_raw(cls, value: Optional[dict[str, Any]]) -> Optional[dict[str, Any]]:
        return freeze(value) if value is not None else None

    @classmethod
    def minimal(
        cls,
        source_url: str,
        canonical_url: Optional[str] = None,
        **raw: Any,
    ) -> "EventPayload":
        """Payload carrying only the URLs plus diagnostics."""
        return cls(
            source_url=source_url,
            canonical_url=canonical_url or source_url,
            raw=raw or None,
        )

    def to_wire(self) -> dict[str, Any]:
        """camelCase dict with absent fields dropped."""
        return self.model_dump(by_alias=True, exclude_none=True)

    def dedupe_key(self) -> str:
        """Key used to spot the same event submitted twice."""
        base = f"{(self.title or '').lower()}|{self.starts_at or ''}|{(self.organizer or '').lower()}"
        return hashlib.sha1(base.encode()).hexdigest()
