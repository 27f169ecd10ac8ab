"""Date normalization and free-text date search.

Every date leaving the extractors goes through ``to_iso`` or
``find_event_dates`` so payloads only ever carry ISO-8601 UTC strings.
"""

import re
from datetime import date, datetime, timedelta, timezone
from typing import Optional, Union

import dateparser

MONTH_NAMES = [
    r"Jan(?:uary)?", r"Feb(?:ruary)?", r"Mar(?:ch)?", r"Apr(?:il)?", r"May", r"June?",
    r"July?", r"Aug(?:ust)?", r"Sep(?:t(?:ember)?)?", r"Oct(?:ober)?", r"Nov(?:ember)?",
    r"Dec(?:ember)?",
]
# Title case or shouted only, so the verb "may" is never a month
MONTH = "(?-i:" + "|".join(MONTH_NAMES + [name.upper() for name in MONTH_NAMES]) + r")\.?"
DAY = r"\d{1,2}(?:st|nd|rd|th)?"
YEAR = r"\d{4}"
CLOCK = r"\d{1,2}(?::\d{2})?\s*[ap]\.?m\.?(?![a-z])"
TIME = rf"(?:,?\s*(?:at|@|from)?\s*{CLOCK})"

ISO_DATE = r"\b\d{4}-\d{2}-\d{2}"
NUMERIC_DATE = r"\b\d{1,2}/\d{1,2}/\d{4}\b"
US_DATE = rf"\b{MONTH}\s+{DAY}\b(?:,?\s+{YEAR}\b)?"
EU_DATE = rf"\b{DAY}\s+{MONTH}(?:,?\s+{YEAR}\b)?"
DAY_TEXT = "(?:" + "|".join([ISO_DATE, NUMERIC_DATE, US_DATE, EU_DATE]) + ")"

# Single dates, most specific first
DATE_PATTERNS = [
    # ISO: 2026-01-15 or 2026-01-15T09:00
    rf"{ISO_DATE}(?:[T ]\d{{2}}:\d{{2}}(?::\d{{2}})?|{TIME})?",
    # Numeric: 01/15/2026 at 7:00 PM
    rf"{NUMERIC_DATE}{TIME}?",
    # US: January 15, 2026 / Jan 15 / Jan 15th 2026 at 9am
    rf"{US_DATE}{TIME}?",
    # European: 15 January 2026
    rf"{EU_DATE}{TIME}?",
]
SINGLE_DATE = "(?:" + "|".join(DATE_PATTERNS) + ")"
RANGE_SEPARATOR = r"\s*(?:-|–|—|to|through|thru|until)\s*"

RANGE_PATTERNS = [
    # March 30 - April 2, 2026 / 2026-03-01 to 2026-03-03
    re.compile(rf"({SINGLE_DATE}){RANGE_SEPARATOR}({SINGLE_DATE})", re.I),
    # March 1-3, 2026
    re.compile(
        rf"\b({MONTH})\s+({DAY}){RANGE_SEPARATOR}({DAY})\b(?:,?\s+({YEAR})\b)?", re.I
    ),
    # 1-3 March 2026
    re.compile(
        rf"\b({DAY})\s*(?:-|–|—)\s*({DAY})\s+({MONTH})(?:,?\s+({YEAR})\b)?", re.I
    ),
    # March 7, 2026 6:00 PM - 9:00 PM
    re.compile(rf"({DAY_TEXT})({TIME}){RANGE_SEPARATOR}({CLOCK})", re.I),
]
SAME_DAY_RANGE = 3
SINGLE_PATTERN = re.compile(SINGLE_DATE, re.I)

DATEPARSER_SETTINGS = {
    "PREFER_DATES_FROM": "future",
    "PREFER_DAY_OF_MONTH": "first",
    "DATE_ORDER": "MDY",
    "RETURN_AS_TIMEZONE_AWARE": False,
}


def format_iso(dt: Union[datetime, date]) -> str:
    """Format as ISO-8601 UTC with milliseconds, e.g. 2026-03-01T00:00:00.000Z.

    Naive datetimes are taken to be UTC already.
    """
    if not isinstance(dt, datetime):
        dt = datetime(dt.year, dt.month, dt.day)
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc).replace(tzinfo=None)
    return dt.strftime("%Y-%m-%dT%H:%M:%S.") + f"{dt.microsecond // 1000:03d}Z"


def utc_now() -> datetime:
    """Current UTC time as a naive datetime."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_iso(value: Union[str, date, datetime, None]) -> Optional[str]:
    """Normalize a structured date value, or None if it can't be read."""
    if value is None:
        return None
    if isinstance(value, (date, datetime)):
        return format_iso(value)
    if not isinstance(value, str):
        return None

    value = value.strip()
    if not value:
        return None

    try:
        return format_iso(datetime.fromisoformat(value.replace("Z", "+00:00")))
    except ValueError:
        pass

    parsed = dateparser.parse(
        value,
        languages=["en"],
        settings={"TIMEZONE": "UTC", "TO_TIMEZONE": "UTC", "RETURN_AS_TIMEZONE_AWARE": True},
    )
    return format_iso(parsed) if parsed else None


def _clean(text: str) -> str:
    text = re.sub(r"(\d)(?:st|nd|rd|th)\b", r"\1", text, flags=re.I)
    text = re.sub(r"\s*(?:\bat\b|@|\bfrom\b)\s*", " ", text, flags=re.I)
    return re.sub(r"\s+", " ", text).strip(" ,")


def _has_year(text: str) -> bool:
    return bool(re.search(r"\b\d{4}\b", text))


def parse_date_text(text: str, now: Optional[datetime] = None) -> Optional[datetime]:
    """Parse one date expression, resolving missing years toward the future."""
    text = _clean(text)
    if not text:
        return None

    iso = re.match(r"^(\d{4}-\d{2}-\d{2})(.*)$", text)
    if iso:
        try:
            return datetime.fromisoformat(text)
        except ValueError:
            pass
        try:
            day = date.fromisoformat(iso.group(1))
        except ValueError:
            return None
        # "2026-05-04 7pm": spell the date out so dateparser only reads the time
        text = f"{day:%B} {day.day}, {day.year} {iso.group(2).strip()}"

    base = now or utc_now()
    if base.tzinfo is not None:
        base = base.astimezone(timezone.utc).replace(tzinfo=None)

    settings = dict(DATEPARSER_SETTINGS)
    settings["RELATIVE_BASE"] = base
    return dateparser.parse(text, languages=["en"], settings=settings)


def _parse_range(
    start_text: str,
    end_text: str,
    now: Optional[datetime],
    same_day: bool = False,
) -> Optional[tuple[datetime, datetime]]:
    end = parse_date_text(end_text, now)
    if end is None:
        return None

    inherited = False
    if not _has_year(start_text) and _has_year(end_text):
        start_text = f"{_clean(start_text)} {end.year}"
        inherited = True

    start = parse_date_text(start_text, now)
    if start is None:
        return None

    if end < start:
        if same_day:
            # 10:00 PM - 1:00 AM
            end += timedelta(days=1)
        elif inherited:
            # Dec 30 - Jan 2, 2027
            start = start.replace(year=start.year - 1)
        elif not _has_year(end_text):
            end = end.replace(year=end.year + 1)
        else:
            return None
    return start, end


def _range_texts(match: re.Match, index: int) -> tuple[str, str]:
    """Split a range match into (start, end) date expressions."""
    if index == 0:
        return match.group(1), match.group(2)
    if index == 1:
        month, first, last, year = match.groups()
        suffix = f", {year}" if year else ""
        return f"{month} {first}{suffix}", f"{month} {last}{suffix}"
    if index == SAME_DAY_RANGE:
        day, start_time, end_time = match.groups()
        return f"{day} {start_time.strip(' ,')}", f"{day} {end_time}"
    first, last, month, year = match.groups()
    suffix = f" {year}" if year else ""
    return f"{first} {month}{suffix}", f"{last} {month}{suffix}"


def find_event_dates(
    text: str,
    now: Optional[datetime] = None,
) -> tuple[Optional[str], Optional[str]]:
    """Find (start, end) in page text.

    The earliest date range wins; without one, the first single date is used
    for both start and end.
    """
    if not text:
        return None, None

    candidates = []
    for index, pattern in enumerate(RANGE_PATTERNS):
        for match in pattern.finditer(text):
            candidates.append((match.start(), -len(match.group(0)), index, match))
    candidates.sort(key=lambda c: (c[0], c[1], c[2]))

    for _, _, index, match in candidates:
        start_text, end_text = _range_texts(match, index)
        parsed = _parse_range(start_text, end_text, now, same_day=index == SAME_DAY_RANGE)
        if parsed:
            start, end = parsed
            return format_iso(start), format_iso(end)

    for match in SINGLE_PATTERN.finditer(text):
        parsed = parse_date_text(match.group(0), now)
        if parsed:
            iso = format_iso(parsed)
            return iso, iso

    return None, None
