"""City/state parsing for free-text event locations.

US-centric on purpose: "City, ST", "City, State" and "City ST" are the only
shapes recognised, and the state must be a real US state or DC.
"""

import re
from typing import Optional

# US state abbreviations to full names
US_STATES = {
    "AL": "Alabama", "AK": "Alaska", "AZ": "Arizona", "AR": "Arkansas",
    "CA": "California", "CO": "Colorado", "CT": "Connecticut", "DE": "Delaware",
    "FL": "Florida", "GA": "Georgia", "HI": "Hawaii", "ID": "Idaho",
    "IL": "Illinois", "IN": "Indiana", "IA": "Iowa", "KS": "Kansas",
    "KY": "Kentucky", "LA": "Louisiana", "ME": "Maine", "MD": "Maryland",
    "MA": "Massachusetts", "MI": "Michigan", "MN": "Minnesota", "MS": "Mississippi",
    "MO": "Missouri", "MT": "Montana", "NE": "Nebraska", "NV": "Nevada",
    "NH": "New Hampshire", "NJ": "New Jersey", "NM": "New Mexico", "NY": "New York",
    "NC": "North Carolina", "ND": "North Dakota", "OH": "Ohio", "OK": "Oklahoma",
    "OR": "Oregon", "PA": "Pennsylvania", "RI": "Rhode Island", "SC": "South Carolina",
    "SD": "South Dakota", "TN": "Tennessee", "TX": "Texas", "UT": "Utah",
    "VT": "Vermont", "VA": "Virginia", "WA": "Washington", "WV": "West Virginia",
    "WI": "Wisconsin", "WY": "Wyoming", "DC": "District of Columbia",
}
US_STATE_CODES = {name.lower(): code for code, name in US_STATES.items()}

# Words that mark a venue name rather than a city
NOISE_WORDS = {
    "hotel", "convention", "center", "centre", "venue", "location", "address",
    "hall", "ballroom", "suite", "room", "floor", "building",
}

# Title-case words only, so shouted headings ("GET IN") don't read as places
CITY = r"[A-Z][a-z][A-Za-z.'\-]*(?: [A-Z][a-z][A-Za-z.'\-]*){0,3}"
ZIP = r"\d{5}(?:-\d{4})?"
STATE_NAMES = "|".join(
    re.escape(name) for name in sorted(US_STATES.values(), key=len, reverse=True)
)

CITY_STATE_PATTERNS = [
    # Austin, TX / Austin, TX 78701
    re.compile(rf"({CITY}),[ \t]*([A-Z]{{2}})\b(?:,?[ \t]+{ZIP})?"),
    # Cleveland, Ohio
    re.compile(rf"({CITY}),[ \t]*({STATE_NAMES})\b"),
    # Austin TX (end of line)
    re.compile(rf"({CITY})[ \t]+([A-Z]{{2}})(?:[ \t]+{ZIP})?[ \t]*$", re.MULTILINE),
]


def state_code(state: str) -> Optional[str]:
    """Two-letter code for a US state code or name, else None."""
    state = state.strip()
    if state.upper() in US_STATES and len(state) == 2:
        return state.upper()
    return US_STATE_CODES.get(state.lower())


def is_venue_noise(city: str) -> bool:
    """True if the candidate city looks like part of a venue name."""
    words = re.findall(r"[a-z]+", city.lower())
    return any(word in NOISE_WORDS for word in words)


def parse_city_state(text: str) -> Optional[tuple[str, str]]:
    """Find the first plausible (city, state code) pair in text."""
    if not text:
        return None

    for pattern in CITY_STATE_PATTERNS:
        for match in pattern.finditer(text):
            city = match.group(1).strip()
            code = state_code(match.group(2))
            if not code or len(city) <= 2 or is_venue_noise(city):
                continue
            return city, code

    return None
