"""Region detection for article headlines and URLs."""

import re


DEFAULT_REGION = "National"

REGIONS = ("National", "West", "Southwest", "Midwest", "South", "Northeast")

REGION_STATES: dict[str, list[str]] = {
    "West": ["California", "Oregon", "Washington", "Alaska", "Hawaii"],
    "Southwest": ["Arizona", "New Mexico", "Nevada", "Utah"],
    "Midwest": [
        "North Dakota", "South Dakota", "Nebraska", "Kansas", "Minnesota",
        "Iowa", "Missouri", "Illinois", "Indiana", "Michigan", "Ohio",
    ],
    "South": [
        "Texas", "Oklahoma", "Arkansas", "Louisiana", "Kentucky", "Tennessee",
        "Mississippi", "Alabama", "Georgia", "Florida", "South Carolina",
        "North Carolina", "West Virginia", "Virginia",
    ],
    "Northeast": [
        "Pennsylvania", "New York", "New Jersey", "Connecticut", "Rhode Island",
        "Massachusetts", "Vermont", "New Hampshire", "Maine", "Delaware", "Maryland",
    ],
}

STATE_ABBREVIATIONS: dict[str, str] = {
    "AL": "Alabama", "AK": "Alaska", "AZ": "Arizona", "AR": "Arkansas",
    "CA": "California", "CT": "Connecticut", "DE": "Delaware", "FL": "Florida",
    "GA": "Georgia", "HI": "Hawaii", "IL": "Illinois", "IN": "Indiana",
    "IA": "Iowa", "KS": "Kansas", "KY": "Kentucky", "LA": "Louisiana",
    "ME": "Maine", "MD": "Maryland", "MA": "Massachusetts", "MI": "Michigan",
    "MN": "Minnesota", "MS": "Mississippi", "MO": "Missouri", "NE": "Nebraska",
    "NV": "Nevada", "NH": "New Hampshire", "NJ": "New Jersey", "NM": "New Mexico",
    "NY": "New York", "NC": "North Carolina", "ND": "North Dakota", "OH": "Ohio",
    "OK": "Oklahoma", "OR": "Oregon", "PA": "Pennsylvania", "RI": "Rhode Island",
    "SC": "South Carolina", "SD": "South Dakota", "TN": "Tennessee", "TX": "Texas",
    "UT": "Utah", "VT": "Vermont", "VA": "Virginia", "WA": "Washington",
    "WV": "West Virginia",
}

# Abbreviations that are also common English words in all-caps headlines
AMBIGUOUS_ABBREVIATIONS = frozenset({"IN", "OR", "ME", "OK", "HI", "OH", "LA", "MA", "PA", "DE"})

CITY_STATES: dict[str, str] = {
    "new york city": "New York",
    "nyc": "New York",
    "manhattan": "New York",
    "brooklyn": "New York",
    "boston": "Massachusetts",
    "philadelphia": "Pennsylvania",
    "los angeles": "California",
    "san francisco": "California",
    "san diego": "California",
    "seattle": "Washington",
    "portland": "Oregon",
    "phoenix": "Arizona",
    "las vegas": "Nevada",
    "denver": "Colorado",
    "dallas": "Texas",
    "houston": "Texas",
    "austin": "Texas",
    "chicago": "Illinois",
    "detroit": "Michigan",
    "minneapolis": "Minnesota",
    "atlanta": "Georgia",
    "miami": "Florida",
    "orlando": "Florida",
    "charlotte": "North Carolina",
    "nashville": "Tennessee",
}

# States outside the five groups (Colorado, Montana, ...) fall back to these
EXTRA_STATE_REGIONS = {"Colorado": "West", "Montana": "West", "Idaho": "West",
                       "Wyoming": "West", "Wisconsin": "Midwest"}

_STATE_TO_REGION = {
    state: region for region, states in REGION_STATES.items() for state in states
}
_STATE_TO_REGION.update(EXTRA_STATE_REGIONS)

# Longest names first so "West Virginia" wins over "Virginia"
_STATE_NAMES = sorted(_STATE_TO_REGION, key=len, reverse=True)


def region_for_state(state: str) -> str:
    """Return the region group a state belongs to, or the default region."""
    return _STATE_TO_REGION.get(state, DEFAULT_REGION)


def detect_region(text: str) -> str:
    """Detect the region a headline refers to.

    Checks full state names, then unambiguous state abbreviations, then
    well-known metro names. Returns DEFAULT_REGION when nothing matches.

    Example:
        >>> detect_region("Dallas Industrial Portfolio Trades for $200M")
        'South'
        >>> detect_region("Office Distress Spreads Nationwide")
        'National'
    """
    if not text:
        return DEFAULT_REGION

    lowered = text.lower()
    for state in _STATE_NAMES:
        if re.search(rf"\b{re.escape(state.lower())}\b", lowered):
            return region_for_state(state)

    for abbr, state in STATE_ABBREVIATIONS.items():
        if abbr in AMBIGUOUS_ABBREVIATIONS:
            continue
        if re.search(rf"\b{abbr}\b", text):
            return region_for_state(state)

    for city, state in CITY_STATES.items():
        if re.search(rf"\b{re.escape(city)}\b", lowered):
            return region_for_state(state)

    return DEFAULT_REGION
