"""
Regex grammar shared by the row classifier and the timestamp reconstructor.

Every date/time role gets its own pattern so that fragments can be searched
independently: the exports interleave "Monday, July 29," / "2025" /
"2:10:11 p.m." / "Eastern Standard Time" across cells and rows.
"""
import re
from typing import Dict, Tuple

DAY_OF_WEEK = re.compile(
    r"\b(monday|tuesday|wednesday|thursday|friday|saturday|sunday)\b", re.I
)
MONTH = re.compile(
    r"\b(january|february|march|april|may|june|july|august|september"
    r"|october|november|december)\b",
    re.I,
)
MONTH_SHORT = re.compile(r"\b(jan|feb|mar|apr|jun|jul|aug|sept?|oct|nov|dec)\b", re.I)
# 1-2 digits that are not part of a longer number or a clock time
DAY = re.compile(r"(?<![\d:])(\d{1,2})(?![\d:])")
YEAR = re.compile(r"\b(20\d{2})\b")
TIME = re.compile(
    r"(?<![\d:])(\d{1,2}):(\d{2})(?::(\d{2}))?\s*(a\.?\s?m\.?|p\.?\s?m\.?)?(?![a-z])",
    re.I,
)
MERIDIEM = re.compile(r"(?<![a-z])(a\.?\s?m\.?|p\.?\s?m\.?)(?![a-z])", re.I)
TIMEZONE = re.compile(
    r"\b((?:eastern|central|mountain|pacific)(?:\s+(?:standard|daylight))?(?:\s+time)?"
    r"|(?:standard|daylight)\s+time"
    r"|est|edt|et|cst|cdt|mst|mdt|pst|pdt|utc|gmt)\b",
    re.I,
)

# Order matters: clock times and years must be consumed before bare day numbers.
FRAGMENT_PATTERNS: Tuple[re.Pattern, ...] = (
    TIME,
    YEAR,
    DAY_OF_WEEK,
    MONTH,
    MONTH_SHORT,
    TIMEZONE,
    MERIDIEM,
    DAY,
)

# Words allowed to sit between date tokens inside one cell
FILLER_WORDS = frozenset({"at", "on", "of", "the"})

MONTH_NUMBERS: Dict[str, int] = {
    "january": 1, "jan": 1,
    "february": 2, "feb": 2,
    "march": 3, "mar": 3,
    "april": 4, "apr": 4,
    "may": 5,
    "june": 6, "jun": 6,
    "july": 7, "jul": 7,
    "august": 8, "aug": 8,
    "september": 9, "sep": 9, "sept": 9,
    "october": 10, "oct": 10,
    "november": 11, "nov": 11,
    "december": 12, "dec": 12,
}

PHONE_PATTERNS: Tuple[re.Pattern, ...] = (
    re.compile(r"^\+?1?\s*\(?(\d{3})\)?[-.\s]*(\d{3})[-.\s]*(\d{4})$"),
    re.compile(r"^(\d{10})$"),
    re.compile(r"^(\d{3})[-.\s](\d{3})[-.\s](\d{4})$"),
)
# Looser shape used when deciding whether a sender is a name or a number
PHONE_SHAPE = re.compile(r"^\+?[\d\s\-()]+$")

_WORD = re.compile(r"[a-z0-9]+")


def is_timestamp_fragment(text: str) -> bool:
    """
    True when the text is made only of date/time tokens (plus punctuation and
    a few filler words). "I may be late" mentions a month but is not a fragment.
    """
    if not any(p.search(text) for p in FRAGMENT_PATTERNS):
        return False

    leftover = text
    for pattern in FRAGMENT_PATTERNS:
        leftover = pattern.sub(" ", leftover)

    return all(w in FILLER_WORDS for w in _WORD.findall(leftover.lower()))


def is_phone_number(text: str) -> bool:
    return any(p.match(text.strip()) for p in PHONE_PATTERNS)


def words(text: str):
    return _WORD.findall(text.lower())
