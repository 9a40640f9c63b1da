import random
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional, Sequence
from zoneinfo import ZoneInfo

from loguru import logger

from textrecon.ingestion import patterns
from textrecon.ingestion.schema import ReconstructedTimestamp

DEFAULT_ANCHOR = datetime(2025, 8, 16, 20, 44, 26, tzinfo=timezone.utc)


@dataclass
class TimestampParts:
    """Date/time roles found in a joined fragment string."""
    day_of_week: Optional[str] = None
    month: Optional[str] = None
    day: Optional[str] = None
    year: Optional[str] = None
    time: Optional[str] = None
    hours: Optional[str] = None
    minutes: Optional[str] = None
    seconds: Optional[str] = None
    period: Optional[str] = None
    timezone: Optional[str] = None


def _first(pattern, text: str) -> Optional[str]:
    match = pattern.search(text)
    return match.group(1) if match else None


def extract_parts(fragments: Sequence[str]) -> TimestampParts:
    """
    Search each date/time role independently so that missing or duplicated
    fragments only cost the role they carry.
    """
    text = " ".join(f.strip() for f in fragments if f and f.strip())
    text = " ".join(text.split())

    parts = TimestampParts(
        day_of_week=_first(patterns.DAY_OF_WEEK, text),
        month=_first(patterns.MONTH, text) or _first(patterns.MONTH_SHORT, text),
        year=_first(patterns.YEAR, text),
        timezone=_first(patterns.TIMEZONE, text),
    )

    time_match = patterns.TIME.search(text)
    if time_match:
        parts.time = time_match.group(0).strip()
        parts.hours, parts.minutes, parts.seconds, parts.period = time_match.groups()
        # a day number cannot come from the clock time
        text = text[: time_match.start()] + " " + text[time_match.end():]

    if parts.period is None:
        parts.period = _first(patterns.MERIDIEM, text)

    parts.day = _first(patterns.DAY, text)
    return parts


class TimestampReconstructor:
    """
    Merges scattered date/time fragments into one ISO-8601 instant.

    Wall-clock times are read in one fixed timezone. When no absolute date can
    be built, a synthetic fallback instant below ``anchor`` is produced instead.
    """

    def __init__(
        self,
        tz: str = "America/New_York",
        rng: Optional[random.Random] = None,
        anchor: datetime = DEFAULT_ANCHOR,
        window_days: int = 30,
        strategy: str = "random",
    ):
        if strategy not in ("random", "sequential"):
            raise ValueError(f"Unknown fallback strategy: {strategy}")
        self.tz = ZoneInfo(tz)
        self.rng = rng or random.Random()
        self.anchor = anchor if anchor.tzinfo else anchor.replace(tzinfo=timezone.utc)
        self.window = timedelta(days=window_days)
        self.strategy = strategy
        self._fallbacks_issued = 0

    def reconstruct(self, fragments: Sequence[str]) -> Optional[ReconstructedTimestamp]:
        """Returns None only for an empty fragment list."""
        if not fragments:
            return None

        logger.debug(f"Reconstructing timestamp from {list(fragments)}")
        parts = extract_parts(fragments)

        try:
            built = self._build(parts)
        except ValueError as e:
            logger.debug(f"Timestamp components out of range: {e}")
            built = None

        if built is not None:
            return ReconstructedTimestamp(timestamp=built.isoformat(), parse_success=True)

        logger.warning(f"Using fallback timestamp for fragments {list(fragments)}")
        return self.fallback()

    def fallback(self) -> ReconstructedTimestamp:
        """Synthetic instant inside [anchor - window, anchor]."""
        if self.strategy == "sequential":
            # successive fallbacks keep their row order
            offset = self.window - timedelta(seconds=self._fallbacks_issued)
            offset = max(offset, timedelta(0))
        else:
            offset = self.window * self.rng.random()
        self._fallbacks_issued += 1

        instant = self.anchor - offset
        return ReconstructedTimestamp(
            timestamp=instant.isoformat(), parse_success=False, fallback=True
        )

    def _build(self, parts: TimestampParts) -> Optional[datetime]:
        if not (parts.month and parts.day and parts.year):
            return None

        month = patterns.MONTH_NUMBERS.get(parts.month.lower())
        if month is None:
            return None

        hours, minutes, seconds = 12, 0, 0  # noon when no clock time survived
        if parts.hours is not None:
            hours = int(parts.hours)
            minutes = int(parts.minutes)
            seconds = int(parts.seconds) if parts.seconds else 0

            if parts.period:
                is_pm = parts.period.lower().startswith("p")
                if is_pm and hours < 12:
                    hours += 12
                if not is_pm and hours == 12:
                    hours = 0

        return datetime(
            int(parts.year), month, int(parts.day), hours, minutes, seconds, tzinfo=self.tz
        )
