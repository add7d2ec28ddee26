"""
Time-of-day parsing and wraparound duration arithmetic.

Every time value entering the reconciler passes through
``parse_time_of_day`` so that comparisons between freshly submitted and
stored times never depend on how the raw string happened to be written.
"""

import re
from dataclasses import dataclass
from datetime import datetime, time

import pendulum

from .exceptions import InvalidTimeFormat

SECONDS_PER_DAY = 24 * 60 * 60

_CLOCK_PATTERN = re.compile(
    r"^(?P<hour>\d{1,2})"
    r"(?::(?P<minute>\d{1,2})(?::(?P<second>\d{1,2})(?:\.\d+)?)?)?"
    r"\s*(?P<meridiem>[AaPp]\.?\s?[Mm]\.?)?$"
)


@dataclass(frozen=True, order=True)
class TimeOfDay:
    """
    A wall-clock time on a 24-hour day, stored as seconds since midnight.

    Invariant: 0 <= seconds < 86400.
    """
    seconds: int

    def __post_init__(self):
        if not 0 <= self.seconds < SECONDS_PER_DAY:
            raise InvalidTimeFormat(
                f"Seconds since midnight must be in [0, {SECONDS_PER_DAY - 1}], got {self.seconds}"
            )

    @classmethod
    def from_hms(cls, hour: int, minute: int = 0, second: int = 0) -> "TimeOfDay":
        """Build a TimeOfDay from clock components, validating each one."""
        if not 0 <= hour <= 23 or not 0 <= minute <= 59 or not 0 <= second <= 59:
            raise InvalidTimeFormat(
                f"Clock components out of range: {hour:02d}:{minute:02d}:{second:02d}"
            )
        return cls(hour * 3600 + minute * 60 + second)

    @property
    def hour(self) -> int:
        return self.seconds // 3600

    @property
    def minute(self) -> int:
        return self.seconds % 3600 // 60

    @property
    def second(self) -> int:
        return self.seconds % 60

    def __str__(self) -> str:
        return f"{self.hour:02d}:{self.minute:02d}:{self.second:02d}"


def parse_time_of_day(raw) -> TimeOfDay:
    """
    Parse a time-of-day value into its canonical form.

    Accepts ``H:MM``/``HH:MM:SS`` clock strings with or without leading
    zeros, 12-hour strings with a meridiem (``8 PM``, ``8:30am``), ISO
    date-times (only the clock part is kept) and ``datetime.time`` /
    ``datetime.datetime`` objects.

    Args:
        raw: The value to parse

    Returns:
        TimeOfDay instance

    Raises:
        InvalidTimeFormat: If the value is not a recognisable time of day
    """
    if isinstance(raw, datetime):
        return TimeOfDay.from_hms(raw.hour, raw.minute, raw.second)
    if isinstance(raw, time):
        return TimeOfDay.from_hms(raw.hour, raw.minute, raw.second)
    if not isinstance(raw, str):
        raise InvalidTimeFormat(f"Expected a time string, got {type(raw).__name__}")

    text = raw.strip()
    if not text:
        raise InvalidTimeFormat("Empty time value")

    match = _CLOCK_PATTERN.match(text)
    if match and (match.group("minute") is not None or match.group("meridiem")):
        return _from_clock_match(match, raw)

    return _from_iso(text, raw)


def _from_clock_match(match: re.Match, raw: str) -> TimeOfDay:
    hour = int(match.group("hour"))
    minute = int(match.group("minute") or 0)
    second = int(match.group("second") or 0)
    meridiem = match.group("meridiem")

    if meridiem:
        if not 1 <= hour <= 12:
            raise InvalidTimeFormat(f"Invalid 12-hour time: '{raw}'")
        is_pm = meridiem[0] in "Pp"
        if hour == 12:
            hour = 12 if is_pm else 0
        elif is_pm:
            hour += 12

    try:
        return TimeOfDay.from_hms(hour, minute, second)
    except InvalidTimeFormat as exc:
        raise InvalidTimeFormat(f"Invalid time '{raw}': {exc}") from exc


def _from_iso(text: str, raw: str) -> TimeOfDay:
    try:
        parsed = pendulum.parse(text, exact=True)
    except (ValueError, OverflowError) as exc:
        raise InvalidTimeFormat(f"Unable to parse time '{raw}'") from exc

    # Bare dates and durations carry no clock reading
    if isinstance(parsed, (datetime, time)):
        return TimeOfDay.from_hms(parsed.hour, parsed.minute, parsed.second)

    raise InvalidTimeFormat(f"'{raw}' is not a time of day")


def to_seconds(value: TimeOfDay) -> int:
    """Return seconds since midnight, in [0, 86399]."""
    return value.seconds


def duration_seconds(start: TimeOfDay, end: TimeOfDay) -> int:
    """
    Duration from start to end on a 24-hour clock.

    An end earlier than the start is read as spanning midnight, so
    23:00 -> 01:00 is two hours. Equal times yield zero.
    """
    start_s = to_seconds(start)
    end_s = to_seconds(end)

    if end_s >= start_s:
        return end_s - start_s

    return (SECONDS_PER_DAY - start_s) + end_s
