"""Time-of-day / day-of-week parsing and the conflict predicate.

Listings describe meetings with two free-text fields:

- a time range such as ``"10:00am-11:50am"`` (or ``"TBA"``)
- a compact day string such as ``"MWF"`` or ``"TTh"``

Times are normalized to minutes since midnight. Anything we cannot parse is
treated as "no constraint": the section can never be a conflict source. That
keeps generation going when a listing is malformed; callers that care can
inspect `Section.has_unparseable_time`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Iterable, Optional, Tuple

import re


DAY_TOKENS: Tuple[str, ...] = ("M", "T", "W", "Th", "F")
DAY_NAMES = {"M": "Mon", "T": "Tue", "W": "Wed", "Th": "Thu", "F": "Fri"}

_TIME_RE = re.compile(r"^\s*(\d{1,2}):(\d{2})\s*(am|pm)\s*$", re.IGNORECASE)
_SINGLE_DAYS = {"M", "T", "W", "F"}


@dataclass(frozen=True)
class MeetingTime:
    day: str  # one of DAY_TOKENS
    start: int  # minutes since midnight
    end: int

    @property
    def day_name(self) -> str:
        return DAY_NAMES.get(self.day, self.day)


def _is_tba(text: Optional[str]) -> bool:
    return not text or not text.strip() or text.strip().upper() == "TBA"


def parse_time(token: str) -> Optional[int]:
    """'1:30pm' -> 810. None if the token is not of the form H:MMam|pm."""

    m = _TIME_RE.match(token or "")
    if not m:
        return None

    hours = int(m.group(1))
    minutes = int(m.group(2))
    period = m.group(3).lower()
    if hours > 12 or minutes > 59:
        return None

    if period == "pm" and hours != 12:
        hours += 12
    elif period == "am" and hours == 12:
        hours = 0

    return hours * 60 + minutes


def parse_time_range(text: Optional[str]) -> Optional[Tuple[int, int]]:
    """Parse '10:00am-11:50am' into (start, end) minutes.

    Returns None for TBA, malformed input, or an empty/inverted interval.
    """

    if _is_tba(text):
        return None

    parts = str(text).split("-")
    if len(parts) != 2:
        return None

    start = parse_time(parts[0])
    end = parse_time(parts[1])
    if start is None or end is None or end <= start:
        return None
    return start, end


def parse_days(text: Optional[str]) -> Tuple[str, ...]:
    """Split 'TTh' into ('T', 'Th'); 'Th' is tried before single letters.

    Matching ignores case, so 'tth' and 'MW' both parse.
    """

    if _is_tba(text):
        return ()

    s = str(text).strip()
    days = []
    i = 0
    while i < len(s):
        if s[i : i + 2].lower() == "th":
            days.append("Th")
            i += 2
        elif s[i].upper() in _SINGLE_DAYS:
            days.append(s[i].upper())
            i += 1
        else:
            # separators/unknown letters carry no day
            i += 1
    return tuple(days)


def build_meeting_times(time_text: Optional[str], days_text: Optional[str]) -> Tuple[MeetingTime, ...]:
    """One MeetingTime per parsed day. Empty when either field is unusable."""

    rng = parse_time_range(time_text)
    days = parse_days(days_text)
    if rng is None or not days:
        return ()

    start, end = rng
    seen = []
    for d in days:
        if d not in seen:
            seen.append(d)
    return tuple(MeetingTime(day=d, start=start, end=end) for d in seen)


def is_unparseable(time_text: Optional[str], days_text: Optional[str]) -> bool:
    """True when a listing has time/day text that is not TBA but cannot be parsed."""

    if _is_tba(time_text) or _is_tba(days_text):
        return False
    return parse_time_range(time_text) is None or not parse_days(days_text)


def meetings_conflict(a: MeetingTime, b: MeetingTime) -> bool:
    # half-open: back-to-back meetings never overlap
    return a.day == b.day and a.start < b.end and b.start < a.end


def sections_conflict(a, b) -> bool:
    """True iff any meeting of `a` overlaps any meeting of `b`.

    Sections without meeting times (TBA) never conflict.
    """

    times_a = getattr(a, "meeting_times", ()) or ()
    times_b = getattr(b, "meeting_times", ()) or ()
    if not times_a or not times_b:
        return False

    for ma in times_a:
        for mb in times_b:
            if meetings_conflict(ma, mb):
                return True
    return False


ConflictFn = Callable[[object, object], bool]


def conflicts_with_any(section, chosen: Iterable, conflict: ConflictFn = sections_conflict) -> bool:
    for other in chosen:
        if conflict(section, other):
            return True
    return False


def format_minutes(minutes: int) -> str:
    """720 -> '12:00 PM'."""

    hours, mins = divmod(int(minutes), 60)
    period = "AM" if hours < 12 else "PM"
    h12 = hours % 12 or 12
    return f"{h12}:{mins:02d} {period}"
