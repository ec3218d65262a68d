"""Parsing and normalization of clock readings found on time records."""

import re
from typing import Iterable, List, Optional, Sequence, Tuple

from .models import TimeOfDay, WordFragment

# "10:52PM", "10.52PM", "10 52PM"
COMPACT_TIME_RE = re.compile(r'^(\d{1,2})\s*[:.\s]\s*(\d{2})(AM|PM)$', re.IGNORECASE)
# "10:52 PM", "10.52 PM", "10 52 PM"
SPACED_TIME_RE = re.compile(r'^(\d{1,2})\s*[:.\s]\s*(\d{2})\s*(AM|PM)$', re.IGNORECASE)
# "10:52" waiting for a meridiem in the next fragment
BARE_TIME_RE = re.compile(r'^(\d{1,2})\s*[:.\s]\s*(\d{2})$')
MERIDIEM_RE = re.compile(r'^(AM|PM)$', re.IGNORECASE)

# Column headers that would otherwise look like meridiem markers
NOISE_TOKEN_RE = re.compile(
    r'^(A\.?M\.?|P\.?M\.?|Arrival|Departure|Late|U-?Time|Mins\.?)$',
    re.IGNORECASE,
)

CANONICAL_TIME_RE = re.compile(r'^(\d{1,2}):(\d{2})\s?(AM|PM)$', re.IGNORECASE)

# Time tokens inside a running text stream
LAYOUT_TIME_RE = re.compile(r'\b(\d{1,2})\s*[:.]\s*(\d{2})\s*(AM|PM)\b', re.IGNORECASE)


def normalize_time(hh: str, mm: str, ap: str) -> str:
    """
    Canonical display form of a clock reading.

    Args:
        hh: Hour digits, with or without a leading zero
        mm: Two minute digits
        ap: Meridiem in any case

    Returns:
        String like ``"7:05 PM"``
    """
    return f"{int(hh)}:{mm} {ap.upper()}"


def is_noise_token(text: str) -> bool:
    """Check if a fragment is a column header rather than data."""
    return bool(NOISE_TOKEN_RE.match(text or ''))


def parse_time(text: str) -> Optional[TimeOfDay]:
    """Parse a canonical time string into a TimeOfDay, or None if malformed."""
    if not text or not isinstance(text, str):
        return None
    m = CANONICAL_TIME_RE.match(text.strip())
    if not m:
        return None
    try:
        return TimeOfDay(hour=int(m.group(1)), minute=int(m.group(2)), meridiem=m.group(3).upper())
    except ValueError:
        return None


def time_to_minutes(text: str) -> Optional[int]:
    """
    Convert a canonical time string to minutes since midnight.

    Returns None when the string is not ``H:MM AM|PM``. Hour and minute are
    not range checked, so ``"0:30 AM"`` still orders as 30; use
    :func:`parse_time` for a validated reading.
    """
    if not text or not isinstance(text, str):
        return None
    m = CANONICAL_TIME_RE.match(text.strip())
    if not m:
        return None

    hh = int(m.group(1))
    ap = m.group(3).upper()
    if ap == 'AM':
        if hh == 12:
            hh = 0
    elif hh != 12:
        hh += 12
    return hh * 60 + int(m.group(2))


def minutes_to_time(minutes: int) -> str:
    """Canonical display form for minutes since midnight."""
    return str(TimeOfDay.from_minutes(minutes))


def collect_row_times(fragments: Sequence[WordFragment]) -> List[str]:
    """
    Collect time readings from one table row.

    Fragments must already be in left-to-right order. A bare ``HH:MM``
    followed by a standalone ``AM``/``PM`` fragment is joined into one
    reading and the meridiem fragment is consumed.
    """
    times: List[str] = []
    i = 0
    while i < len(fragments):
        text = fragments[i].text

        if is_noise_token(text):
            i += 1
            continue

        compact = COMPACT_TIME_RE.match(text)
        if compact:
            times.append(normalize_time(*compact.groups()))
            i += 1
            continue

        bare = BARE_TIME_RE.match(text)
        if bare and i + 1 < len(fragments):
            meridiem = MERIDIEM_RE.match(fragments[i + 1].text)
            if meridiem:
                times.append(normalize_time(bare.group(1), bare.group(2), meridiem.group(1)))
                i += 2
                continue

        spaced = SPACED_TIME_RE.match(text)
        if spaced:
            times.append(normalize_time(*spaced.groups()))

        i += 1

    return times


def find_layout_times(chunk: str) -> List[str]:
    """Find every ``HH:MM AM|PM`` token in a text chunk, in order."""
    return [normalize_time(*m.groups()) for m in LAYOUT_TIME_RE.finditer(chunk or '')]


def count_time_tokens(text: str) -> int:
    """Count time tokens in a text stream."""
    return sum(1 for _ in LAYOUT_TIME_RE.finditer(text or ''))


def dedupe_times(times: Iterable[str]) -> List[str]:
    """Drop repeated readings, keeping first-seen order."""
    return list(dict.fromkeys(times))


def resolve_in_out(times: Iterable[str]) -> Tuple[List[str], Optional[str], Optional[str]]:
    """
    Pick the in and out time from a day's readings.

    Readings are deduplicated on their canonical string, then ordered by
    minutes since midnight. Readings that do not convert are left out of
    the ordering. With fewer than two valid readings nothing is chosen.
    When two readings share the same minute value the first-seen one wins
    at either end.

    Returns:
        (unique_times, in_time, out_time)
    """
    unique = dedupe_times(times)
    valid = [(t, m) for t, m in ((t, time_to_minutes(t)) for t in unique) if m is not None]

    if len(valid) < 2:
        return unique, None, None

    # min()/max() return the first item among equal keys
    in_time = min(valid, key=lambda x: x[1])[0]
    out_time = max(valid, key=lambda x: x[1])[0]
    return unique, in_time, out_time


def format_hours(minutes: int) -> str:
    """Format a minute count as ``"{h}h {m}m"``."""
    h, m = divmod(int(minutes), 60)
    return f"{h}h {m}m"
