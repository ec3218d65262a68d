"""Data models for DTR extraction."""

from dataclasses import dataclass, field, replace
from datetime import date, time, timedelta
from enum import IntEnum
from typing import Any, Dict, Iterable, Optional, Tuple


class Weekday(IntEnum):
    """Days of the week, numbered Sunday=0 .. Saturday=6."""
    SUNDAY = 0
    MONDAY = 1
    TUESDAY = 2
    WEDNESDAY = 3
    THURSDAY = 4
    FRIDAY = 5
    SATURDAY = 6

    @property
    def label(self) -> str:
        return self.name.capitalize()

    @classmethod
    def from_string(cls, day_str: str) -> Optional['Weekday']:
        """
        Parse weekday from various string formats.

        Args:
            day_str: String representation of weekday (e.g., "Mon", "Monday", "M")

        Returns:
            Weekday enum or None if not matched
        """
        if not day_str or not isinstance(day_str, str):
            return None

        day_str = day_str.strip().upper()

        if not day_str:
            return None

        if day_str.isdigit():
            value = int(day_str)
            return cls(value) if 0 <= value <= 6 else None

        day_mapping = {
            'M': cls.MONDAY, 'MON': cls.MONDAY, 'MONDAY': cls.MONDAY,
            'TU': cls.TUESDAY, 'TUE': cls.TUESDAY, 'TUES': cls.TUESDAY, 'TUESDAY': cls.TUESDAY,
            'W': cls.WEDNESDAY, 'WED': cls.WEDNESDAY, 'WEDNESDAY': cls.WEDNESDAY,
            'TH': cls.THURSDAY, 'THU': cls.THURSDAY, 'THUR': cls.THURSDAY, 'THURS': cls.THURSDAY, 'THURSDAY': cls.THURSDAY,
            'F': cls.FRIDAY, 'FRI': cls.FRIDAY, 'FRIDAY': cls.FRIDAY,
            'SA': cls.SATURDAY, 'SAT': cls.SATURDAY, 'SATURDAY': cls.SATURDAY,
            'SU': cls.SUNDAY, 'SUN': cls.SUNDAY, 'SUNDAY': cls.SUNDAY,
        }

        return day_mapping.get(day_str)

    @classmethod
    def of_date(cls, year: int, month_index0: int, day: int) -> 'Weekday':
        """
        Weekday of a calendar date (proleptic Gregorian).

        Days past the end of the month roll over into the next month, so
        day 31 of a 30-day month resolves to the 1st of the following one.
        """
        if not 0 <= month_index0 <= 11:
            raise ValueError(f"month_index0 must be in 0..11, got {month_index0}")
        first = date(year, month_index0 + 1, 1)
        resolved = first + timedelta(days=day - 1)
        # date.weekday() is Monday=0
        return cls((resolved.weekday() + 1) % 7)


@dataclass(frozen=True)
class TimeOfDay:
    """A 12-hour clock reading."""
    hour: int
    minute: int
    meridiem: str

    def __post_init__(self):
        if not 1 <= self.hour <= 12:
            raise ValueError(f"hour out of range: {self.hour}")
        if not 0 <= self.minute <= 59:
            raise ValueError(f"minute out of range: {self.minute}")
        if self.meridiem not in ('AM', 'PM'):
            raise ValueError(f"meridiem must be AM or PM, got {self.meridiem!r}")

    @property
    def minutes(self) -> int:
        """Minutes since midnight (0-1439)."""
        hh = self.hour
        if self.meridiem == 'AM':
            if hh == 12:
                hh = 0
        elif hh != 12:
            hh += 12
        return hh * 60 + self.minute

    @classmethod
    def from_minutes(cls, minutes: int) -> 'TimeOfDay':
        minutes = minutes % 1440
        hh, mm = divmod(minutes, 60)
        meridiem = 'AM' if hh < 12 else 'PM'
        hour = hh % 12 or 12
        return cls(hour=hour, minute=mm, meridiem=meridiem)

    def __str__(self) -> str:
        return f"{self.hour}:{self.minute:02d} {self.meridiem}"


@dataclass(frozen=True)
class WordFragment:
    """A single recognized token with its bounding box on one page."""
    text: str
    x0: float = 0.0
    y0: float = 0.0
    x1: float = 0.0
    y1: float = 0.0
    page: int = 0

    @property
    def y_mid(self) -> float:
        return (self.y0 + self.y1) / 2

    @property
    def x_mid(self) -> float:
        return (self.x0 + self.x1) / 2

    @classmethod
    def from_dict(cls, data: Dict[str, Any], page: int = 0) -> 'WordFragment':
        """
        Build a fragment from an OCR word record.

        Accepts ``{"text": ..., "bbox": {"x0", "y0", "x1", "y1"}}``; missing
        coordinates default to 0 and the text is trimmed.
        """
        bbox = data.get('bbox') or {}
        return cls(
            text=str(data.get('text') or '').strip(),
            x0=float(bbox.get('x0') or 0),
            y0=float(bbox.get('y0') or 0),
            x1=float(bbox.get('x1') or 0),
            y1=float(bbox.get('y1') or 0),
            page=int(data.get('page', page) or 0),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'text': self.text,
            'x0': self.x0,
            'y0': self.y0,
            'x1': self.x1,
            'y1': self.y1,
        }


@dataclass(frozen=True)
class TableRow:
    """Fragments judged to lie on one visual table row, ordered left to right."""
    fragments: Tuple[WordFragment, ...]
    page: int = 0

    @property
    def text(self) -> str:
        return ' '.join(f.text for f in self.fragments)

    @property
    def y_mid(self) -> float:
        return self.fragments[0].y_mid if self.fragments else 0.0

    def __len__(self) -> int:
        return len(self.fragments)


@dataclass(frozen=True)
class DayRecord:
    """
    Extracted times for one day of the month.

    ``in_time``/``out_time`` hold the earliest and latest readings. The
    ``second_in``/``second_out`` pair is for split shifts entered by hand;
    the extractors never fill it.
    """
    day: int
    times_found: Tuple[str, ...] = ()
    unique_times: Tuple[str, ...] = ()
    in_time: Optional[str] = None
    out_time: Optional[str] = None
    second_in: Optional[str] = None
    second_out: Optional[str] = None

    def __post_init__(self):
        if (self.in_time is None) != (self.out_time is None):
            raise ValueError(f"day {self.day}: in_time and out_time must be set together")
        if (self.second_in is None) != (self.second_out is None):
            raise ValueError(f"day {self.day}: second_in and second_out must be set together")

    @property
    def has_times(self) -> bool:
        return self.in_time is not None

    def with_times(
        self,
        in_time: Optional[str] = None,
        out_time: Optional[str] = None,
        second_in: Optional[str] = None,
        second_out: Optional[str] = None,
    ) -> 'DayRecord':
        """Copy of this record with manually corrected times."""
        return replace(
            self,
            in_time=in_time,
            out_time=out_time,
            second_in=second_in,
            second_out=second_out,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'day': self.day,
            'in_time': self.in_time,
            'out_time': self.out_time,
            'second_in': self.second_in,
            'second_out': self.second_out,
            'times_found': list(self.times_found),
            'unique_times': list(self.unique_times),
        }


@dataclass(frozen=True)
class ScheduleEntry:
    """Working hours for one weekday."""
    weekday: Weekday
    start: time = time(7, 0)
    end: time = time(17, 0)

    def __str__(self) -> str:
        return f"{self.weekday.label} {self.start.strftime('%H:%M')}-{self.end.strftime('%H:%M')}"


@dataclass(frozen=True)
class Schedule:
    """A weekly schedule with at most one entry per weekday."""
    entries: Tuple[ScheduleEntry, ...] = ()

    def __post_init__(self):
        weekdays = [e.weekday for e in self.entries]
        if len(weekdays) != len(set(weekdays)):
            raise ValueError("schedule has more than one entry for a weekday")

    @classmethod
    def from_weekdays(cls, weekdays: Iterable[int], start: time = time(7, 0), end: time = time(17, 0)) -> 'Schedule':
        unique = sorted({Weekday(int(w)) for w in weekdays})
        return cls(tuple(ScheduleEntry(w, start, end) for w in unique))

    def with_entry(self, entry: ScheduleEntry) -> 'Schedule':
        """Add an entry, replacing any existing entry for the same weekday."""
        kept = [e for e in self.entries if e.weekday != entry.weekday]
        kept.append(entry)
        kept.sort(key=lambda e: e.weekday)
        return Schedule(tuple(kept))

    def without(self, weekday: Weekday) -> 'Schedule':
        return Schedule(tuple(e for e in self.entries if e.weekday != weekday))

    def cleared(self) -> 'Schedule':
        return Schedule()

    @property
    def allowed_weekdays(self) -> frozenset:
        return frozenset(e.weekday for e in self.entries)

    def __len__(self) -> int:
        return len(self.entries)


@dataclass(frozen=True)
class DayDebug:
    """Per-day diagnostics from one extraction."""
    day: int
    weekday: Optional[Weekday] = None
    in_schedule: Optional[bool] = None
    times_found: Tuple[str, ...] = ()
    unique_times: Tuple[str, ...] = ()
    in_time: Optional[str] = None
    out_time: Optional[str] = None


@dataclass(frozen=True)
class ParseDebug:
    """Optional trace returned when an extraction is run with ``debug=True``."""
    source: str
    raw_text_preview: str = ""
    words_preview: Tuple[WordFragment, ...] = ()
    days: Tuple[DayDebug, ...] = ()


@dataclass(frozen=True)
class ExtractionResult:
    """Everything extracted from one DTR document."""
    rows: Tuple[DayRecord, ...] = ()
    raw_text: str = ""
    employee_name: Optional[str] = None
    month_label: Optional[str] = None
    debug: Optional[ParseDebug] = field(default=None, compare=False)

    def get_row(self, day: int) -> Optional[DayRecord]:
        """Get the record for a day of the month."""
        for row in self.rows:
            if row.day == day:
                return row
        return None

    def __len__(self) -> int:
        return len(self.rows)


@dataclass(frozen=True)
class PerDayComputation:
    """Worked minutes for one day after schedule filtering."""
    day: int
    weekday: Weekday
    in_schedule: bool
    minutes: int
    raw_minutes: int


@dataclass(frozen=True)
class ScheduleTotals:
    """Aggregate result of schedule-filtered computation."""
    total_minutes: int
    per_day: Tuple[PerDayComputation, ...] = ()
