"""Parser to extract per-day clock times from OCR words and PDF text."""

import logging
import re
from collections import defaultdict
from dataclasses import replace
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

from .models import (
    DayDebug,
    DayRecord,
    ExtractionResult,
    ParseDebug,
    TableRow,
    Weekday,
    WordFragment,
)
from .row_clusterer import RowClusterer, select_side
from .timeparse import collect_row_times, find_layout_times, resolve_in_out
from .utils import validate_month_index

logger = logging.getLogger(__name__)

MONTH_NAMES = (
    'JANUARY', 'FEBRUARY', 'MARCH', 'APRIL', 'MAY', 'JUNE',
    'JULY', 'AUGUST', 'SEPTEMBER', 'OCTOBER', 'NOVEMBER', 'DECEMBER',
)

NAME_RE = re.compile(r'NAME\s*:\s*([^\n\r]+)', re.IGNORECASE)
MONTH_RE = re.compile(r'(' + '|'.join(MONTH_NAMES) + r')\s*/\s*(\d{4})', re.IGNORECASE)

DAY_CELL_RE = re.compile(r'^\d{1,2}$')
# Zero-width boundary in front of "<day> <time>", e.g. "| 9 07:58 AM"
DAY_BOUNDARY_RE = re.compile(r'\b(?=\d{1,2}\s+\d{1,2}[:.]\d{2}\s*(?:AM|PM))', re.IGNORECASE)

RAW_TEXT_PREVIEW_CHARS = 2000
WORDS_PREVIEW_COUNT = 120

WordInput = Union[WordFragment, Dict[str, Any]]


def extract_name(text: str) -> Optional[str]:
    """Employee name from a ``NAME: ...`` header line."""
    m = NAME_RE.search(text or '')
    if not m:
        return None
    return m.group(1).strip() or None


def extract_month_label(text: str) -> Optional[str]:
    """Month label like ``"DECEMBER / 2025"`` from the header."""
    m = MONTH_RE.search(text or '')
    if not m:
        return None
    return f"{m.group(1).upper()} / {m.group(2)}"


def parse_month_label(label: Optional[str]) -> Optional[Tuple[int, int]]:
    """
    Split a month label into ``(year, month_index0)``.

    Returns None when the label is missing or unrecognized.
    """
    if not label:
        return None
    m = MONTH_RE.search(label)
    if not m:
        return None
    return int(m.group(2)), MONTH_NAMES.index(m.group(1).upper())


class DtrParser:
    """Turns positioned words or a PDF text stream into per-day records."""

    def __init__(self, row_tolerance: float = 12.0, day_column_ratio: float = 0.22):
        """
        Initialize the parser.

        Args:
            row_tolerance: Vertical tolerance used to cluster words into rows
            day_column_ratio: Fraction of the page extent (from the left) where
                the day-number column is expected
        """
        self.clusterer = RowClusterer(tolerance=row_tolerance)
        self.day_column_ratio = day_column_ratio

    def parse_words(
        self,
        words: Iterable[WordInput],
        raw_text: str,
        year: int,
        month_index0: int,
        allowed_weekdays: Optional[Iterable[int]] = None,
        debug: bool = False,
        side: str = 'full',
        page_width: Optional[float] = None,
    ) -> ExtractionResult:
        """
        Parse OCR word boxes into day records.

        Words are clustered into table rows; in each row the day number is
        the first short numeric word inside the left day column, and every
        time reading in the row belongs to that day. A day's earliest
        reading is its in time and its latest reading its out time.

        Args:
            words: WordFragment objects or ``{"text", "bbox"}`` dicts
            raw_text: Concatenated recognizer text, used for name and month
            year: Calendar year of the record
            month_index0: Month of the record, 0-based
            allowed_weekdays: Weekdays (Sunday=0) in the schedule; only used
                for the debug trace
            debug: Attach a ParseDebug trace to the result
            side: Page half to keep when the words cover a whole page:
                "left", "right" or "full"
            page_width: Page width in word coordinates (default: each
                page's right-most word edge)

        Returns:
            ExtractionResult with one record per day that had time readings

        Raises:
            ValidationError: If month_index0 or side is invalid
        """
        month_index0 = validate_month_index(month_index0)
        fragments = [self._as_fragment(w) for w in (words or [])]
        fragments = self._select_side([f for f in fragments if f.text], side, page_width)

        rows = self.clusterer.cluster(fragments)
        day_col_max_x = self._day_column_limits(fragments)

        day_times: Dict[int, List[str]] = defaultdict(list)
        for row in rows:
            day = self._find_day(row, day_col_max_x.get(row.page, 0.0))
            if day is None:
                continue

            times = collect_row_times(row.fragments)
            if not times:
                continue

            day_times[day].extend(times)

        records, debug_days = self._build_records(
            sorted(day_times.items()), year, month_index0, allowed_weekdays
        )
        logger.info("Parsed %d day rows from %d words (%d table rows)", len(records), len(fragments), len(rows))

        trace = None
        if debug:
            trace = ParseDebug(
                source='words',
                raw_text_preview=(raw_text or '')[:RAW_TEXT_PREVIEW_CHARS],
                words_preview=tuple(fragments[:WORDS_PREVIEW_COUNT]),
                days=tuple(debug_days),
            )

        return ExtractionResult(
            rows=tuple(records),
            raw_text=raw_text or '',
            employee_name=extract_name(raw_text),
            month_label=extract_month_label(raw_text),
            debug=trace,
        )

    def parse_layout_text(
        self,
        text: str,
        year: int,
        month_index0: int,
        allowed_weekdays: Iterable[int],
        debug: bool = False,
    ) -> ExtractionResult:
        """
        Parse a reading-ordered text stream (PDF text layer) into day records.

        The stream is cut in front of every "<day> <time>" sequence. For
        each day 1..31 the first chunk starting with that day number is
        scanned for time tokens; later chunks with the same prefix are
        ignored.

        Args:
            text: Text of the selected page half, top to bottom
            year: Calendar year of the record
            month_index0: Month of the record, 0-based
            allowed_weekdays: Weekdays (Sunday=0) in the schedule
            debug: Attach a ParseDebug trace to the result

        Returns:
            ExtractionResult with one record per day that had time readings

        Raises:
            ValidationError: If month_index0 is outside 0..11
        """
        month_index0 = validate_month_index(month_index0)
        text = text or ''
        chunks = DAY_BOUNDARY_RE.split(re.sub(r'\s+', ' ', text))

        day_times: List[Tuple[int, List[str]]] = []
        for day in range(1, 32):
            prefix = f"{day} "
            chunk = next((c for c in chunks if c.strip().startswith(prefix)), None)
            if chunk is None:
                continue
            times = find_layout_times(chunk)
            if times:
                day_times.append((day, times))

        records, debug_days = self._build_records(day_times, year, month_index0, allowed_weekdays)
        logger.info("Parsed %d day rows from PDF text (%d chunks)", len(records), len(chunks))

        trace = None
        if debug:
            trace = ParseDebug(
                source='pdf-text',
                raw_text_preview=text[:RAW_TEXT_PREVIEW_CHARS],
                days=tuple(debug_days),
            )

        return ExtractionResult(
            rows=tuple(records),
            raw_text=text,
            employee_name=extract_name(text),
            month_label=extract_month_label(text),
            debug=trace,
        )

    def parse_ocr_text(self, raw_text: str) -> ExtractionResult:
        """Header-only result for plain OCR text with no positional data."""
        return ExtractionResult(
            rows=(),
            raw_text=raw_text or '',
            employee_name=extract_name(raw_text),
            month_label=extract_month_label(raw_text),
        )

    def _build_records(
        self,
        day_times: Iterable[Tuple[int, List[str]]],
        year: int,
        month_index0: int,
        allowed_weekdays: Optional[Iterable[int]],
    ) -> Tuple[List[DayRecord], List[DayDebug]]:
        allowed = set(int(w) for w in allowed_weekdays) if allowed_weekdays is not None else None

        records: List[DayRecord] = []
        debug_days: List[DayDebug] = []
        for day, times in day_times:
            unique, in_time, out_time = resolve_in_out(times)
            weekday = Weekday.of_date(year, month_index0, day)

            records.append(DayRecord(
                day=day,
                times_found=tuple(times),
                unique_times=tuple(unique),
                in_time=in_time,
                out_time=out_time,
            ))
            debug_days.append(DayDebug(
                day=day,
                weekday=weekday,
                in_schedule=(weekday in allowed) if allowed is not None else None,
                times_found=tuple(times),
                unique_times=tuple(unique),
                in_time=in_time,
                out_time=out_time,
            ))

        return records, debug_days

    @staticmethod
    def _select_side(
        fragments: List[WordFragment], side: str, page_width: Optional[float]
    ) -> List[WordFragment]:
        by_page: Dict[int, List[WordFragment]] = defaultdict(list)
        for f in fragments:
            by_page[f.page].append(f)

        selected: List[WordFragment] = []
        for page in sorted(by_page):
            items = by_page[page]
            width = page_width if page_width is not None else max(f.x1 for f in items)
            half = select_side(items, side, width)
            if side == 'right':
                # Same coordinates a cropped right-half image would give
                half = [replace(f, x0=f.x0 - width / 2, x1=f.x1 - width / 2) for f in half]
            selected.extend(half)
        return selected

    def _day_column_limits(self, fragments: List[WordFragment]) -> Dict[int, float]:
        """Right edge of the day-number column for each page."""
        max_x: Dict[int, float] = defaultdict(lambda: 1.0)
        for f in fragments:
            max_x[f.page] = max(max_x[f.page], f.x1)
        return {page: value * self.day_column_ratio for page, value in max_x.items()}

    def _find_day(self, row: TableRow, day_col_max_x: float) -> Optional[int]:
        """Day of month for a row, or None for header/footer rows."""
        for fragment in row.fragments:
            if fragment.x0 <= day_col_max_x and DAY_CELL_RE.match(fragment.text):
                day = int(fragment.text)
                return day if 1 <= day <= 31 else None
        return None

    @staticmethod
    def _as_fragment(word: WordInput) -> WordFragment:
        if isinstance(word, WordFragment):
            return word
        return WordFragment.from_dict(word)
