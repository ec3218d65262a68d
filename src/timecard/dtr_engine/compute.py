"""Schedule-filtered worked-time computation."""

import logging
from typing import Iterable, Optional, Union

from .models import DayRecord, PerDayComputation, Schedule, ScheduleTotals, Weekday
from .timeparse import parse_time
from .utils import validate_month_index

logger = logging.getLogger(__name__)

MINUTES_PER_DAY = 24 * 60

AllowedWeekdays = Union[Schedule, Iterable[int]]


def diff_minutes(start: Optional[str], end: Optional[str]) -> int:
    """
    Minutes worked between two clock readings.

    An end earlier than the start is taken to be on the next day. Missing
    or malformed readings, including an hour outside 1-12 or a minute
    outside 0-59, contribute 0.
    """
    if not start or not end:
        return 0
    start_time = parse_time(start)
    end_time = parse_time(end)
    if start_time is None or end_time is None:
        return 0

    s, e = start_time.minutes, end_time.minutes
    if e < s:
        return MINUTES_PER_DAY - s + e
    return e - s


def row_minutes(row: DayRecord) -> int:
    """Minutes for both shift pairs of a day."""
    return diff_minutes(row.in_time, row.out_time) + diff_minutes(row.second_in, row.second_out)


def _allowed_set(allowed: AllowedWeekdays) -> frozenset:
    if isinstance(allowed, Schedule):
        return allowed.allowed_weekdays
    return frozenset(Weekday(int(w)) for w in allowed)


def compute_total_minutes(
    rows: Iterable[DayRecord],
    allowed: AllowedWeekdays,
    year: int,
    month_index0: int,
) -> ScheduleTotals:
    """
    Compute worked minutes per day and in total.

    Days whose weekday is not allowed count as 0 but still report their
    raw minutes.

    Args:
        rows: Day records, typically ExtractionResult.rows
        allowed: A Schedule or an iterable of weekday numbers (Sunday=0)
        year: Calendar year of the record
        month_index0: Month of the record, 0-based

    Returns:
        ScheduleTotals with per-day results in input order

    Raises:
        ValidationError: If month_index0 is outside 0..11
    """
    month_index0 = validate_month_index(month_index0)
    allowed_weekdays = _allowed_set(allowed)

    per_day = []
    for row in rows:
        weekday = Weekday.of_date(year, month_index0, row.day)
        in_schedule = weekday in allowed_weekdays
        minutes = row_minutes(row)

        per_day.append(PerDayComputation(
            day=row.day,
            weekday=weekday,
            in_schedule=in_schedule,
            minutes=minutes if in_schedule else 0,
            raw_minutes=minutes,
        ))

    total = sum(d.minutes for d in per_day)
    logger.debug("Computed %d minutes over %d days", total, len(per_day))
    return ScheduleTotals(total_minutes=total, per_day=tuple(per_day))
