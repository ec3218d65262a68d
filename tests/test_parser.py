import pytest

from dtr_engine.models import DayRecord, Weekday
from dtr_engine.parser import DtrParser, extract_month_label, extract_name, parse_month_label
from dtr_engine.timeparse import time_to_minutes
from dtr_engine.utils import ValidationError

RAW_HEADER = "CIVIL SERVICE FORM No. 48\nNAME : Juan Dela Cruz \nFor the month of December / 2025\n"
WEEKDAYS = {1, 2, 3, 4, 5}


def parse(words, **kwargs):
    kwargs.setdefault("raw_text", RAW_HEADER)
    kwargs.setdefault("year", 2025)
    kwargs.setdefault("month_index0", 11)
    return DtrParser().parse_words(words, **kwargs)


class TestMetadata:
    def test_employee_name(self):
        assert extract_name(RAW_HEADER) == "Juan Dela Cruz"
        assert extract_name("name:MARIA SANTOS\r\nOffice") == "MARIA SANTOS"
        assert extract_name("no header here") is None

    def test_month_label(self):
        assert extract_month_label(RAW_HEADER) == "DECEMBER / 2025"
        assert extract_month_label("november/2024") == "NOVEMBER / 2024"
        assert extract_month_label("December 2025") is None

    def test_parse_month_label(self):
        assert parse_month_label("DECEMBER / 2025") == (2025, 11)
        assert parse_month_label("january / 2026") == (2026, 0)
        assert parse_month_label(None) is None
        assert parse_month_label("13th month") is None


class TestParseWords:
    def test_full_table(self, dtr_words):
        result = parse(dtr_words)

        assert result.employee_name == "Juan Dela Cruz"
        assert result.month_label == "DECEMBER / 2025"
        assert [r.day for r in result.rows] == [1, 2, 3, 5]

        day1, day2, day3, day5 = result.rows
        assert (day1.in_time, day1.out_time) == ("7:58 AM", "5:10 PM")
        assert (day2.in_time, day2.out_time) == ("8:01 AM", "5:03 PM")
        assert day3 == DayRecord(day=3, times_found=("12:05 PM",), unique_times=("12:05 PM",))

    def test_same_day_across_rows_is_merged_and_deduplicated(self, dtr_words):
        day5 = parse(dtr_words).get_row(5)
        assert day5.times_found == ("8:02 AM", "8:02 AM", "6:45 PM")
        assert day5.unique_times == ("8:02 AM", "6:45 PM")
        assert (day5.in_time, day5.out_time) == ("8:02 AM", "6:45 PM")

    def test_split_token_single_reading_has_no_in_out(self, word):
        words = [word("14", 2, 100, width=6), word("10:52", 10, 100), word("PM", 40, 100, width=10)]
        record = parse(words).get_row(14)
        assert record.times_found == ("10:52 PM",)
        assert record.in_time is None and record.out_time is None

    def test_split_token_with_second_reading(self, word):
        words = [
            word("14", 2, 100, width=6),
            word("10:52", 10, 100),
            word("PM", 40, 100, width=10),
            word("6:30AM", 5, 101),
        ]
        record = parse(words).get_row(14)
        assert (record.in_time, record.out_time) == ("6:30 AM", "10:52 PM")

    def test_day_cell_must_be_in_left_column(self, word):
        words = [word("Total", 0, 100, width=40), word("12", 200, 100), word("8:00 AM", 250, 100, width=60), word("5:00 PM", 400, 100, width=60)]
        assert parse(words).rows == ()

    def test_day_out_of_range_is_discarded(self, word):
        words = [word("45", 0, 100, width=10), word("8:00 AM", 250, 100, width=60), word("5:00 PM", 400, 100, width=60)]
        assert parse(words).rows == ()

    def test_hour_zero_reading_takes_part_in_in_out(self, word):
        words = [word("4", 2, 100, width=6), word("00:30AM", 100, 100, width=60), word("8:00 AM", 250, 100, width=60)]
        record = parse(words).get_row(4)
        assert record.times_found == ("0:30 AM", "8:00 AM")
        assert (record.in_time, record.out_time) == ("0:30 AM", "8:00 AM")

    def test_rows_without_times_are_not_reported(self, word):
        words = [word("7", 0, 100, width=10), word("Holiday", 250, 100, width=60)]
        assert parse(words).rows == ()

    def test_accepts_word_dicts(self):
        words = [
            {"text": " 9 ", "bbox": {"x0": 0, "y0": 100, "x1": 10, "y1": 110}},
            {"text": "7:45 AM", "bbox": {"x0": 100, "y0": 100, "x1": 160, "y1": 110}},
            {"text": "4:30 PM", "bbox": {"x0": 250, "y0": 101, "x1": 310, "y1": 111}},
            {"text": "", "bbox": {"x0": 5, "y0": 5, "x1": 6, "y1": 6}},
        ]
        record = parse(words).get_row(9)
        assert (record.in_time, record.out_time) == ("7:45 AM", "4:30 PM")

    def test_in_never_after_out(self, dtr_words, word):
        noisy = dtr_words + [
            word("8", 10, 300, width=8),
            word("11:58 PM", 100, 300, width=60),
            word("12:01 AM", 250, 301, width=60),
            word("9:00 AM", 400, 299, width=60),
        ]
        for record in parse(noisy).rows:
            if record.in_time:
                assert time_to_minutes(record.in_time) <= time_to_minutes(record.out_time)
        day8 = parse(noisy).get_row(8)
        assert (day8.in_time, day8.out_time) == ("12:01 AM", "11:58 PM")

    def test_repeated_extraction_is_identical(self, dtr_words):
        first = parse(list(dtr_words))
        second = parse(list(dtr_words))
        assert first.rows == second.rows
        assert first == second

    def test_empty_input_gives_well_formed_result(self):
        result = parse([], raw_text="")
        assert result.rows == ()
        assert result.employee_name is None
        assert result.debug is None

    def test_debug_trace_is_opt_in(self, dtr_words):
        assert parse(dtr_words).debug is None

        result = parse(dtr_words, allowed_weekdays=WEEKDAYS, debug=True)
        assert result.debug.source == "words"
        assert result.debug.raw_text_preview == RAW_HEADER
        assert len(result.debug.words_preview) == len(dtr_words)
        by_day = {d.day: d for d in result.debug.days}
        # December 2025: the 1st is a Monday, the 5th a Friday
        assert by_day[1].weekday == Weekday.MONDAY
        assert by_day[1].in_schedule is True
        assert by_day[5].weekday == Weekday.FRIDAY

    def test_debug_without_schedule_leaves_flag_unset(self, dtr_words):
        result = parse(dtr_words, debug=True)
        assert all(d.in_schedule is None for d in result.debug.days)

    def test_multi_page_uses_each_pages_day_column(self, word):
        # Page 1 is a narrower crop; its day column is computed on its own,
        # so "15" at x0=60 is outside it even though page 0 is much wider
        words = [
            word("1", 10, 100, width=8, page=0),
            word("8:00 AM", 300, 100, width=60, page=0),
            word("5:00 PM", 500, 100, width=60, page=0),
            word("2", 10, 100, width=8, page=1),
            word("8:10 AM", 60, 100, width=30, page=1),
            word("5:10 PM", 100, 100, width=30, page=1),
            word("15", 60, 200, width=10, page=1),
            word("9:00 AM", 75, 200, width=20, page=1),
            word("6:00 PM", 100, 200, width=30, page=1),
        ]
        rows = parse(words).rows
        assert [(r.day, r.in_time, r.out_time) for r in rows] == [
            (1, "8:00 AM", "5:00 PM"),
            (2, "8:10 AM", "5:10 PM"),
        ]


LAYOUT_TEXT = (
    "\nNAME: Juan Dela Cruz DECEMBER / 2025 Day Arrival Departure "
    "1 08:00 AM 05:00 PM 2 08:03 AM 05:01 PM 08:03 AM "
    "9 07:58 AM 05:10 PM 10 08:01 AM 11 12:30 PM 12:30PM"
)


class TestParseLayoutText:
    def parse(self, text=LAYOUT_TEXT, **kwargs):
        return DtrParser().parse_layout_text(text, year=2025, month_index0=11, allowed_weekdays=WEEKDAYS, **kwargs)

    def test_days_do_not_bleed_into_each_other(self):
        result = self.parse()
        day9 = result.get_row(9)
        assert (day9.in_time, day9.out_time) == ("7:58 AM", "5:10 PM")
        assert day9.times_found == ("7:58 AM", "5:10 PM")

    def test_single_digit_day_not_confused_with_two_digit_day(self):
        result = self.parse()
        assert result.get_row(1).times_found == ("8:00 AM", "5:00 PM")
        assert result.get_row(10).times_found == ("8:01 AM",)
        assert result.get_row(10).in_time is None

    def test_duplicates_and_partial_days(self):
        result = self.parse()
        day2 = result.get_row(2)
        assert day2.unique_times == ("8:03 AM", "5:01 PM")
        assert (day2.in_time, day2.out_time) == ("8:03 AM", "5:01 PM")
        # Two spellings of 12:30 PM collapse to one reading: no in/out
        assert result.get_row(11).unique_times == ("12:30 PM",)
        assert result.get_row(11).in_time is None

    def test_metadata_and_days_without_rows(self):
        result = self.parse()
        assert result.employee_name.startswith("Juan Dela Cruz")
        assert result.month_label == "DECEMBER / 2025"
        assert [r.day for r in result.rows] == [1, 2, 9, 10, 11]

    def test_whitespace_is_normalized(self):
        text = "3\n  06:15\tAM\n\n05:02   PM"
        record = self.parse(text).get_row(3)
        assert (record.in_time, record.out_time) == ("6:15 AM", "5:02 PM")

    def test_first_matching_chunk_wins(self):
        text = "4 08:00 AM 04:00 PM 4 09:00 AM 06:00 PM"
        record = self.parse(text).get_row(4)
        assert (record.in_time, record.out_time) == ("8:00 AM", "4:00 PM")

    def test_debug_trace(self):
        result = self.parse(debug=True)
        assert result.debug.source == "pdf-text"
        assert result.debug.words_preview == ()
        assert {d.day for d in result.debug.days} == {1, 2, 9, 10, 11}

    def test_idempotent(self):
        assert self.parse().rows == self.parse().rows

    def test_no_text(self):
        assert self.parse("").rows == ()


def test_parse_ocr_text_has_header_only():
    result = DtrParser().parse_ocr_text(RAW_HEADER + "1 8:00 AM 5:00 PM")
    assert result.rows == ()
    assert result.employee_name == "Juan Dela Cruz"
    assert result.month_label == "DECEMBER / 2025"


@pytest.mark.parametrize("month_index0", [-1, 12])
def test_bad_month_index_is_a_validation_error(word, month_index0):
    parser = DtrParser()
    with pytest.raises(ValidationError):
        parser.parse_words([word("1", 2, 100, width=6)], raw_text="", year=2025, month_index0=month_index0)
    with pytest.raises(ValidationError):
        parser.parse_layout_text("1 8:00 AM 5:00 PM", year=2025, month_index0=month_index0, allowed_weekdays=WEEKDAYS)


class TestPageHalves:
    @pytest.fixture
    def two_tables(self, word):
        # One scanned page holding two copies of the form side by side
        return [
            word("1", 10, 100, width=8),
            word("8:00 AM", 100, 100, width=60),
            word("5:00 PM", 200, 100, width=60),
            word("1", 410, 100, width=8),
            word("7:00 AM", 500, 100, width=60),
            word("4:00 PM", 600, 100, width=60),
        ]

    def test_left_half(self, two_tables):
        (day1,) = parse(two_tables, side="left", page_width=700).rows
        assert (day1.in_time, day1.out_time) == ("8:00 AM", "5:00 PM")

    def test_right_half_uses_its_own_day_column(self, two_tables):
        (day1,) = parse(two_tables, side="right", page_width=700).rows
        assert day1.times_found == ("7:00 AM", "4:00 PM")
        assert (day1.in_time, day1.out_time) == ("7:00 AM", "4:00 PM")

    def test_full_page_merges_both_tables(self, two_tables):
        (day1,) = parse(two_tables).rows
        assert (day1.in_time, day1.out_time) == ("7:00 AM", "5:00 PM")

    def test_unknown_side(self, two_tables):
        with pytest.raises(ValidationError):
            parse(two_tables, side="middle")
