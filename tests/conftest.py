import pytest

from dtr_engine.models import WordFragment


def make_word(text, x0, y, width=30, height=10, page=0):
    """Fragment with its top-left corner at (x0, y)."""
    return WordFragment(text=text, x0=x0, y0=y, x1=x0 + width, y1=y + height, page=page)


@pytest.fixture
def word():
    return make_word


@pytest.fixture
def dtr_words():
    """
    Left-half OCR words of a small DTR: header, column labels and four days.

    Day 5 is split by OCR into two rows a few pixels apart in y, with the
    8:02 AM reading detected twice.
    """
    return [
        make_word("Arrival", 100, 40, width=60),
        make_word("Departure", 250, 40, width=80),
        make_word("A.M.", 100, 60),
        make_word("P.M.", 250, 60),
        make_word("1", 10, 100, width=8),
        make_word("7:58", 100, 101),
        make_word("AM", 135, 100),
        make_word("5:10 PM", 250, 99, width=60),
        make_word("2", 10, 130, width=8),
        make_word("08:01AM", 100, 130, width=60),
        make_word("5:03PM", 250, 131, width=60),
        make_word("3", 10, 160, width=8),
        make_word("12:05 PM", 100, 160, width=60),
        make_word("5", 10, 190, width=8),
        make_word("8:02 AM", 100, 190, width=60),
        make_word("5", 12, 215, width=8),
        make_word("8:02 AM", 102, 215, width=60),
        make_word("6:45 PM", 250, 214, width=60),
        make_word("Total", 10, 400, width=40),
    ]
