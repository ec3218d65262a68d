import json
from datetime import time

import pydantic
import pytest

from dtr_engine.config import ExtractionSettings, ScheduleFile, load_schedule
from dtr_engine.models import Schedule, Weekday


def test_default_settings():
    s = ExtractionSettings()
    assert s.row_tolerance == 12.0
    assert s.day_column_ratio == 0.22
    assert s.default_side == "left"
    assert s.render_dpi == 187


@pytest.mark.parametrize("field,value", [
    ("threshold", 300),
    ("row_tolerance", 0),
    ("day_column_ratio", 1.5),
    ("default_side", "middle"),
])
def test_invalid_settings(field, value):
    with pytest.raises(pydantic.ValidationError):
        ExtractionSettings(**{field: value})


def test_load_schedule(tmp_path):
    path = tmp_path / "schedule.json"
    path.write_text(json.dumps({"items": [
        {"weekday": 5, "start": "08:00", "end": "17:00"},
        {"weekday": 1, "start": "07:00", "end": "16:00"},
    ]}))

    schedule = load_schedule(path)
    assert isinstance(schedule, Schedule)
    assert [e.weekday for e in schedule.entries] == [Weekday.MONDAY, Weekday.FRIDAY]
    assert schedule.entries[0].start == time(7, 0)


@pytest.mark.parametrize("items", [
    [{"weekday": 1}, {"weekday": 1}],
    [{"weekday": 7}],
])
def test_invalid_schedule_file(tmp_path, items):
    path = tmp_path / "schedule.json"
    path.write_text(json.dumps({"items": items}))
    with pytest.raises(pydantic.ValidationError):
        load_schedule(path)


def test_schedule_file_from_schedule():
    data = ScheduleFile.from_schedule(Schedule.from_weekdays([2])).model_dump(mode="json")
    assert data == {"items": [{"weekday": 2, "start": "07:00:00", "end": "17:00:00"}]}
