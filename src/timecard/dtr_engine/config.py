"""Settings for the extraction pipeline."""

from datetime import time
from pathlib import Path
from typing import List, Literal

from pydantic import BaseModel, Field, field_validator

from .models import Schedule, ScheduleEntry, Weekday


class ExtractionSettings(BaseModel):
    """Tunable constants of the extraction pipeline."""

    # Vertical distance (page units) between consecutive fragments of a row
    row_tolerance: float = Field(default=12.0, gt=0)
    # Day-number column occupies this fraction of the widest fragment extent
    day_column_ratio: float = Field(default=0.22, gt=0, le=1)
    # PDF render scale relative to 72 dpi
    render_scale: float = Field(default=2.6, gt=0)
    binarize: bool = True
    threshold: int = Field(default=180, ge=0, le=255)
    # Minimum time tokens in a PDF text layer before the OCR pass is skipped
    min_pdf_time_tokens: int = Field(default=6, ge=1)
    default_side: Literal['left', 'right', 'full'] = 'left'
    ocr_lang: str = 'en'

    @property
    def render_dpi(self) -> int:
        return int(round(72 * self.render_scale))


class ScheduleItem(BaseModel):
    weekday: int = Field(ge=0, le=6)
    start: time = time(7, 0)
    end: time = time(17, 0)


class ScheduleFile(BaseModel):
    """Schedule as stored in a JSON file: ``{"items": [{"weekday": 1, ...}]}``."""

    items: List[ScheduleItem] = []

    @field_validator('items')
    @classmethod
    def _unique_weekdays(cls, items: List[ScheduleItem]) -> List[ScheduleItem]:
        weekdays = [i.weekday for i in items]
        if len(weekdays) != len(set(weekdays)):
            raise ValueError("each weekday may appear only once")
        return items

    def to_schedule(self) -> Schedule:
        entries = sorted(
            (ScheduleEntry(Weekday(i.weekday), i.start, i.end) for i in self.items),
            key=lambda e: e.weekday,
        )
        return Schedule(tuple(entries))

    @classmethod
    def from_schedule(cls, schedule: Schedule) -> 'ScheduleFile':
        return cls(items=[
            ScheduleItem(weekday=int(e.weekday), start=e.start, end=e.end)
            for e in schedule.entries
        ])


def load_schedule(path) -> Schedule:
    """
    Load a weekly schedule from a JSON file.

    Raises:
        pydantic.ValidationError: If the file content is not a valid schedule
    """
    text = Path(path).read_text(encoding='utf-8')
    return ScheduleFile.model_validate_json(text).to_schedule()


settings = ExtractionSettings()
