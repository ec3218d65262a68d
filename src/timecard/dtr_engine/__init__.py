"""DTR Engine: Daily Time Record extraction and worked-hours computation."""

__version__ = "0.1.0"

from .main import process_dtr, save_to_json, compute_document_totals
from .models import (
    DayRecord,
    ExtractionResult,
    Schedule,
    ScheduleEntry,
    TimeOfDay,
    Weekday,
    WordFragment,
)
from .compute import compute_total_minutes, diff_minutes
from .config import ExtractionSettings, load_schedule
from .parser import DtrParser
from .row_clusterer import RowClusterer, select_side
from .timeparse import format_hours, normalize_time, time_to_minutes
from .utils import ExtractionError, ValidationError, is_supported_file, validate_result

__all__ = [
    'process_dtr',
    'save_to_json',
    'compute_document_totals',
    'DayRecord',
    'ExtractionResult',
    'Schedule',
    'ScheduleEntry',
    'TimeOfDay',
    'Weekday',
    'WordFragment',
    'compute_total_minutes',
    'diff_minutes',
    'ExtractionSettings',
    'load_schedule',
    'DtrParser',
    'RowClusterer',
    'select_side',
    'format_hours',
    'normalize_time',
    'time_to_minutes',
    'ExtractionError',
    'ValidationError',
    'is_supported_file',
    'validate_result',
]
