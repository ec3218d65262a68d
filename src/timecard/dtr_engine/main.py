"""Core execution logic for the DTR engine."""

import json
import logging
from datetime import date
from pathlib import Path
from typing import Iterable, Optional, Tuple

from .compute import AllowedWeekdays, compute_total_minutes
from .config import ExtractionSettings, ScheduleFile
from .config import settings as default_settings
from .models import ExtractionResult, Schedule, ScheduleTotals, Weekday
from .ocr_extractor import OCRExtractor
from .parser import DtrParser, extract_month_label, parse_month_label
from .pdf_text import extract_pdf_text, pdf_has_text
from .preprocessor import DocumentPreprocessor
from .timeparse import count_time_tokens, format_hours
from .utils import ExtractionError, is_pdf, validate_file_path

logger = logging.getLogger(__name__)

DEFAULT_WORK_WEEK = frozenset({
    Weekday.MONDAY, Weekday.TUESDAY, Weekday.WEDNESDAY, Weekday.THURSDAY, Weekday.FRIDAY,
})


def resolve_period(
    month_label: Optional[str],
    year: Optional[int] = None,
    month_index0: Optional[int] = None,
) -> Tuple[int, int]:
    """
    Year and 0-based month for a record.

    Explicit values win; missing ones come from the detected month label,
    then from today's date.
    """
    detected = parse_month_label(month_label)
    today = date.today()
    if year is None:
        year = detected[0] if detected else today.year
    if month_index0 is None:
        month_index0 = detected[1] if detected else today.month - 1
    return year, month_index0


def process_dtr(
    file_path: str,
    year: Optional[int] = None,
    month_index0: Optional[int] = None,
    allowed_weekdays: Optional[Iterable[int]] = None,
    side: Optional[str] = None,
    use_gpu: bool = False,
    debug: bool = False,
    settings: Optional[ExtractionSettings] = None,
) -> ExtractionResult:
    """
    Extract per-day clock times from a DTR scan.

    PDFs with a usable text layer are parsed directly; everything else is
    rendered, cropped to the requested page half and run through OCR.

    Args:
        file_path: Path to a PDF or image file
        year: Calendar year of the record (default: from the document)
        month_index0: 0-based month of the record (default: from the document)
        allowed_weekdays: Weekdays in the schedule (Sunday=0), used for the
            debug trace (default: Monday to Friday)
        side: Page half holding the table (default: settings.default_side)
        use_gpu: Whether to use GPU acceleration for OCR
        debug: Attach a ParseDebug trace to the result
        settings: Pipeline settings (default: module settings)

    Returns:
        ExtractionResult for the document

    Raises:
        ValidationError: If the file or arguments are invalid
        ExtractionError: If the OCR or PDF engine fails
    """
    settings = settings or default_settings
    side = side or settings.default_side
    allowed = frozenset(allowed_weekdays) if allowed_weekdays is not None else DEFAULT_WORK_WEEK

    path = validate_file_path(file_path)
    logger.info("Processing DTR: %s (%s side)", path.name, side)

    parser = DtrParser(row_tolerance=settings.row_tolerance, day_column_ratio=settings.day_column_ratio)

    if is_pdf(path):
        result = _try_pdf_text(path, parser, year, month_index0, allowed, side, debug, settings)
        if result is not None:
            return result

    preprocessor = DocumentPreprocessor(
        dpi=settings.render_dpi,
        binarize=settings.binarize,
        threshold=settings.threshold,
    )
    images = preprocessor.process(path, side=side)
    logger.info("Converted to %d image(s)", len(images))

    ocr_extractor = OCRExtractor(use_gpu=use_gpu, lang=settings.ocr_lang)
    words = []
    for idx, image in enumerate(images):
        logger.info("OCR page %d/%d", idx + 1, len(images))
        words.extend(ocr_extractor.extract_words(image, page=idx))

    raw_text = OCRExtractor.extract_text(words)
    year, month_index0 = resolve_period(extract_month_label(raw_text), year, month_index0)

    result = parser.parse_words(
        words,
        raw_text=raw_text,
        year=year,
        month_index0=month_index0,
        allowed_weekdays=allowed,
        debug=debug,
    )
    logger.info("Extracted %d day rows via OCR", len(result.rows))
    return result


def _try_pdf_text(path, parser, year, month_index0, allowed, side, debug, settings) -> Optional[ExtractionResult]:
    """Layout-path result for PDFs with enough text, else None."""
    try:
        if not pdf_has_text(path):
            logger.info("PDF has no text layer, using OCR")
            return None
        text = extract_pdf_text(path, side=side)
    except ExtractionError as e:
        logger.warning("PDF text layer unreadable, falling back to OCR: %s", e)
        return None

    token_count = count_time_tokens(text)
    if token_count < settings.min_pdf_time_tokens:
        logger.info("PDF text has %d time tokens, using OCR", token_count)
        return None

    year, month_index0 = resolve_period(extract_month_label(text), year, month_index0)
    result = parser.parse_layout_text(
        text,
        year=year,
        month_index0=month_index0,
        allowed_weekdays=allowed,
        debug=debug,
    )
    logger.info("Extracted %d day rows from the PDF text layer", len(result.rows))
    return result


def compute_document_totals(
    result: ExtractionResult,
    allowed: AllowedWeekdays,
    year: Optional[int] = None,
    month_index0: Optional[int] = None,
) -> ScheduleTotals:
    """Schedule-filtered totals for an extraction result."""
    year, month_index0 = resolve_period(result.month_label, year, month_index0)
    return compute_total_minutes(result.rows, allowed, year, month_index0)


def save_to_json(
    result: ExtractionResult,
    output_path: str,
    totals: Optional[ScheduleTotals] = None,
    schedule: Optional[Schedule] = None,
) -> None:
    """
    Save extracted DTR data to a JSON file.

    Args:
        result: ExtractionResult to save
        output_path: Path to output JSON file
        totals: Computed totals to include
        schedule: Schedule the totals were computed with
    """
    data = {
        'metadata': {
            'employee_name': result.employee_name,
            'month_label': result.month_label,
        },
        'rows': [row.to_dict() for row in result.rows],
    }

    if schedule is not None:
        data['schedule'] = ScheduleFile.from_schedule(schedule).model_dump(mode='json')

    if totals is not None:
        data['totals'] = {
            'total_minutes': totals.total_minutes,
            'total_hours': format_hours(totals.total_minutes),
            'per_day': [
                {
                    'day': d.day,
                    'weekday': d.weekday.label,
                    'in_schedule': d.in_schedule,
                    'minutes': d.minutes,
                    'raw_minutes': d.raw_minutes,
                }
                for d in totals.per_day
            ],
        }

    if result.debug is not None:
        data['debug'] = {
            'source': result.debug.source,
            'raw_text_preview': result.debug.raw_text_preview,
            'words_preview': [w.to_dict() for w in result.debug.words_preview],
            'days': [
                {
                    'day': d.day,
                    'weekday': d.weekday.label if d.weekday is not None else None,
                    'in_schedule': d.in_schedule,
                    'times_found': list(d.times_found),
                    'unique_times': list(d.unique_times),
                    'in_time': d.in_time,
                    'out_time': d.out_time,
                }
                for d in result.debug.days
            ],
        }

    with open(output_path, 'w', encoding='utf-8') as f:
        json.dump(data, f, indent=2, ensure_ascii=False)

    logger.info("Saved to: %s", Path(output_path))


def print_summary(result: ExtractionResult, totals: Optional[ScheduleTotals] = None) -> None:
    """Print a summary of the extracted record."""
    print(f"  Employee: {result.employee_name or '—'}")
    print(f"  Month:    {result.month_label or '—'}")
    print(f"\n  Days extracted: {len(result.rows)}")

    computed = {d.day: d for d in totals.per_day} if totals else {}

    if result.rows:
        print(f"\n  {'Day':>3}  {'Weekday':<9}  {'In':>8}  {'Out':>8}  {'Sched':>5}  {'Minutes':>7}")
        print(f"  {'─'*50}")
        for row in result.rows:
            d = computed.get(row.day)
            weekday = d.weekday.label if d else ''
            sched = ('YES' if d.in_schedule else 'NO') if d else ''
            minutes = str(d.minutes) if d else ''
            print(
                f"  {row.day:>3}  {weekday:<9}  {row.in_time or '—':>8}  "
                f"{row.out_time or '—':>8}  {sched:>5}  {minutes:>7}"
            )

    if totals is not None:
        print(f"\n  Total: {format_hours(totals.total_minutes)} ({totals.total_minutes} minutes)")
