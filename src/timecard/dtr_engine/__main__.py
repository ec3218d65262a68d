"""Command-line entry point: python -m dtr_engine <file_path>."""

import argparse
import sys
from pathlib import Path
from typing import List, Optional

import pydantic

from .config import load_schedule
from .main import DEFAULT_WORK_WEEK, compute_document_totals, print_summary, process_dtr, save_to_json
from .models import Schedule, Weekday
from .utils import ExtractionError, ValidationError, is_supported_file, setup_logging, validate_result


def _parse_weekdays(value: str) -> List[Weekday]:
    weekdays = []
    for part in value.split(','):
        wd = Weekday.from_string(part)
        if wd is None:
            raise argparse.ArgumentTypeError(f"unknown weekday: {part!r}")
        weekdays.append(wd)
    return weekdays


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='dtr_engine',
        description='Extract clock times from a Daily Time Record and total the hours worked.',
    )
    parser.add_argument('file_path', help='Path to DTR file (PDF, PNG, JPG, BMP, TIFF)')
    parser.add_argument('--year', type=int, help='Year of the record (default: detected)')
    parser.add_argument('--month', type=int, choices=range(1, 13), metavar='1-12',
                        help='Month of the record (default: detected)')
    parser.add_argument('--weekdays', type=_parse_weekdays,
                        help='Scheduled weekdays, e.g. Mon,Tue,Wed (default: Mon-Fri)')
    parser.add_argument('--schedule', help='Schedule JSON file (overrides --weekdays)')
    parser.add_argument('--side', choices=('left', 'right', 'full'), help='Page half holding the table')
    parser.add_argument('--gpu', action='store_true', help='Use GPU acceleration for OCR')
    parser.add_argument('--output', help='Output JSON file path')
    parser.add_argument('--debug', action='store_true', help='Print per-day diagnostics')
    parser.add_argument('--verbose', action='store_true', help='Verbose logging')
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for command-line execution."""
    args = build_arg_parser().parse_args(argv)
    setup_logging(args.verbose)

    if not is_supported_file(args.file_path):
        print("\n✗ Error: Unsupported file format")
        print("  Supported formats: PDF, PNG, JPG, JPEG, BMP, TIFF")
        return 1

    if args.schedule:
        try:
            schedule = load_schedule(args.schedule)
        except (OSError, pydantic.ValidationError) as e:
            print(f"\n✗ Schedule Error: {e}")
            return 1
    else:
        schedule = Schedule.from_weekdays(args.weekdays or DEFAULT_WORK_WEEK)

    if not len(schedule):
        print("\n✗ Error: the schedule needs at least one day")
        return 1

    month_index0 = args.month - 1 if args.month else None
    output_path = args.output or Path(args.file_path).stem + "_dtr.json"

    try:
        result = process_dtr(
            args.file_path,
            year=args.year,
            month_index0=month_index0,
            allowed_weekdays=schedule.allowed_weekdays,
            side=args.side,
            use_gpu=args.gpu,
            debug=args.debug,
        )
    except ValidationError as e:
        print(f"\n✗ Validation Error: {e}")
        return 1
    except ExtractionError as e:
        print(f"\n✗ Extraction Error: {e}")
        return 1

    totals = compute_document_totals(result, schedule, args.year, month_index0)

    print("\n" + "=" * 60)
    print("DTR SUMMARY")
    print("=" * 60)
    print_summary(result, totals)

    warnings = validate_result(result)
    if warnings:
        print("\n" + "=" * 60)
        print("VALIDATION WARNINGS")
        print("=" * 60)
        for warning in warnings:
            print(f"⚠ {warning}")

    if args.debug and result.debug:
        print("\n" + "=" * 60)
        print(f"DEBUG ({result.debug.source})")
        print("=" * 60)
        for d in result.debug.days:
            print(f"  {d.day:>2}: found={list(d.times_found)} unique={list(d.unique_times)} "
                  f"in={d.in_time} out={d.out_time} sched={d.in_schedule}")

    save_to_json(result, output_path, totals=totals, schedule=schedule)
    print(f"\n✓ Saved to: {output_path}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
