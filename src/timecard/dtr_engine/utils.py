"""Validation and utility functions for DTR processing."""

import logging
import sys
from pathlib import Path
from typing import List

from .models import ExtractionResult

SUPPORTED_IMAGE_EXTENSIONS = {'.png', '.jpg', '.jpeg', '.bmp', '.tiff', '.tif'}
SUPPORTED_EXTENSIONS = SUPPORTED_IMAGE_EXTENSIONS | {'.pdf'}

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class ValidationError(ValueError):
    """Raised when caller input is invalid."""
    pass


class ExtractionError(Exception):
    """Raised when the OCR or PDF engine fails on a document."""
    pass


def validate_file_path(file_path: str, supported_extensions: set = SUPPORTED_EXTENSIONS) -> Path:
    """
    Validate file path and extension.

    Args:
        file_path: Path to validate
        supported_extensions: Set of supported file extensions

    Returns:
        Validated Path object

    Raises:
        ValidationError: If validation fails
    """
    try:
        path = Path(file_path)
    except TypeError as e:
        raise ValidationError(f"Invalid file path: {e}") from e

    if not path.exists():
        raise ValidationError(f"File not found: {path}")

    if not path.is_file():
        raise ValidationError(f"Path is not a file: {path}")

    if path.suffix.lower() not in supported_extensions:
        raise ValidationError(
            f"Unsupported file format: {path.suffix}. "
            f"Supported formats: {', '.join(sorted(supported_extensions))}"
        )

    return path


def is_supported_file(file_path: str) -> bool:
    """Quick check if file extension is supported."""
    try:
        return Path(file_path).suffix.lower() in SUPPORTED_EXTENSIONS
    except TypeError:
        return False


def is_pdf(file_path) -> bool:
    return Path(file_path).suffix.lower() == '.pdf'


def validate_month_index(month_index0: int) -> int:
    """Check a 0-based month index and return it as an int."""
    try:
        value = int(month_index0)
    except (TypeError, ValueError) as e:
        raise ValidationError(f"Invalid month index: {month_index0!r}") from e

    if not 0 <= value <= 11:
        raise ValidationError(f"month_index0 must be in 0..11, got {month_index0}")
    return value


def validate_result(result: ExtractionResult) -> List[str]:
    """
    Validate an extraction result and return warnings.

    Args:
        result: ExtractionResult to validate

    Returns:
        List of validation warning messages
    """
    warnings = []

    if not result.rows:
        warnings.append("No day rows were extracted")
        return warnings

    incomplete = [r.day for r in result.rows if not r.has_times]
    if incomplete:
        days = ', '.join(str(d) for d in incomplete)
        warnings.append(f"{len(incomplete)} day(s) without both in and out times: {days}")

    merged = sum(len(r.times_found) - len(r.unique_times) for r in result.rows)
    if merged > 0:
        warnings.append(f"{merged} duplicate time reading(s) were merged")

    if not result.employee_name:
        warnings.append("Employee name not detected")
    if not result.month_label:
        warnings.append("Month/year label not detected")

    return warnings


def setup_logging(verbose: bool = False) -> None:
    """Install a single console handler on the package logger."""
    logger = logging.getLogger('dtr_engine')
    level = logging.DEBUG if verbose else logging.INFO
    logger.setLevel(level)

    if not any(isinstance(h, logging.StreamHandler) for h in logger.handlers):
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATE_FORMAT))
        logger.addHandler(handler)

    for handler in logger.handlers:
        handler.setLevel(level)
