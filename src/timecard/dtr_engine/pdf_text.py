"""Reading the embedded text layer of DTR PDFs with pdfplumber."""

import logging
from functools import cmp_to_key
from pathlib import Path
from typing import Any, Dict, List, Union

import pdfplumber

from .row_clusterer import SIDES
from .utils import ExtractionError, ValidationError

logger = logging.getLogger(__name__)

# Words whose baselines differ by no more than this share a line
LINE_TOLERANCE = 2.0


def _reading_order(a: Dict[str, Any], b: Dict[str, Any]) -> float:
    if abs(a['bottom'] - b['bottom']) > LINE_TOLERANCE:
        return a['bottom'] - b['bottom']
    return a['x0'] - b['x0']


def select_page_words(words: List[Dict[str, Any]], side: str, page_width: float) -> List[Dict[str, Any]]:
    """
    Keep the words of one page half, in reading order.

    Words are assigned to a half by their left edge against the page's
    horizontal midpoint, then ordered top to bottom and left to right.
    """
    if side not in SIDES:
        raise ValidationError(f"Unsupported side: {side!r}. Expected one of: {', '.join(SIDES)}")

    mid_x = page_width / 2
    if side == 'left':
        words = [w for w in words if w['x0'] < mid_x]
    elif side == 'right':
        words = [w for w in words if w['x0'] >= mid_x]

    return sorted(words, key=cmp_to_key(_reading_order))


def extract_pdf_text(file_path: Union[str, Path], side: str = 'full') -> str:
    """
    Extract text from the PDF text layer, without OCR.

    Args:
        file_path: Path to the PDF
        side: Page half to keep: "left", "right" or "full"

    Returns:
        One line per page, each a space-joined stream of words

    Raises:
        ExtractionError: If the PDF cannot be read
    """
    out = ""
    try:
        with pdfplumber.open(str(file_path)) as pdf:
            for page in pdf.pages:
                words = page.extract_words(keep_blank_chars=False)
                selected = select_page_words(words, side, float(page.width))
                out += "\n" + " ".join(w['text'] for w in selected)
    except ValidationError:
        raise
    except Exception as e:
        raise ExtractionError(f"Error reading PDF text from {file_path}: {e}") from e

    logger.debug("Read %d characters of PDF text (%s side)", len(out), side)
    return out


def pdf_has_text(file_path: Union[str, Path]) -> bool:
    """Check whether any page of the PDF carries a text layer."""
    try:
        with pdfplumber.open(str(file_path)) as pdf:
            return any(page.chars for page in pdf.pages)
    except Exception as e:
        raise ExtractionError(f"Error opening PDF {file_path}: {e}") from e
