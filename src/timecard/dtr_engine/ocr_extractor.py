"""OCR extraction using PaddleOCR."""

import logging
from typing import Any, List, Optional, Sequence

import numpy as np

from .models import WordFragment
from .utils import ExtractionError

logger = logging.getLogger(__name__)


class OCRExtractor:
    """Runs PaddleOCR on page images and returns positioned word fragments."""

    def __init__(self, use_gpu: bool = False, lang: str = 'en'):
        """
        Initialize OCR extractor.

        Args:
            use_gpu: Whether to use GPU acceleration (note: gpu support requires paddlepaddle-gpu)
            lang: Language code for OCR (default: 'en')
        """
        try:
            from paddleocr import PaddleOCR
        except ImportError as e:
            raise ImportError(
                "paddleocr is required for OCR. "
                "Install with: pip install paddleocr paddlepaddle"
            ) from e

        self.use_gpu = use_gpu
        self.ocr = PaddleOCR(
            use_angle_cls=True,  # Enable angle classification for rotated text
            lang=lang,
            det_db_box_thresh=0.3,  # Lower threshold for better detection of faint text
            det_db_unclip_ratio=2.0,  # Expand detected boxes slightly
        )

    def extract_words(self, image: np.ndarray, page: int = 0) -> List[WordFragment]:
        """
        Recognize text on one page image.

        Args:
            image: Page image as numpy array (BGR format from OpenCV)
            page: Page index stored on each fragment

        Returns:
            Word fragments sorted top to bottom, then left to right

        Raises:
            ExtractionError: If the image is unusable or PaddleOCR fails
        """
        if image is None or not isinstance(image, np.ndarray) or image.size == 0:
            raise ExtractionError(f"Page {page + 1}: expected a non-empty image array")

        try:
            result = self.ocr.ocr(image)
        except Exception as e:
            raise ExtractionError(f"Page {page + 1}: OCR failed: {e}") from e

        if not result or result[0] is None:
            logger.warning("Page %d: PaddleOCR returned no results", page + 1)
            return []

        # PaddleOCR has had API changes: older versions return a list of
        # (bbox, (text, confidence)) tuples. Newer pipeline returns a single
        # dict inside a list with keys like 'rec_texts', 'rec_polys',
        # 'rec_scores' or 'rec_boxes'. Handle both.
        first = result[0]
        if hasattr(first, 'get'):
            fragments, scores = self._parse_dict_result(first, page)
        else:
            fragments, scores = self._parse_line_result(first if isinstance(first, list) else result, page)

        fragments.sort(key=lambda f: (f.y_mid, f.x_mid))

        logger.info(
            "Page %d: extracted %d text elements (avg confidence: %.2f%%)",
            page + 1, len(fragments), self.calculate_confidence_score(scores) * 100,
        )
        return fragments

    @staticmethod
    def extract_text(fragments: Sequence[WordFragment]) -> str:
        """
        Join fragments into text lines for header parsing.

        Fragments on the same visual line (overlapping vertically) are joined
        with spaces, lines with newlines.
        """
        lines: List[List[WordFragment]] = []
        for f in sorted(fragments, key=lambda f: (f.page, f.y_mid, f.x0)):
            if lines and lines[-1][-1].page == f.page and f.y0 <= lines[-1][-1].y_mid <= f.y1:
                lines[-1].append(f)
            else:
                lines.append([f])
        return '\n'.join(' '.join(w.text for w in sorted(line, key=lambda w: w.x0)) for line in lines)

    def _parse_dict_result(self, first: Any, page: int):
        rec_texts = first.get('rec_texts') or []
        rec_scores = first.get('rec_scores') or []
        rec_polys = first.get('rec_polys')
        if rec_polys is None:
            rec_polys = first.get('rec_boxes')

        fragments: List[WordFragment] = []
        scores: List[float] = []
        for idx, text in enumerate(rec_texts):
            text = str(text).strip()
            if not text:
                continue

            bbox = None
            if rec_polys is not None and idx < len(rec_polys):
                bbox = self._to_box(rec_polys[idx])
            if bbox is None:
                logger.debug("Page %d: skipping %r without a bounding box", page + 1, text)
                continue

            fragments.append(WordFragment(text, *bbox, page=page))
            scores.append(float(rec_scores[idx]) if idx < len(rec_scores) else 0.0)

        return fragments, scores

    def _parse_line_result(self, lines: Sequence[Any], page: int):
        fragments: List[WordFragment] = []
        scores: List[float] = []
        for line in lines:
            if not line or len(line) < 2:
                continue

            text_info = line[1]
            if not text_info or len(text_info) < 2:
                continue

            text = str(text_info[0]).strip() if text_info[0] else ""
            bbox = self._to_box(line[0])
            if not text or bbox is None:
                continue

            fragments.append(WordFragment(text, *bbox, page=page))
            scores.append(float(text_info[1]))

        return fragments, scores

    @staticmethod
    def _to_box(poly: Any) -> Optional[tuple]:
        """Axis-aligned (x0, y0, x1, y1) from a 4-point polygon or a flat box."""
        try:
            points = [(float(p[0]), float(p[1])) for p in poly]
        except (TypeError, IndexError):
            points = None

        if points and len(points) >= 4:
            xs = [p[0] for p in points]
            ys = [p[1] for p in points]
            return min(xs), min(ys), max(xs), max(ys)

        try:
            x0, y0, x1, y1 = (float(v) for v in poly)
        except (TypeError, ValueError):
            return None
        return x0, y0, x1, y1

    @staticmethod
    def calculate_confidence_score(scores: Sequence[float]) -> float:
        """Average recognition confidence (0-1)."""
        if not scores:
            return 0.0
        return sum(scores) / len(scores)
