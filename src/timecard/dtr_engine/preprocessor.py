"""Document preprocessing: page images, half-page crops and thresholding."""

import logging
from pathlib import Path
from typing import List, Union

import cv2
import numpy as np

from .row_clusterer import SIDES
from .utils import SUPPORTED_IMAGE_EXTENSIONS, ExtractionError, ValidationError

logger = logging.getLogger(__name__)


class DocumentPreprocessor:
    """Converts DTR documents into page images ready for OCR."""

    def __init__(self, dpi: int = 187, binarize: bool = True, threshold: int = 180):
        """
        Initialize the document preprocessor.

        Args:
            dpi: Resolution used to render PDF pages
            binarize: Apply grayscale + fixed threshold to every page
            threshold: Gray level above which a pixel becomes white
        """
        self.dpi = dpi
        self.binarize = binarize
        self.threshold = threshold

    def process(self, file_path: Union[str, Path], side: str = 'full') -> List[np.ndarray]:
        """
        Process document and return list of images as numpy arrays.

        Args:
            file_path: Path to the document file
            side: Page half to keep: "left", "right" or "full"

        Returns:
            List of BGR images (one per page)

        Raises:
            ValidationError: If the file format or side is not supported
            ExtractionError: If the document cannot be loaded or rendered
        """
        if side not in SIDES:
            raise ValidationError(f"Unsupported side: {side!r}. Expected one of: {', '.join(SIDES)}")

        file_path = Path(file_path)
        extension = file_path.suffix.lower()

        if extension in SUPPORTED_IMAGE_EXTENSIONS:
            pages = [self._load_image(file_path)]
        elif extension == '.pdf':
            pages = self._render_pdf(file_path)
        else:
            raise ValidationError(f"Unsupported file format: {extension}")

        processed = []
        for idx, page in enumerate(pages):
            image = self.crop_side(page, side)
            if self.binarize:
                image = self.threshold_image(image, self.threshold)
            logger.debug("Page %d: shape=%s after preprocessing", idx + 1, image.shape)
            processed.append(image)

        return processed

    def _load_image(self, file_path: Path) -> np.ndarray:
        # OpenCV returns BGR, which PaddleOCR expects
        img_array = cv2.imread(str(file_path))
        if img_array is None:
            raise ExtractionError(f"Failed to load image: {file_path}")

        logger.info("Loaded image: shape=%s, dtype=%s", img_array.shape, img_array.dtype)
        return img_array

    def _render_pdf(self, file_path: Path) -> List[np.ndarray]:
        try:
            from pdf2image import convert_from_path
        except ImportError as e:
            raise ImportError(
                "pdf2image is required for PDF processing. "
                "Install with: pip install pdf2image"
            ) from e

        try:
            images = convert_from_path(str(file_path), dpi=self.dpi, fmt='RGB')
        except Exception as e:
            raise ExtractionError(f"Error rendering PDF {file_path}: {e}") from e

        logger.info("Rendered %d PDF page(s) at %d dpi", len(images), self.dpi)
        # PIL gives RGB; convert to BGR for OpenCV/PaddleOCR
        return [cv2.cvtColor(np.array(img.convert('RGB')), cv2.COLOR_RGB2BGR) for img in images]

    @staticmethod
    def crop_side(image: np.ndarray, side: str) -> np.ndarray:
        """
        Keep the left or right half of a page image.

        Both halves are ``floor(width / 2)`` pixels wide.
        """
        if side == 'full':
            return image

        half_w = image.shape[1] // 2
        x = 0 if side == 'left' else half_w
        return image[:, x:x + half_w].copy()

    @staticmethod
    def threshold_image(image: np.ndarray, threshold: int = 180) -> np.ndarray:
        """Grayscale + fixed threshold, returned as a 3-channel BGR image."""
        if image.ndim == 3:
            gray = cv2.cvtColor(image, cv2.COLOR_BGR2GRAY)
        else:
            gray = image
        _, binary = cv2.threshold(gray, threshold, 255, cv2.THRESH_BINARY)
        return cv2.cvtColor(binary, cv2.COLOR_GRAY2BGR)
