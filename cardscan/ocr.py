"""
OCR adapter turning EasyOCR detections into an OCRDocument.
"""
import logging
import os
from pathlib import Path
from typing import List, Sequence, Tuple

import cv2
import numpy as np

from .exceptions import UpstreamOCRFailure
from .models import BoundingBox, OCRDocument, OCRLine

logger = logging.getLogger(__name__)

# (polygon, text, confidence 0..1) as returned by easyocr.Reader.readtext
Detection = Tuple[Sequence[Sequence[float]], str, float]


def detection_to_line(detection: Detection) -> Tuple[float, OCRLine]:
    """Convert one EasyOCR detection to (left x, OCRLine)."""
    polygon, text, confidence = detection
    xs = [float(point[0]) for point in polygon]
    ys = [float(point[1]) for point in polygon]
    line = OCRLine(
        text=text.strip(),
        bbox=BoundingBox(y0=min(ys), y1=max(ys)),
        confidence=round(float(confidence) * 100, 2),
    )
    return min(xs), line


def group_rows(detections: Sequence[Detection]) -> List[OCRLine]:
    """
    Merge detections that sit on the same visual row into single lines.

    EasyOCR reports text regions rather than full lines, so one printed line
    ("John Doe  |  CEO") can come back as several detections. A detection
    joins the current row when its vertical centre lies inside the row's span.

    Args:
        detections: Raw readtext results

    Returns:
        Lines ordered top to bottom, each row's text joined left to right
    """
    items = [detection_to_line(d) for d in detections if d[1] and d[1].strip()]
    items.sort(key=lambda item: (item[1].bbox.y0, item[0]))

    rows: List[List[Tuple[float, OCRLine]]] = []
    for x, line in items:
        centre = (line.bbox.y0 + line.bbox.y1) / 2
        if rows:
            top = min(l.bbox.y0 for _, l in rows[-1])
            bottom = max(l.bbox.y1 for _, l in rows[-1])
            if top <= centre <= bottom:
                rows[-1].append((x, line))
                continue
        rows.append([(x, line)])

    lines = []
    for row in rows:
        row.sort(key=lambda item: item[0])
        parts = [line for _, line in row]
        lines.append(OCRLine(
            text=" ".join(p.text for p in parts),
            bbox=BoundingBox(
                y0=min(p.bbox.y0 for p in parts),
                y1=max(p.bbox.y1 for p in parts),
            ),
            confidence=round(sum(p.confidence for p in parts) / len(parts), 2),
        ))
    return lines


class OCRExtractor:
    """Runs EasyOCR over a card image."""

    def __init__(
        self,
        languages: List[str] = None,
        gpu: bool = False,
        model_dir: str = "./models",
        reader=None
    ):
        """
        Initialize OCR extractor.

        Args:
            languages: List of languages for OCR
            gpu: Use GPU for OCR
            model_dir: Directory for model storage
            reader: Preconfigured reader with a ``readtext`` method; an
                EasyOCR reader is created when omitted
        """
        self.languages = languages or ["en"]
        self.gpu = gpu
        self.model_dir = model_dir
        self.reader = reader if reader is not None else self._create_reader()

    def _create_reader(self):
        import easyocr

        os.makedirs(self.model_dir, exist_ok=True)
        logger.info(f"Initializing EasyOCR with languages: {self.languages}")
        try:
            reader = easyocr.Reader(
                lang_list=self.languages,
                gpu=self.gpu,
                model_storage_directory=self.model_dir,
                download_enabled=True,
                verbose=False
            )
        except Exception as e:
            logger.error(f"Failed to initialize EasyOCR: {e}")
            raise UpstreamOCRFailure(f"OCR engine unavailable: {e}") from e
        logger.info("EasyOCR initialized successfully")
        return reader

    @staticmethod
    def _load_image(image_path: Path) -> np.ndarray:
        img = cv2.imread(str(image_path))
        if img is None:
            raise UpstreamOCRFailure(f"Cannot read image: {image_path}")

        # readtext expects 3-channel BGR uint8
        if len(img.shape) == 3 and img.shape[2] > 3:
            img = cv2.cvtColor(img, cv2.COLOR_BGRA2BGR)
        elif len(img.shape) == 2:
            img = cv2.cvtColor(img, cv2.COLOR_GRAY2BGR)
        if img.dtype != np.uint8:
            img = img.astype(np.uint8)
        return img

    def extract_document(self, image_path: Path) -> OCRDocument:
        """
        Recognize the text layout of a card image.

        Args:
            image_path: Path to image

        Returns:
            OCRDocument with one line per visual row

        Raises:
            UpstreamOCRFailure: The image cannot be read or the engine fails
        """
        logger.info(f"Extracting text from {image_path}")
        img = self._load_image(image_path)

        try:
            detections = self.reader.readtext(img, detail=1, paragraph=False)
        except Exception as e:
            logger.error(f"OCR extraction error: {e}", exc_info=True)
            raise UpstreamOCRFailure(f"OCR engine failed: {e}") from e

        try:
            lines = group_rows(detections)
        except (TypeError, ValueError, IndexError) as e:
            raise UpstreamOCRFailure(f"Malformed OCR output: {e}") from e

        logger.info(f"Extracted {len(lines)} lines from {len(detections)} detections")
        return OCRDocument(
            text="\n".join(line.text for line in lines),
            lines=tuple(lines),
        )
