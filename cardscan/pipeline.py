"""
Business Card Scanning Pipeline
OCR followed by contact field extraction.

1. EasyOCR reads the card into an OCRDocument (lines, heights, confidences)
2. The parser labels emails, phones, names and companies
"""

import logging
import threading
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from .exceptions import UpstreamOCRFailure
from .models import OCRDocument
from .ocr import OCRExtractor
from .parser import ContactParser, ExtractionSettings

logger = logging.getLogger(__name__)


class CardScanPipeline:
    """Complete pipeline for scanning business cards."""

    def __init__(
        self,
        ocr: Optional[OCRExtractor] = None,
        parser: Optional[ContactParser] = None,
        settings: Optional[ExtractionSettings] = None,
        ocr_languages: List[str] = None,
        ocr_gpu: bool = False,
        model_dir: str = "./models"
    ):
        self.ocr_languages = ocr_languages or ["en"]
        self.ocr_gpu = ocr_gpu
        self.model_dir = model_dir
        self._ocr = ocr
        self._ocr_lock = threading.Lock()
        self.parser = parser or ContactParser(settings)

    @property
    def ocr(self) -> OCRExtractor:
        """OCR extractor, created on first use since model loading is slow."""
        if self._ocr is None:
            with self._ocr_lock:
                if self._ocr is None:
                    self._ocr = OCRExtractor(
                        languages=self.ocr_languages,
                        gpu=self.ocr_gpu,
                        model_dir=self.model_dir
                    )
        return self._ocr

    def _result(self, document: OCRDocument, start_time: float, **extra) -> Dict[str, Any]:
        result = self.parser.parse(document)
        total_time = time.time() - start_time
        logger.info(f"⏱️ Total processing time: {total_time:.2f}s")

        return {
            "success": True,
            "data": result.to_dict(),
            "ocr_text": document.text,
            "line_count": len(document.lines),
            "processing_time_ms": int(total_time * 1000),
            "processed_at": datetime.now(timezone.utc).isoformat(),
            **extra
        }

    def process_image(self, image_path: Path) -> Dict[str, Any]:
        """
        Scan a business card image.

        Args:
            image_path: Path to the image

        Returns:
            Dictionary with ``success`` and either ``data`` or ``error``
        """
        start_time = time.time()
        logger.info(f"Processing image: {image_path}")

        try:
            document = self.ocr.extract_document(Path(image_path))
        except UpstreamOCRFailure as e:
            logger.error(f"OCR failed for {image_path}: {e}")
            return {
                "success": False,
                "error": str(e),
                "image": str(image_path)
            }

        logger.debug(f"📝 Raw OCR text:\n{document.text}")
        return self._result(document, start_time, image=str(image_path))

    def process_document(self, data: Any) -> Dict[str, Any]:
        """Extract fields from OCR output produced elsewhere (skips OCR)."""
        start_time = time.time()
        document = data if isinstance(data, OCRDocument) else OCRDocument.from_dict(data)
        return self._result(document, start_time)

    def get_status(self) -> Dict[str, Any]:
        """Get pipeline status information."""
        settings = self.parser.settings
        return {
            "ocr_engine": "easyocr",
            "ocr_loaded": self._ocr is not None,
            "ocr_languages": self.ocr_languages,
            "ocr_gpu": self.ocr_gpu,
            "classify_default_confidence": settings.classify_default_confidence,
            "aggregate_default_confidence": settings.aggregate_default_confidence,
            "company_keywords": list(settings.company_keywords)
        }
