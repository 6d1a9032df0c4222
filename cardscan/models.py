"""
Data model for business card extraction.

OCR input types (OCRLine, OCRDocument) mirror the layout output of the OCR
engine. ExtractionField and ExtractionResult are the shapes returned to API
callers.
"""

import logging
import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

logger = logging.getLogger(__name__)


def _as_number(value: Any) -> Optional[float]:
    """Return value as float, or None when it is absent, not numeric or not finite."""
    if isinstance(value, bool) or value is None:
        return None
    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError):
        return None
    return number if math.isfinite(number) else None


# =========================
# OCR INPUT
# =========================

@dataclass(frozen=True)
class BoundingBox:
    """Vertical span of a recognized line in image pixels."""
    y0: float
    y1: float

    @classmethod
    def from_dict(cls, data: Any) -> Optional["BoundingBox"]:
        if not isinstance(data, dict):
            return None
        y0 = _as_number(data.get("y0"))
        y1 = _as_number(data.get("y1"))
        if y0 is None or y1 is None:
            return None
        return cls(y0=y0, y1=y1)


@dataclass(frozen=True)
class OCRLine:
    text: str = ""
    bbox: Optional[BoundingBox] = None
    confidence: Optional[float] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "OCRLine":
        text = data.get("text")
        bbox_data = data.get("bbox", data.get("boundingBox"))
        return cls(
            text=text if isinstance(text, str) else "",
            bbox=BoundingBox.from_dict(bbox_data),
            confidence=_as_number(data.get("confidence")),
        )


@dataclass(frozen=True)
class OCRDocument:
    """Full OCR output for one card.

    Attributes:
        text: The whole recognized text, lines separated by newlines
        lines: Recognized lines in visual top-to-bottom order
    """
    text: str = ""
    lines: Tuple[OCRLine, ...] = ()

    @classmethod
    def from_dict(cls, data: Any) -> "OCRDocument":
        """Build a document from engine or API JSON.

        Every sub-field may be missing or malformed; missing values fall back
        to empty defaults instead of raising.
        """
        if not isinstance(data, dict):
            return cls()

        text = data.get("text", data.get("fullText"))
        raw_lines = data.get("lines")
        if not isinstance(raw_lines, (list, tuple)):
            raw_lines = []

        lines = tuple(OCRLine.from_dict(item) for item in raw_lines if isinstance(item, dict))
        dropped = len(raw_lines) - len(lines)
        if dropped:
            logger.debug(f"Dropped {dropped} malformed OCR lines")

        return cls(text=text if isinstance(text, str) else "", lines=lines)


# =========================
# EXTRACTION OUTPUT
# =========================

@dataclass(frozen=True)
class Candidate:
    """Unconfirmed name or company guess taken from one line."""
    text: str
    confidence: Optional[float] = None


@dataclass(frozen=True)
class ExtractionField:
    values: List[str] = field(default_factory=list)
    confidence: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "values": list(self.values),
            "confidence": self.confidence,
        }


@dataclass(frozen=True)
class ExtractionResult:
    emails: ExtractionField = field(default_factory=ExtractionField)
    phones: ExtractionField = field(default_factory=ExtractionField)
    names: ExtractionField = field(default_factory=ExtractionField)
    companies: ExtractionField = field(default_factory=ExtractionField)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the JSON response shape."""
        return {
            "emails": self.emails.to_dict(),
            "phones": self.phones.to_dict(),
            "names": self.names.to_dict(),
            "companies": self.companies.to_dict(),
        }
