"""
Source package initialization for the Business Card Scanning API.
"""

from .models import OCRDocument, OCRLine, BoundingBox, ExtractionField, ExtractionResult
from .parser import ContactParser, ExtractionSettings, extract_fields
from .ocr import OCRExtractor
from .pipeline import CardScanPipeline
from .storage import ContactStore
from .export import contacts_to_csv

__all__ = [
    "OCRDocument",
    "OCRLine",
    "BoundingBox",
    "ExtractionField",
    "ExtractionResult",
    "ContactParser",
    "ExtractionSettings",
    "extract_fields",
    "OCRExtractor",
    "CardScanPipeline",
    "ContactStore",
    "contacts_to_csv"
]
