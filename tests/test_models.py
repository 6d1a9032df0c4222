"""
Tests for the OCR input and extraction output models.
"""

from cardscan.models import (
    BoundingBox,
    ExtractionField,
    ExtractionResult,
    OCRDocument,
    OCRLine,
)


class TestOCRDocument:
    """Test cases for building documents from JSON."""

    def test_from_dict(self):
        document = OCRDocument.from_dict({
            "text": "John Doe\nAcme Corp",
            "lines": [
                {"text": "John Doe", "bbox": {"y0": 10, "y1": 52}, "confidence": 91.3},
                {"text": "Acme Corp", "bbox": {"y0": 60, "y1": 80}, "confidence": 88},
            ],
        })

        assert document.text == "John Doe\nAcme Corp"
        assert document.lines[0] == OCRLine("John Doe", BoundingBox(10, 52), 91.3)
        assert document.lines[1].confidence == 88

    def test_aliases(self):
        document = OCRDocument.from_dict({
            "fullText": "Jane Roe",
            "lines": [{"text": "Jane Roe", "boundingBox": {"y0": 0, "y1": 20}}],
        })

        assert document.text == "Jane Roe"
        assert document.lines[0].bbox == BoundingBox(0, 20)

    def test_missing_fields_default(self):
        document = OCRDocument.from_dict({"lines": [{}]})

        assert document.text == ""
        assert document.lines == (OCRLine(),)
        assert document.lines[0].bbox is None
        assert document.lines[0].confidence is None

    def test_malformed_values_default(self):
        document = OCRDocument.from_dict({
            "text": 42,
            "lines": [
                "not a line",
                {"text": None, "bbox": {"y0": 5}, "confidence": "high"},
                {"text": "Jane", "bbox": [1, 2], "confidence": True},
                {"text": "Roe", "bbox": {"y0": "3", "y1": "9"}, "confidence": "77"},
            ],
        })

        assert document.text == ""
        assert len(document.lines) == 3
        assert document.lines[0] == OCRLine("", None, None)
        assert document.lines[1] == OCRLine("Jane", None, None)
        assert document.lines[2] == OCRLine("Roe", BoundingBox(3.0, 9.0), 77.0)

    def test_non_finite_values_default(self):
        document = OCRDocument.from_dict({
            "text": "Jane Roe",
            "lines": [
                {"text": "Jane Roe", "bbox": {"y0": 0, "y1": 20}, "confidence": "nan"},
                {"text": "Globex", "bbox": {"y0": "-inf", "y1": "inf"}, "confidence": float("inf")},
                {"text": "Sales", "bbox": {"y0": 0, "y1": float("nan")}, "confidence": "-inf"},
                {"text": "Huge", "confidence": 10 ** 400},
            ],
        })

        assert document.lines[0] == OCRLine("Jane Roe", BoundingBox(0, 20), None)
        assert document.lines[1] == OCRLine("Globex", None, None)
        assert document.lines[2] == OCRLine("Sales", None, None)
        assert document.lines[3] == OCRLine("Huge", None, None)

    def test_not_a_dict(self):
        assert OCRDocument.from_dict(None) == OCRDocument()
        assert OCRDocument.from_dict(["text"]) == OCRDocument()


class TestExtractionResult:
    """Test cases for result serialization."""

    def test_default_is_complete(self):
        data = ExtractionResult().to_dict()

        assert set(data) == {"emails", "phones", "names", "companies"}
        assert all(field == {"values": [], "confidence": 0} for field in data.values())

    def test_to_dict(self):
        result = ExtractionResult(
            emails=ExtractionField(["john@acme.com"], 98),
            names=ExtractionField(["John Doe", "Sales"], 72),
        )
        data = result.to_dict()

        assert data["emails"] == {"values": ["john@acme.com"], "confidence": 98}
        assert data["names"] == {"values": ["John Doe", "Sales"], "confidence": 72}
        assert data["phones"]["values"] == []
