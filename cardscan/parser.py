"""
Contact field extraction from OCR layout output.

Turns an OCRDocument into labeled, confidence-scored emails, phones, names
and companies. Every function here is pure: no I/O and no shared state, so a
single parser can serve concurrent requests.
"""

import math
import re
import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from .models import (
    Candidate,
    ExtractionField,
    ExtractionResult,
    OCRDocument,
    OCRLine,
)

logger = logging.getLogger(__name__)


# =========================
# CONSTANT TABLES
# =========================

PATTERNS = {
    "email": re.compile(r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b", re.IGNORECASE),
    "phone": re.compile(r"(?:\+?\d{1,3}[ -]?)?\(?\d{3}\)?[ -]?\d{3}[ -]?\d{4}"),
}

# Case-sensitive substrings that mark a line as a company name
COMPANY_KEYWORDS = (
    "Inc", "Ltd", "Pvt", "Group", "Corp", "Systems",
    "Solutions", "Enterprises", "Technologies", "Services",
)

LETTER_PATTERN = re.compile(r"[a-zA-Z]")

EMAIL_CONFIDENCE = 98
PHONE_CONFIDENCE = 96

NAME = "name"
COMPANY = "company"


@dataclass(frozen=True)
class ExtractionSettings:
    """Tunable thresholds for line classification and scoring.

    Attributes:
        classify_default_confidence: Score given to a fallback-name line the
            OCR engine reported no confidence for
        aggregate_default_confidence: Score a candidate without confidence
            contributes to its field average
        big_text_ratio: Fraction of the tallest line a line must exceed to
            count as big text
        min_line_length: Shortest trimmed line that is classified
        fallback_min_length: Raw-text segments must be longer than this to be
            used by the fallback splitter
    """
    classify_default_confidence: float = 50
    aggregate_default_confidence: float = 70
    big_text_ratio: float = 0.8
    min_line_length: int = 3
    fallback_min_length: int = 3
    company_keywords: Tuple[str, ...] = COMPANY_KEYWORDS


DEFAULT_SETTINGS = ExtractionSettings()


@dataclass(frozen=True)
class Layout:
    heights: Tuple[float, ...]
    max_line_height: float


@dataclass(frozen=True)
class Classification:
    names: Tuple[Candidate, ...] = ()
    companies: Tuple[Candidate, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not self.names and not self.companies


# =========================
# LAYOUT
# =========================

def line_height(line: OCRLine) -> float:
    """Height of a line's bounding box, 0 when the box is missing."""
    if line.bbox is None:
        return 0
    return max(line.bbox.y1 - line.bbox.y0, 0)


def normalize_layout(lines: Sequence[OCRLine]) -> Layout:
    heights = tuple(line_height(line) for line in lines)
    return Layout(heights=heights, max_line_height=max(heights, default=0))


# =========================
# PATTERNS
# =========================

def extract_emails(text: str) -> List[str]:
    return PATTERNS["email"].findall(text)


def extract_phones(text: str) -> List[str]:
    return PATTERNS["phone"].findall(text)


def match_confidence(matches: Sequence[str], score: int) -> int:
    return score if matches else 0


# =========================
# CLASSIFICATION
# =========================

def _is_finite(value: Optional[float]) -> bool:
    return value is not None and math.isfinite(value)


def _is_noise(text: str, contact_matches: Sequence[str], settings: ExtractionSettings) -> bool:
    if len(text) < settings.min_line_length:
        return True
    if not LETTER_PATTERN.search(text):
        return True
    # Already reported as an email or phone
    return any(match in text for match in contact_matches)


def classify_line(
    line: OCRLine,
    height: float,
    max_line_height: float,
    contact_matches: Sequence[str],
    settings: ExtractionSettings = DEFAULT_SETTINGS,
) -> Optional[Tuple[str, Candidate]]:
    """Label a single line as a name or company candidate.

    Company keywords win over text size: a keyword line is never a big-text
    name, even when it is the tallest line on the card.

    Args:
        line: OCR line to classify
        height: Bounding box height of the line
        max_line_height: Tallest line height in the document, 0 disables
            the big-text rule
        contact_matches: Emails and phones already extracted from the text
        settings: Classification thresholds

    Returns:
        (label, candidate) tuple, or None when the line is noise
    """
    text = line.text.strip()
    if _is_noise(text, contact_matches, settings):
        return None

    if any(keyword in text for keyword in settings.company_keywords):
        return COMPANY, Candidate(text, line.confidence)

    if max_line_height > 0 and height > max_line_height * settings.big_text_ratio:
        return NAME, Candidate(text, line.confidence)

    confidence = line.confidence
    if not _is_finite(confidence):
        confidence = settings.classify_default_confidence
    return NAME, Candidate(text, confidence)


def classify_lines(
    lines: Sequence[OCRLine],
    layout: Layout,
    contact_matches: Sequence[str],
    settings: ExtractionSettings = DEFAULT_SETTINGS,
) -> Classification:
    labeled = [
        classify_line(line, height, layout.max_line_height, contact_matches, settings)
        for line, height in zip(lines, layout.heights)
    ]
    labeled = [item for item in labeled if item is not None]

    return Classification(
        names=tuple(candidate for label, candidate in labeled if label == NAME),
        companies=tuple(candidate for label, candidate in labeled if label == COMPANY),
    )


# =========================
# SCORING
# =========================

def aggregate_confidence(
    candidates: Sequence[Candidate],
    default_confidence: float = DEFAULT_SETTINGS.aggregate_default_confidence,
) -> int:
    """Average candidate confidence as an integer in [0, 100].

    Candidates without a finite confidence count as ``default_confidence``.
    Halves round up.
    """
    if not candidates:
        return 0

    total = sum(
        c.confidence if _is_finite(c.confidence) else default_confidence
        for c in candidates
    )
    mean = total / len(candidates)
    if math.isnan(mean):
        return 0
    return int(math.floor(min(max(mean, 0), 100) + 0.5))


# =========================
# FALLBACK
# =========================

def split_fallback_names(
    text: str,
    settings: ExtractionSettings = DEFAULT_SETTINGS,
) -> Tuple[Candidate, ...]:
    """Use every usable raw text line as a zero-confidence name guess."""
    segments = (segment.strip() for segment in text.split("\n"))
    return tuple(
        Candidate(segment, 0)
        for segment in segments
        if len(segment) > settings.fallback_min_length
    )


# =========================
# PIPELINE API
# =========================

def _field(candidates: Sequence[Candidate], settings: ExtractionSettings) -> ExtractionField:
    return ExtractionField(
        values=[c.text for c in candidates],
        confidence=aggregate_confidence(candidates, settings.aggregate_default_confidence),
    )


def extract_fields(
    document: OCRDocument,
    settings: ExtractionSettings = DEFAULT_SETTINGS,
) -> ExtractionResult:
    """Run the full extraction over one OCR document.

    Never raises for sparse input: an empty document yields empty fields
    with zero confidence.
    """
    layout = normalize_layout(document.lines)
    emails = extract_emails(document.text)
    phones = extract_phones(document.text)
    logger.debug(
        f"Scanning {len(document.lines)} lines; found {len(emails)} emails, {len(phones)} phones"
    )

    classification = classify_lines(document.lines, layout, emails + phones, settings)

    if classification.is_empty:
        fallback = split_fallback_names(document.text, settings)
        if fallback:
            logger.warning("Line classification found no candidates, using raw text fallback")
        classification = Classification(names=fallback)

    logger.debug(
        f"Classified {len(classification.names)} names, {len(classification.companies)} companies"
    )

    return ExtractionResult(
        emails=ExtractionField(values=emails, confidence=match_confidence(emails, EMAIL_CONFIDENCE)),
        phones=ExtractionField(values=phones, confidence=match_confidence(phones, PHONE_CONFIDENCE)),
        names=_field(classification.names, settings),
        companies=_field(classification.companies, settings),
    )


class ContactParser:
    """Extraction entry point bound to one set of settings."""

    def __init__(self, settings: Optional[ExtractionSettings] = None):
        self.settings = settings or DEFAULT_SETTINGS

    def parse(self, document: OCRDocument) -> ExtractionResult:
        return extract_fields(document, self.settings)

    def parse_dict(self, data) -> ExtractionResult:
        """Parse raw OCR JSON, tolerating missing or malformed fields."""
        return self.parse(OCRDocument.from_dict(data))
