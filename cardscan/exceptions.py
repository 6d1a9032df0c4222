"""Exception taxonomy for card scanning.

Extraction itself never raises on sparse OCR output; these cover the
infrastructure around it (uploads, the OCR engine, the contact store).
"""


class CardScanError(Exception):
    """Base class for card scanning errors."""

    pass


class MissingInputError(CardScanError):
    """No card image was supplied with the request."""

    pass


class UpstreamOCRFailure(CardScanError):
    """The OCR engine failed or returned unusable output."""

    pass


class PersistenceFailure(CardScanError):
    """The contact store rejected a save."""

    pass


class ExportEmptyError(CardScanError):
    """Export was requested but no contacts are stored."""

    pass
