from intake.errors import IntakeError


class PdfExtractionError(IntakeError):
    """Raised when text cannot be extracted from PDF bytes."""
