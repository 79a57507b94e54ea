from intake.errors import IntakeError


class ConversionError(IntakeError):
    """Raised for unsupported format pairs or failed conversion stages."""
