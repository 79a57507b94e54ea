from intake.errors import IntakeError


class FileReadError(IntakeError):
    """Raised when a submission's bytes cannot be read."""
