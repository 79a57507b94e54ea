class IntakeError(Exception):
    """Base exception for all file-intake errors."""
