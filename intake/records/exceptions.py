from intake.errors import IntakeError


class RecordStoreError(IntakeError):
    """Raised when a metadata record cannot be written or found."""


class RecordNotFoundError(RecordStoreError):
    """Raised when an update targets a record that does not exist."""
