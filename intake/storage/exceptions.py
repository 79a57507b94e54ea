from intake.errors import IntakeError


class StorageError(IntakeError):
    """Raised when the blob store cannot persist or delete an object."""
