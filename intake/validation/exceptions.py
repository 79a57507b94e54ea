from intake.errors import IntakeError


class ValidationError(IntakeError):
    """Raised when a submission fails the quick pre-checks (extension, size, name)."""

    def __init__(self, reasons: list[str]) -> None:
        self.reasons = list(reasons)
        super().__init__("; ".join(self.reasons) or "File failed basic security checks")
