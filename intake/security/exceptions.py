from intake.errors import IntakeError


class ScanError(IntakeError):
    """Raised by scan backends when they cannot complete a check.

    The scanner never lets this escape: it is folded into the result as a
    penalty finding.
    """
