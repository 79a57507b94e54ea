from intake.errors import IntakeError


class InvalidTransitionError(IntakeError):
    """Raised when the intake state machine is driven along an illegal edge."""
