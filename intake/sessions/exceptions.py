from intake.errors import IntakeError


class SessionError(IntakeError):
    """Base exception for upload-session bookkeeping errors."""


class SessionNotFoundError(SessionError):
    """Raised when a session id is unknown."""


class SessionInvariantError(SessionError):
    """Raised when session totals do not add up; always a programming error."""
