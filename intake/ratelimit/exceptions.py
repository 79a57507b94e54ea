from __future__ import annotations

from typing import TYPE_CHECKING

from intake.errors import IntakeError

if TYPE_CHECKING:
    from intake.sessions.models import SessionSummary


class RateLimitError(IntakeError):
    """Raised when an actor exceeds its intake ceiling; aborts the whole batch."""

    def __init__(
        self,
        actor_id: str,
        ceiling: int,
        summary: SessionSummary | None = None,
    ) -> None:
        self.actor_id = actor_id
        self.ceiling = ceiling
        self.summary = summary
        super().__init__(
            f"Upload rate limit exceeded for actor '{actor_id}' ({ceiling} per window)"
        )
