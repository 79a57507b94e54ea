from dataclasses import dataclass, field

from intake.pipeline.models import FileOutcome


@dataclass
class UploadSession:
    """Running totals for one batch; mutated only by the aggregator under its lock."""

    session_id: str
    actor_id: str
    total_files: int
    started_at: float
    successful_uploads: int = 0
    failed_uploads: int = 0
    closed_at: float | None = None
    aborted_reason: str | None = None
    outcomes: dict[str, FileOutcome] = field(default_factory=dict)

    @property
    def recorded(self) -> int:
        return self.successful_uploads + self.failed_uploads

    @property
    def is_closed(self) -> bool:
        return self.closed_at is not None


@dataclass(frozen=True)
class SessionSummary:
    session_id: str
    actor_id: str
    total_files: int
    successful_uploads: int
    failed_uploads: int
    started_at: float
    closed_at: float | None
    duration_ms: int | None
    outcomes: tuple[FileOutcome, ...] = ()
    aborted_reason: str | None = None

    @property
    def is_closed(self) -> bool:
        return self.closed_at is not None

    def outcome_for(self, file_id: str) -> FileOutcome | None:
        return next((o for o in self.outcomes if o.file_id == file_id), None)

    def to_payload(self) -> dict[str, object]:
        return {
            "session_id": self.session_id,
            "actor_id": self.actor_id,
            "total_files": self.total_files,
            "successful_uploads": self.successful_uploads,
            "failed_uploads": self.failed_uploads,
            "started_at": self.started_at,
            "closed_at": self.closed_at,
            "duration_ms": self.duration_ms,
            "aborted_reason": self.aborted_reason,
            "files": [o.to_payload() for o in self.outcomes],
        }
