from dataclasses import dataclass, field


@dataclass
class FileRecord:
    """Metadata row mirroring one file's intake lifecycle."""

    file_id: str
    session_id: str
    actor_id: str
    name: str
    size: int
    mime_type: str
    status: str
    sha256: str | None = None
    risk_score: int | None = None
    reason: str | None = None
    storage_path: str | None = None
    storage_url: str | None = None
    created_at: float | None = None
    updated_at: float | None = None


@dataclass
class UsageTotals:
    actor_id: str
    uploads: int = 0
    bytes_stored: int = 0


@dataclass(frozen=True)
class Notification:
    actor_id: str
    kind: str  # "upload_complete", "upload_rejected", "rate_limited"
    message: str
    payload: dict[str, object] = field(default_factory=dict)
    created_at: float | None = None
