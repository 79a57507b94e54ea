from abc import ABC, abstractmethod

from intake.records.models import FileRecord, Notification
from intake.sessions.models import SessionSummary


class RecordStore(ABC):
    """Metadata store that mirrors intake transitions.

    Implementations raise ``RecordStoreError`` on failure; the pipeline treats
    every call as fire-and-forget and only logs those errors.
    """

    @abstractmethod
    def create_file_record(self, record: FileRecord) -> None: ...

    @abstractmethod
    def update_file_status(
        self,
        file_id: str,
        status: str,
        reason: str | None = None,
        storage_path: str | None = None,
        storage_url: str | None = None,
        sha256: str | None = None,
        risk_score: int | None = None,
    ) -> None:
        """Raises RecordNotFoundError if ``file_id`` was never created."""

    @abstractmethod
    def increment_usage(self, actor_id: str, uploads: int = 1, bytes_stored: int = 0) -> None: ...

    @abstractmethod
    def append_notification(self, notification: Notification) -> None: ...

    @abstractmethod
    def save_session(self, summary: SessionSummary) -> None: ...
