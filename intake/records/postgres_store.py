from collections.abc import Callable
from typing import TypeVar

import psycopg

from intake.database.repositories.file_records_repository import FileRecordsRepository
from intake.database.repositories.upload_sessions_repository import UploadSessionsRepository
from intake.database.repositories.usage_repository import UsageRepository
from intake.records.base import RecordStore
from intake.records.exceptions import RecordNotFoundError, RecordStoreError
from intake.records.models import FileRecord, Notification
from intake.sessions.models import SessionSummary

T = TypeVar("T")


class PostgresRecordStore(RecordStore):
    """Record store backed by the pooled PostgreSQL connection."""

    def __init__(
        self,
        files: FileRecordsRepository | None = None,
        sessions: UploadSessionsRepository | None = None,
        usage: UsageRepository | None = None,
    ) -> None:
        self._files = files or FileRecordsRepository()
        self._sessions = sessions or UploadSessionsRepository()
        self._usage = usage or UsageRepository()

    def create_file_record(self, record: FileRecord) -> None:
        self._call(lambda: self._files.insert(record))

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
        updated = self._call(
            lambda: self._files.update_status(
                file_id,
                status,
                reason=reason,
                storage_path=storage_path,
                storage_url=storage_url,
                sha256=sha256,
                risk_score=risk_score,
            )
        )
        if updated == 0:
            raise RecordNotFoundError(f"File record {file_id} not found")

    def increment_usage(self, actor_id: str, uploads: int = 1, bytes_stored: int = 0) -> None:
        self._call(lambda: self._usage.increment(actor_id, uploads, bytes_stored))

    def append_notification(self, notification: Notification) -> None:
        self._call(lambda: self._usage.add_notification(notification))

    def save_session(self, summary: SessionSummary) -> None:
        self._call(lambda: self._sessions.upsert(summary))

    @staticmethod
    def _call(operation: Callable[[], T]) -> T:
        try:
            return operation()
        except psycopg.Error as exc:
            raise RecordStoreError(f"Record store operation failed: {exc}") from exc
        except RuntimeError as exc:
            raise RecordStoreError(str(exc)) from exc
