import threading
from dataclasses import replace

from intake.clock import Clock, SystemClock
from intake.records.base import RecordStore
from intake.records.exceptions import RecordNotFoundError
from intake.records.models import FileRecord, Notification, UsageTotals
from intake.sessions.models import SessionSummary


class InMemoryRecordStore(RecordStore):
    def __init__(self, clock: Clock | None = None) -> None:
        self._clock = clock or SystemClock()
        self._files: dict[str, FileRecord] = {}
        self._usage: dict[str, UsageTotals] = {}
        self._notifications: list[Notification] = []
        self._sessions: dict[str, SessionSummary] = {}
        self._lock = threading.Lock()

    def create_file_record(self, record: FileRecord) -> None:
        now = self._clock.now()
        with self._lock:
            self._files[record.file_id] = replace(record, created_at=now, updated_at=now)

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
        with self._lock:
            record = self._files.get(file_id)
            if record is None:
                raise RecordNotFoundError(f"File record {file_id} not found")
            record.status = status
            record.updated_at = self._clock.now()
            if reason is not None:
                record.reason = reason
            if storage_path is not None:
                record.storage_path = storage_path
            if storage_url is not None:
                record.storage_url = storage_url
            if sha256 is not None:
                record.sha256 = sha256
            if risk_score is not None:
                record.risk_score = risk_score

    def increment_usage(self, actor_id: str, uploads: int = 1, bytes_stored: int = 0) -> None:
        with self._lock:
            totals = self._usage.setdefault(actor_id, UsageTotals(actor_id=actor_id))
            totals.uploads += uploads
            totals.bytes_stored += bytes_stored

    def append_notification(self, notification: Notification) -> None:
        with self._lock:
            self._notifications.append(
                replace(notification, created_at=notification.created_at or self._clock.now())
            )

    def save_session(self, summary: SessionSummary) -> None:
        with self._lock:
            self._sessions[summary.session_id] = summary

    def get_file_record(self, file_id: str) -> FileRecord | None:
        with self._lock:
            record = self._files.get(file_id)
            return replace(record) if record is not None else None

    def usage_for(self, actor_id: str) -> UsageTotals:
        with self._lock:
            totals = self._usage.get(actor_id)
            return replace(totals) if totals is not None else UsageTotals(actor_id=actor_id)

    def notifications_for(self, actor_id: str) -> list[Notification]:
        with self._lock:
            return [n for n in self._notifications if n.actor_id == actor_id]

    def get_session(self, session_id: str) -> SessionSummary | None:
        with self._lock:
            return self._sessions.get(session_id)
