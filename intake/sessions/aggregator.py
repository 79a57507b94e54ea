import threading
import uuid

from intake.clock import Clock, SystemClock
from intake.logging.logger import Log
from intake.pipeline.models import FileOutcome
from intake.pipeline.states import is_terminal
from intake.sessions.exceptions import SessionError, SessionInvariantError, SessionNotFoundError
from intake.sessions.models import SessionSummary, UploadSession


class UploadSessionAggregator:
    """Folds per-file outcomes into batch totals.

    All sessions share one lock. ``successful + failed`` never exceeds
    ``total_files`` and equals it once the session is closed.
    """

    def __init__(self, clock: Clock | None = None) -> None:
        self._clock = clock or SystemClock()
        self._sessions: dict[str, UploadSession] = {}
        self._lock = threading.Lock()

    def open(self, actor_id: str, total_files: int, session_id: str | None = None) -> str:
        if total_files < 0:
            raise ValueError("total_files must not be negative")
        session_id = session_id or f"session_{uuid.uuid4().hex[:12]}"
        with self._lock:
            if session_id in self._sessions:
                raise SessionError(f"Session {session_id} already exists")
            self._sessions[session_id] = UploadSession(
                session_id=session_id,
                actor_id=actor_id,
                total_files=total_files,
                started_at=self._clock.now(),
            )
        Log.info("Upload session opened", session=session_id, actor=actor_id, files=total_files)
        return session_id

    def record_outcome(self, session_id: str, outcome: FileOutcome) -> SessionSummary:
        if not is_terminal(outcome.state):
            raise SessionError(
                f"Outcome for {outcome.file_id} is not terminal ({outcome.state.value})"
            )
        with self._lock:
            session = self._get(session_id)
            if session.is_closed:
                raise SessionError(f"Session {session_id} is already closed")
            if outcome.file_id in session.outcomes:
                raise SessionError(f"Outcome for {outcome.file_id} was already recorded")
            if session.recorded >= session.total_files:
                raise SessionError(
                    f"Session {session_id} already holds {session.total_files} outcomes"
                )
            session.outcomes[outcome.file_id] = outcome
            if outcome.succeeded:
                session.successful_uploads += 1
            else:
                session.failed_uploads += 1
            return self._summarize(session)

    def close(self, session_id: str, aborted_reason: str | None = None) -> SessionSummary:
        """Seal the session.

        Raises:
            SessionInvariantError: if not every file has a recorded outcome.
        """
        with self._lock:
            session = self._get(session_id)
            if session.is_closed:
                raise SessionError(f"Session {session_id} is already closed")
            if session.recorded != session.total_files:
                raise SessionInvariantError(
                    f"Session {session_id} recorded {session.recorded} of "
                    f"{session.total_files} outcomes"
                )
            session.closed_at = self._clock.now()
            session.aborted_reason = aborted_reason
            summary = self._summarize(session)
        Log.info(
            "Upload session closed",
            session=session_id,
            successful=summary.successful_uploads,
            failed=summary.failed_uploads,
            duration_ms=summary.duration_ms,
        )
        return summary

    def summary(self, session_id: str) -> SessionSummary:
        with self._lock:
            return self._summarize(self._get(session_id))

    def recorded_file_ids(self, session_id: str) -> set[str]:
        with self._lock:
            return set(self._get(session_id).outcomes)

    def discard(self, session_id: str) -> None:
        """Forget a closed session."""
        with self._lock:
            session = self._get(session_id)
            if not session.is_closed:
                raise SessionError(f"Session {session_id} is still open")
            del self._sessions[session_id]

    def _get(self, session_id: str) -> UploadSession:
        session = self._sessions.get(session_id)
        if session is None:
            raise SessionNotFoundError(f"Session {session_id} not found")
        return session

    @staticmethod
    def _summarize(session: UploadSession) -> SessionSummary:
        duration_ms = None
        if session.closed_at is not None:
            duration_ms = int((session.closed_at - session.started_at) * 1000)
        return SessionSummary(
            session_id=session.session_id,
            actor_id=session.actor_id,
            total_files=session.total_files,
            successful_uploads=session.successful_uploads,
            failed_uploads=session.failed_uploads,
            started_at=session.started_at,
            closed_at=session.closed_at,
            duration_ms=duration_ms,
            outcomes=tuple(session.outcomes.values()),
            aborted_reason=session.aborted_reason,
        )
