import threading
from collections.abc import Iterator

from intake.clock import Clock, SystemClock
from intake.progress.channel import ProgressChannel
from intake.progress.models import ProgressEvent


class ProgressReporter:
    """Registry of progress channels keyed by (session, file)."""

    def __init__(self, clock: Clock | None = None) -> None:
        self._clock = clock or SystemClock()
        self._channels: dict[tuple[str, str], ProgressChannel] = {}
        self._lock = threading.Lock()

    def channel(self, session_id: str, file_id: str) -> ProgressChannel:
        key = (session_id, file_id)
        with self._lock:
            channel = self._channels.get(key)
            if channel is None:
                channel = ProgressChannel()
                self._channels[key] = channel
            return channel

    def has_channel(self, session_id: str, file_id: str) -> bool:
        with self._lock:
            return (session_id, file_id) in self._channels

    def publish(
        self,
        session_id: str,
        file_id: str,
        stage: str,
        percentage: int,
        state: str,
        eta_ms: int | None = None,
        message: str = "",
    ) -> ProgressEvent | None:
        event = ProgressEvent(
            file_id=file_id,
            stage=stage,
            percentage=max(0, min(100, percentage)),
            state=state,
            eta_ms=eta_ms,
            message=message,
            timestamp=self._clock.now(),
        )
        return self.channel(session_id, file_id).publish(event)

    def close(self, session_id: str, file_id: str) -> None:
        self.channel(session_id, file_id).close()

    def subscribe(self, session_id: str, file_id: str) -> Iterator[ProgressEvent]:
        return iter(self.channel(session_id, file_id))

    def discard_session(self, session_id: str) -> int:
        with self._lock:
            keys = [key for key in self._channels if key[0] == session_id]
            for key in keys:
                del self._channels[key]
        return len(keys)
