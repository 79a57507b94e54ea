"""Per-actor fixed-window rate limiting for intake operations."""

import threading
from dataclasses import dataclass

from intake.clock import Clock, SystemClock
from intake.logging.logger import Log


@dataclass
class _Window:
    bucket: int
    count: int = 0


class RateLimiter:
    """Bounds how many intake operations an actor may start per time window.

    Windows are fixed buckets of ``window_seconds`` aligned to the epoch. A
    counter belonging to an elapsed bucket is reset rather than retained, and
    all counters live behind one lock.
    """

    def __init__(
        self,
        ceiling: int = 20,
        window_seconds: int = 3600,
        clock: Clock | None = None,
    ) -> None:
        if ceiling <= 0 or window_seconds <= 0:
            raise ValueError("ceiling and window_seconds must be positive")
        self._ceiling = ceiling
        self._window_seconds = window_seconds
        self._clock = clock or SystemClock()
        self._windows: dict[str, _Window] = {}
        self._lock = threading.Lock()

    @property
    def ceiling(self) -> int:
        return self._ceiling

    def try_acquire(self, actor_id: str) -> bool:
        """Take one slot for ``actor_id`` if the current window has room."""
        bucket = self._current_bucket()
        with self._lock:
            self._purge_stale(bucket)
            window = self._windows.get(actor_id)
            if window is None:
                window = _Window(bucket=bucket)
            if window.count >= self._ceiling:
                Log.debug("Rate limit reached", actor=actor_id, bucket=bucket)
                return False
            window.count += 1
            self._windows[actor_id] = window
            return True

    def release(self, actor_id: str, count: int = 1) -> None:
        """Give back ``count`` slots taken in the current window.

        Slots from an elapsed window are gone already and are not refunded.
        """
        if count <= 0:
            return
        bucket = self._current_bucket()
        with self._lock:
            window = self._windows.get(actor_id)
            if window is None or window.bucket != bucket:
                return
            window.count = max(0, window.count - count)

    def remaining(self, actor_id: str) -> int:
        bucket = self._current_bucket()
        with self._lock:
            window = self._windows.get(actor_id)
            if window is None or window.bucket != bucket:
                return self._ceiling
            return self._ceiling - window.count

    def reset(self, actor_id: str | None = None) -> None:
        with self._lock:
            if actor_id is None:
                self._windows.clear()
            else:
                self._windows.pop(actor_id, None)

    def _current_bucket(self) -> int:
        return int(self._clock.now() // self._window_seconds)

    def _purge_stale(self, bucket: int) -> None:
        stale = [actor for actor, window in self._windows.items() if window.bucket != bucket]
        for actor in stale:
            del self._windows[actor]
