"""Injectable time source for rate-limit bucketing, ETAs and simulated delays."""

import threading
import time
from abc import ABC, abstractmethod


class Clock(ABC):
    """Contract for time sources used across the pipeline."""

    @abstractmethod
    def now(self) -> float:
        """Return the current time as epoch seconds."""

    @abstractmethod
    def sleep(self, seconds: float) -> None:
        """Block the caller for ``seconds``."""

    def now_ms(self) -> int:
        return int(self.now() * 1000)


class SystemClock(Clock):
    """Wall-clock time."""

    def now(self) -> float:
        return time.time()

    def sleep(self, seconds: float) -> None:
        if seconds > 0:
            time.sleep(seconds)


class ManualClock(Clock):
    """Deterministic clock; ``sleep`` advances time instead of blocking."""

    def __init__(self, start: float = 1_700_000_000.0) -> None:
        self._now = start
        self._lock = threading.Lock()

    def now(self) -> float:
        with self._lock:
            return self._now

    def sleep(self, seconds: float) -> None:
        self.advance(seconds)

    def advance(self, seconds: float) -> None:
        if seconds < 0:
            raise ValueError("ManualClock cannot move backwards")
        with self._lock:
            self._now += seconds
