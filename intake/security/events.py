"""Process-wide, bounded, append-only log of security-relevant events."""

import threading
import uuid
from collections import deque
from dataclasses import dataclass, field
from enum import Enum

from intake.clock import Clock, SystemClock
from intake.logging.logger import Log


class SecurityEventType(str, Enum):
    SCAN_PASSED = "SCAN_PASSED"
    SCAN_FAILED = "SCAN_FAILED"
    SCAN_ERROR = "SCAN_ERROR"
    RATE_LIMIT_EXCEEDED = "RATE_LIMIT_EXCEEDED"
    BLACKLISTED_HASH = "BLACKLISTED_HASH"
    VIRUS_DETECTED = "VIRUS_DETECTED"


CRITICAL_EVENT_TYPES = frozenset(
    {
        SecurityEventType.BLACKLISTED_HASH,
        SecurityEventType.VIRUS_DETECTED,
        SecurityEventType.RATE_LIMIT_EXCEEDED,
    }
)

DAY_SECONDS = 24 * 60 * 60


@dataclass(frozen=True)
class SecurityEvent:
    id: str
    type: SecurityEventType
    actor_id: str | None
    file_name: str | None
    timestamp: float
    details: dict[str, object] = field(default_factory=dict)

    def to_payload(self) -> dict[str, object]:
        return {
            "id": self.id,
            "type": self.type.value,
            "actor_id": self.actor_id,
            "file_name": self.file_name,
            "timestamp": self.timestamp,
            "details": dict(self.details),
        }


class SecurityEventLog:
    """Keeps the most recent ``capacity`` events behind a single lock."""

    def __init__(self, capacity: int = 1000, clock: Clock | None = None) -> None:
        if capacity <= 0:
            raise ValueError("capacity must be positive")
        self._events: deque[SecurityEvent] = deque(maxlen=capacity)
        self._clock = clock or SystemClock()
        self._lock = threading.Lock()

    def record(
        self,
        event_type: SecurityEventType,
        actor_id: str | None = None,
        file_name: str | None = None,
        details: dict[str, object] | None = None,
    ) -> SecurityEvent:
        event = SecurityEvent(
            id=f"evt_{uuid.uuid4().hex[:12]}",
            type=event_type,
            actor_id=actor_id,
            file_name=file_name,
            timestamp=self._clock.now(),
            details=details or {},
        )
        with self._lock:
            self._events.append(event)
        if event_type in CRITICAL_EVENT_TYPES:
            Log.warning(
                f"Critical security event {event_type.value}",
                actor=actor_id,
                file=file_name,
            )
        return event

    def recent(self, limit: int = 100) -> list[SecurityEvent]:
        """Most recent events first."""
        with self._lock:
            events = list(self._events)
        if limit <= 0:
            return []
        return list(reversed(events[-limit:]))

    def for_actor(self, actor_id: str, since: float) -> list[SecurityEvent]:
        with self._lock:
            return [e for e in self._events if e.actor_id == actor_id and e.timestamp > since]

    def count(self, event_type: SecurityEventType) -> int:
        with self._lock:
            return sum(1 for e in self._events if e.type is event_type)

    def stats(self) -> dict[str, int]:
        cutoff = self._clock.now() - DAY_SECONDS
        with self._lock:
            events = list(self._events)
        return {
            "total_scans": sum(1 for e in events if "SCAN" in e.type.value),
            "passed_scans": sum(1 for e in events if e.type is SecurityEventType.SCAN_PASSED),
            "failed_scans": sum(1 for e in events if e.type is SecurityEventType.SCAN_FAILED),
            "virus_detections": sum(
                1 for e in events if e.type is SecurityEventType.VIRUS_DETECTED
            ),
            "rate_limit_violations": sum(
                1 for e in events if e.type is SecurityEventType.RATE_LIMIT_EXCEEDED
            ),
            "last_24h_activity": sum(1 for e in events if e.timestamp > cutoff),
        }

    def __len__(self) -> int:
        with self._lock:
            return len(self._events)
