from intake.clock import ManualClock
from intake.security.events import SecurityEventLog, SecurityEventType


class TestSecurityEventLog:
    def test_recent_is_newest_first(self, event_log: SecurityEventLog) -> None:
        event_log.record(SecurityEventType.SCAN_PASSED, file_name="a.txt")
        event_log.record(SecurityEventType.SCAN_FAILED, file_name="b.txt")
        events = event_log.recent(10)
        assert [e.file_name for e in events] == ["b.txt", "a.txt"]

    def test_recent_limit(self, event_log: SecurityEventLog) -> None:
        for i in range(5):
            event_log.record(SecurityEventType.SCAN_PASSED, file_name=f"{i}.txt")
        assert [e.file_name for e in event_log.recent(2)] == ["4.txt", "3.txt"]

    def test_capacity_keeps_most_recent(self, manual_clock: ManualClock) -> None:
        log = SecurityEventLog(capacity=3, clock=manual_clock)
        for i in range(5):
            log.record(SecurityEventType.SCAN_PASSED, file_name=f"{i}.txt")
        assert len(log) == 3
        assert [e.file_name for e in log.recent(10)] == ["4.txt", "3.txt", "2.txt"]

    def test_for_actor_filters_by_time(
        self, event_log: SecurityEventLog, manual_clock: ManualClock
    ) -> None:
        event_log.record(SecurityEventType.SCAN_FAILED, actor_id="alice")
        manual_clock.advance(100)
        since = manual_clock.now()
        manual_clock.advance(1)
        event_log.record(SecurityEventType.SCAN_FAILED, actor_id="alice")
        event_log.record(SecurityEventType.SCAN_FAILED, actor_id="bob")
        assert len(event_log.for_actor("alice", since)) == 1

    def test_stats(self, event_log: SecurityEventLog) -> None:
        event_log.record(SecurityEventType.SCAN_PASSED)
        event_log.record(SecurityEventType.SCAN_FAILED)
        event_log.record(SecurityEventType.VIRUS_DETECTED)
        event_log.record(SecurityEventType.RATE_LIMIT_EXCEEDED)
        stats = event_log.stats()
        assert stats["total_scans"] == 2
        assert stats["passed_scans"] == 1
        assert stats["failed_scans"] == 1
        assert stats["virus_detections"] == 1
        assert stats["rate_limit_violations"] == 1
        assert stats["last_24h_activity"] == 4

    def test_payload_is_serializable(self, event_log: SecurityEventLog) -> None:
        event = event_log.record(
            SecurityEventType.SCAN_ERROR, actor_id="alice", details={"scan_id": "s1"}
        )
        payload = event.to_payload()
        assert payload["type"] == "SCAN_ERROR"
        assert payload["details"] == {"scan_id": "s1"}
