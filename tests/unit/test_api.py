import asyncio
import json
import random
from unittest.mock import MagicMock

from fastapi.testclient import TestClient

from intake.api.app import create_app
from intake.clock import ManualClock
from intake.conversion.backends.simulated import SimulatedConversionBackend
from intake.conversion.converter import FormatConverter
from intake.conversion.models import ConversionStats
from intake.files.models import FileSubmission
from intake.pipeline.service import IntakeService
from intake.ratelimit.exceptions import RateLimitError
from intake.ratelimit.limiter import RateLimiter
from intake.records.memory_store import InMemoryRecordStore
from intake.security.events import SecurityEventLog
from intake.security.report import SecurityReport
from intake.security.scanner import SecurityScanner
from intake.sessions.exceptions import SessionNotFoundError
from intake.sessions.models import SessionSummary
from intake.storage.memory_store import InMemoryBlobStore
from intake.validation.quick_validator import QuickValidator

TIMEOUT = 10


def _make_service() -> IntakeService:
    clock = ManualClock()
    event_log = SecurityEventLog(clock=clock)
    return IntakeService(
        validator=QuickValidator(),
        limiter=RateLimiter(clock=clock),
        scanner=SecurityScanner(event_log, clock=clock),
        converter=FormatConverter(
            SimulatedConversionBackend(rng=random.Random(1), clock=clock, failure_scale=0.0),
            clock,
        ),
        blob_store=InMemoryBlobStore(),
        record_store=InMemoryRecordStore(clock),
        event_log=event_log,
        clock=clock,
    )


def _upload(name: str, content: bytes, mime: str = "text/plain") -> tuple[str, tuple[str, bytes, str]]:
    return ("files", (name, content, mime))


class TestHealth:
    def test_health(self) -> None:
        client = TestClient(create_app(service=MagicMock()))
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok"}


class TestBatchesEndpoint:
    def test_submit_stream_and_summary(self) -> None:
        service = _make_service()
        client = TestClient(create_app(service=service))

        response = client.post(
            "/batches",
            data={"actor_id": "user-1"},
            files=[_upload("a.txt", b"first"), _upload("b.txt", b"second")],
        )
        assert response.status_code == 202
        body = response.json()
        session_id = body["session_id"]
        assert [f["name"] for f in body["files"]] == ["a.txt", "b.txt"]

        file_id = body["files"][0]["file_id"]
        progress = client.get(f"/batches/{session_id}/progress", params={"file_id": file_id})
        assert progress.status_code == 200
        events = [json.loads(line) for line in progress.text.splitlines() if line]
        assert events[-1]["percentage"] == 100
        assert events[-1]["state"] == "stored"

        service.wait(session_id, timeout=TIMEOUT)
        summary = client.get(f"/batches/{session_id}").json()
        assert summary["total_files"] == 2
        assert summary["successful_uploads"] == 2
        assert summary["closed_at"] is not None
        service.shutdown()

    def test_options_are_parsed(self) -> None:
        service = MagicMock()
        service.submit_batch.return_value = "session_1"
        client = TestClient(create_app(service=service))
        response = client.post(
            "/batches",
            data={"actor_id": "user-1", "options": json.dumps({"target_format": ".PDF", "quality": "high"})},
            files=[_upload("a.txt", b"x")],
        )
        assert response.status_code == 202
        options = service.submit_batch.call_args.args[2]
        assert options.target_format == "pdf"
        assert options.quality == "high"

    def test_submission_runs_off_the_event_loop(self) -> None:
        seen: dict[str, bool] = {}

        def submit(*args: object) -> str:
            try:
                asyncio.get_running_loop()
                seen["on_loop"] = True
            except RuntimeError:
                seen["on_loop"] = False
            return "session_1"

        service = MagicMock()
        service.submit_batch.side_effect = submit
        client = TestClient(create_app(service=service))
        response = client.post(
            "/batches", data={"actor_id": "user-1"}, files=[_upload("a.txt", b"x")]
        )
        assert response.status_code == 202
        assert response.json()["session_id"] == "session_1"
        assert seen == {"on_loop": False}

    def test_security_report(self) -> None:
        service = MagicMock()
        service.get_security_report.return_value = SecurityReport(
            total_files=2,
            clean_files=1,
            quarantined_files=1,
            security_score=50,
            generated_at=1.0,
            risk_distribution={"clean": 1, "critical": 1},
            threat_types={"virus_signature": 1},
            recommendations=("1 files were quarantined - review security policies",),
        )
        client = TestClient(create_app(service=service))
        body = client.get("/batches/s1/security-report").json()
        assert body["summary"]["security_score"] == 50
        assert body["threat_types"] == {"virus_signature": 1}
        service.get_security_report.assert_called_once_with("s1")

    def test_security_report_unknown_session(self) -> None:
        service = MagicMock()
        service.get_security_report.side_effect = SessionNotFoundError("missing")
        client = TestClient(create_app(service=service))
        response = client.get("/batches/missing/security-report")
        assert response.status_code == 404
        assert response.json()["detail"] == "SESSION_NOT_FOUND"

    def test_invalid_options(self) -> None:
        client = TestClient(create_app(service=MagicMock()))
        response = client.post(
            "/batches",
            data={"actor_id": "user-1", "options": "{not json"},
            files=[_upload("a.txt", b"x")],
        )
        assert response.status_code == 400
        assert response.json()["detail"] == "INVALID_OPTIONS"

    def test_rate_limited_batch(self) -> None:
        summary = SessionSummary(
            session_id="session_1",
            actor_id="user-1",
            total_files=1,
            successful_uploads=0,
            failed_uploads=1,
            started_at=1.0,
            closed_at=1.0,
            duration_ms=0,
            aborted_reason="Upload rate limit exceeded (20 files per window)",
        )
        service = MagicMock()
        service.submit_batch.side_effect = RateLimitError("user-1", 20, summary)
        client = TestClient(create_app(service=service))

        response = client.post(
            "/batches", data={"actor_id": "user-1"}, files=[_upload("a.txt", b"x")]
        )
        assert response.status_code == 429
        body = response.json()
        assert body["detail"] == "RATE_LIMIT_EXCEEDED"
        assert body["session"]["failed_uploads"] == 1

    def test_unknown_session(self) -> None:
        service = MagicMock()
        service.get_session_summary.side_effect = SessionNotFoundError("missing")
        client = TestClient(create_app(service=service))
        response = client.get("/batches/missing")
        assert response.status_code == 404
        assert response.json()["detail"] == "SESSION_NOT_FOUND"

    def test_unknown_progress(self) -> None:
        service = MagicMock()
        service.progress.side_effect = KeyError("f1")
        client = TestClient(create_app(service=service))
        response = client.get("/batches/s1/progress", params={"file_id": "f1"})
        assert response.status_code == 404
        assert response.json()["detail"] == "PROGRESS_NOT_FOUND"


class TestWithdrawEndpoint:
    def test_withdrawn(self) -> None:
        service = MagicMock()
        service.withdraw.return_value = True
        client = TestClient(create_app(service=service))
        response = client.post("/batches/s1/files/f1/withdraw")
        assert response.status_code == 200
        assert response.json()["withdrawn"] is True

    def test_not_withdrawable(self) -> None:
        service = MagicMock()
        service.withdraw.return_value = False
        client = TestClient(create_app(service=service))
        response = client.post("/batches/s1/files/f1/withdraw")
        assert response.status_code == 409

    def test_unknown_file(self) -> None:
        service = MagicMock()
        service.withdraw.side_effect = SessionNotFoundError("missing")
        client = TestClient(create_app(service=service))
        assert client.post("/batches/s1/files/f1/withdraw").status_code == 404


class TestSecurityEndpoints:
    def test_events_and_stats(self) -> None:
        service = _make_service()
        service.process_batch("user-1", [FileSubmission.from_bytes("a.txt", b"x")], timeout=TIMEOUT)
        client = TestClient(create_app(service=service))

        stats = client.get("/security/stats").json()
        events = client.get("/security/events", params={"limit": 5}).json()["events"]
        service.shutdown()
        assert stats["passed_scans"] == 1
        assert stats["blacklisted_hashes"] == 0
        assert events[0]["type"] == "SCAN_PASSED"
        assert events[0]["actor_id"] == "user-1"

    def test_limit_validation(self) -> None:
        client = TestClient(create_app(service=MagicMock()))
        assert client.get("/security/events", params={"limit": 0}).status_code == 422


class TestConversionEndpoints:
    def test_stats(self) -> None:
        service = MagicMock()
        service.get_conversion_stats.return_value = ConversionStats(
            total=3,
            successful=2,
            failed=1,
            success_rate=67,
            format_stats={"docx-pdf": 3},
            average_conversion_ms=6300,
        )
        client = TestClient(create_app(service=service))
        body = client.get("/conversions/stats").json()
        assert body["success_rate"] == 67
        assert body["format_stats"] == {"docx-pdf": 3}
        assert body["average_conversion_ms"] == 6300
