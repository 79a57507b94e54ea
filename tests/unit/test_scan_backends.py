import random

import pytest

from intake.clock import ManualClock
from intake.config.settings import Settings
from intake.files.models import FileSubmission
from intake.security.backends.signature import SignatureScanBackend
from intake.security.backends.simulated import SimulatedScanBackend
from intake.security.factory import ScanBackendFactory
from intake.security.models import Severity

EICAR = b"X5O!P%@AP[4\\PZX54(P^)7CC)7}$EICAR-STANDARD-ANTIVIRUS-TEST-FILE!$H+H*"


def _inspect(backend: SignatureScanBackend, name: str, content: bytes) -> list[str]:
    submission = FileSubmission.from_bytes(name, content)
    return [f.kind for f in backend.inspect(submission, content)]


class TestSignatureScanBackend:
    def test_clean_content(self) -> None:
        assert _inspect(SignatureScanBackend(), "notes.txt", b"hello world") == []

    def test_eicar_is_critical(self) -> None:
        submission = FileSubmission.from_bytes("sample.pdf", EICAR)
        findings = SignatureScanBackend().inspect(submission, EICAR)
        assert findings
        assert all(f.severity is Severity.CRITICAL for f in findings)
        assert all(f.points == 100 for f in findings)

    def test_signatures_match_binary_content(self) -> None:
        content = b"\x00\x01trojan_pattern_2\xff"
        assert _inspect(SignatureScanBackend(), "image.png", content) == ["virus_signature"]

    def test_patterns_only_for_text_like(self) -> None:
        content = b"<script>alert(1)</script>"
        assert "suspicious_content" in _inspect(SignatureScanBackend(), "page.html", content)
        assert _inspect(SignatureScanBackend(), "photo.png", content) == []

    def test_each_pattern_counts_once(self) -> None:
        content = b"<script>eval(x); eval(y)</script>"
        kinds = _inspect(SignatureScanBackend(), "page.html", content)
        assert kinds.count("suspicious_content") == 2

    def test_custom_signatures(self) -> None:
        backend = SignatureScanBackend(signatures=("BADBYTES",))
        assert _inspect(backend, "a.txt", b"xxBADBYTESxx") == ["virus_signature"]
        assert _inspect(backend, "a.txt", b"malware_signature_1") == []


class TestSimulatedScanBackend:
    def test_always_detects_at_rate_one(self, manual_clock: ManualClock) -> None:
        backend = SimulatedScanBackend(detection_rate=1.0, clock=manual_clock)
        kinds = _inspect(backend, "a.txt", b"hello")
        assert kinds == ["simulated_virus"]

    def test_never_detects_at_rate_zero(self, manual_clock: ManualClock) -> None:
        backend = SimulatedScanBackend(detection_rate=0.0, clock=manual_clock)
        assert _inspect(backend, "a.txt", b"hello") == []

    def test_delay_uses_clock(self, manual_clock: ManualClock) -> None:
        backend = SimulatedScanBackend(detection_rate=0.0, clock=manual_clock)
        start = manual_clock.now()
        _inspect(backend, "a.txt", b"hello")
        assert manual_clock.now() - start == pytest.approx(1.0)

    def test_seeded_rng_is_deterministic(self, manual_clock: ManualClock) -> None:
        runs = []
        for _ in range(2):
            backend = SimulatedScanBackend(
                detection_rate=0.5, rng=random.Random(7), clock=manual_clock
            )
            runs.append([_inspect(backend, "a.txt", b"x") for _ in range(10)])
        assert runs[0] == runs[1]

    def test_invalid_rate(self) -> None:
        with pytest.raises(ValueError):
            SimulatedScanBackend(detection_rate=1.5)


class TestScanBackendFactory:
    def test_signature(self) -> None:
        backend = ScanBackendFactory.create(Settings(scan_backend="signature"))
        assert isinstance(backend, SignatureScanBackend)
        assert not isinstance(backend, SimulatedScanBackend)

    def test_simulated(self) -> None:
        backend = ScanBackendFactory.create(Settings(scan_backend="Simulated"))
        assert isinstance(backend, SimulatedScanBackend)

    def test_unknown(self) -> None:
        with pytest.raises(ValueError, match="Unknown scan backend"):
            ScanBackendFactory.create(Settings(scan_backend="clamav"))
