"""Demo scan engine: signature matching plus a seeded random detection rate."""

import random

from intake.clock import Clock, SystemClock
from intake.files.models import FileSubmission
from intake.security.backends.signature import SignatureScanBackend
from intake.security.models import Finding, Severity

SIMULATED_VIRUS_POINTS = 100


class SimulatedScanBackend(SignatureScanBackend):
    """Stands in for an antivirus engine during development.

    Sleeps between one and four seconds depending on size (through the
    injected clock) and flags ``detection_rate`` of submissions as infected.
    """

    name = "simulated"

    def __init__(
        self,
        detection_rate: float = 0.01,
        rng: random.Random | None = None,
        clock: Clock | None = None,
    ) -> None:
        super().__init__()
        if not 0.0 <= detection_rate <= 1.0:
            raise ValueError("detection_rate must be between 0 and 1")
        self._detection_rate = detection_rate
        self._rng = rng or random.Random()
        self._clock = clock or SystemClock()

    def inspect(self, submission: FileSubmission, prefix: bytes) -> list[Finding]:
        self._clock.sleep(self._scan_delay_seconds(submission.size))
        findings = super().inspect(submission, prefix)
        if self._rng.random() < self._detection_rate:
            findings.append(
                Finding(
                    kind="simulated_virus",
                    severity=Severity.ERROR,
                    description="Virus detected (simulation): Test.Virus.Simulation",
                    points=SIMULATED_VIRUS_POINTS,
                )
            )
        return findings

    @staticmethod
    def _scan_delay_seconds(size: int) -> float:
        return max(1000.0, min(4000.0, size / 1024)) / 1000
