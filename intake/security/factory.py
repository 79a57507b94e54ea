import random

from intake.clock import Clock
from intake.config.settings import Settings
from intake.security.backends.base import ScanBackend
from intake.security.backends.signature import SignatureScanBackend
from intake.security.backends.simulated import SimulatedScanBackend


class ScanBackendFactory:
    """Creates the scan engine selected by ``settings.scan_backend``."""

    BACKENDS: tuple[str, ...] = ("signature", "simulated")

    @classmethod
    def create(cls, settings: Settings, clock: Clock | None = None) -> ScanBackend:
        name = settings.scan_backend.lower()
        if name == "signature":
            return SignatureScanBackend()
        if name == "simulated":
            return SimulatedScanBackend(
                detection_rate=settings.simulated_detection_rate,
                rng=random.Random(settings.simulation_seed),
                clock=clock,
            )
        raise ValueError(
            f"Unknown scan backend '{name}'. Choose from: {list(cls.BACKENDS)}"
        )
