"""Demo engine: clock-driven stage delays, seeded failures and pass-through bytes."""

import random

from intake.clock import Clock, SystemClock
from intake.conversion.backends.base import ConversionBackend
from intake.conversion.exceptions import ConversionError
from intake.conversion.models import ConversionJob, StageSpec
from intake.files.exceptions import FileReadError
from intake.files.models import FileSubmission


class SimulatedConversionBackend(ConversionBackend):
    name = "simulated"

    def __init__(
        self,
        rng: random.Random | None = None,
        clock: Clock | None = None,
        failure_scale: float = 1.0,
        fail_at_stage: str | None = None,
    ) -> None:
        if failure_scale < 0:
            raise ValueError("failure_scale must not be negative")
        self._rng = rng or random.Random()
        self._clock = clock or SystemClock()
        self._failure_scale = failure_scale
        self._fail_at_stage = fail_at_stage

    def supports(self, source_format: str, target_format: str) -> bool:
        return True

    def run_stage(self, job: ConversionJob, stage: StageSpec) -> None:
        self._clock.sleep(stage.duration_ms / 1000)
        if stage.name == self._fail_at_stage or (
            self._rng.random() < stage.failure_rate * self._failure_scale
        ):
            raise ConversionError(f"Stage failed: {stage.description}")

    def render(self, job: ConversionJob, submission: FileSubmission) -> bytes | None:
        try:
            return submission.read_all()
        except FileReadError as exc:
            raise ConversionError(f"Cannot read {submission.name}: {exc}") from exc
