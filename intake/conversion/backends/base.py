from abc import ABC, abstractmethod

from intake.conversion.models import ConversionJob, StageSpec
from intake.files.models import FileSubmission


class ConversionBackend(ABC):
    """Contract for engines that carry out a planned conversion."""

    name: str = "base"

    @abstractmethod
    def supports(self, source_format: str, target_format: str) -> bool:
        """Whether this engine can handle a pair the capability matrix allows."""

    @abstractmethod
    def run_stage(self, job: ConversionJob, stage: StageSpec) -> None:
        """Execute one stage of the plan.

        Raises:
            ConversionError: if the stage fails.
        """

    @abstractmethod
    def render(self, job: ConversionJob, submission: FileSubmission) -> bytes | None:
        """Produce the converted bytes once every stage has completed.

        Returns ``None`` when the engine only estimates the output; such a job
        completes but its file cannot be stored.

        Raises:
            ConversionError: if the output cannot be produced.
        """
