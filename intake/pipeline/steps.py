import random
from abc import ABC, abstractmethod

from intake.clock import Clock, SystemClock
from intake.conversion.converter import FormatConverter, ProgressCallback
from intake.conversion.exceptions import ConversionError
from intake.conversion.matrix import recommended_format
from intake.conversion.models import ConversionStatus
from intake.files.models import FileSubmission
from intake.logging.logger import Log
from intake.pipeline.models import IntakeContext
from intake.security.scanner import SecurityScanner
from intake.storage.base import BlobStore, object_path, unique_object_name
from intake.validation.quick_validator import QuickValidator


class IntakeStep(ABC):
    """One unit of work in a file's intake; the controller owns the transitions."""

    name: str = "step"

    @abstractmethod
    def run(self, context: IntakeContext, submission: FileSubmission) -> IntakeContext:
        raise NotImplementedError


class QuickCheckStep(IntakeStep):
    name = "quick_check"

    def __init__(self, validator: QuickValidator) -> None:
        self._validator = validator

    def run(self, context: IntakeContext, submission: FileSubmission) -> IntakeContext:
        self._validator.ensure_safe(submission)
        return context


class ScanStep(IntakeStep):
    name = "scan"

    def __init__(self, scanner: SecurityScanner) -> None:
        self._scanner = scanner

    def run(self, context: IntakeContext, submission: FileSubmission) -> IntakeContext:
        context.scan_result = self._scanner.scan(submission, actor_id=context.actor_id)
        return context


class ConvertStep(IntakeStep):
    """Converts when a target differs from the source format.

    With ``auto_convert`` and no explicit target the recommended format is used.
    """

    name = "convert"

    def __init__(self, converter: FormatConverter) -> None:
        self._converter = converter

    @staticmethod
    def target_for(context: IntakeContext, submission: FileSubmission) -> str | None:
        target = context.options.target_format
        if target is None and context.options.auto_convert:
            target = recommended_format(submission.extension)
        if target is None or target == submission.extension:
            return None
        return target

    def run(
        self,
        context: IntakeContext,
        submission: FileSubmission,
        progress: ProgressCallback | None = None,
    ) -> IntakeContext:
        target = self.target_for(context, submission)
        if target is None:
            return context
        job = self._converter.convert(
            submission, target, quality=context.options.quality, progress=progress
        )
        context.conversion_job = job
        if job.status is not ConversionStatus.COMPLETED:
            return context
        if job.output is None or job.output.data is None:
            raise ConversionError(f"Conversion of {submission.name} produced no output")
        context.payload_name = job.output.name
        context.payload = job.output.data
        return context


class StoreStep(IntakeStep):
    name = "upload"

    def __init__(
        self,
        blob_store: BlobStore,
        clock: Clock | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self._blob_store = blob_store
        self._clock = clock or SystemClock()
        self._rng = rng or random.Random()

    def run(self, context: IntakeContext, submission: FileSubmission) -> IntakeContext:
        name = context.payload_name or submission.name
        data = context.payload if context.payload is not None else submission.read_all()
        path = object_path(
            context.actor_id, unique_object_name(name, self._clock.now_ms(), self._rng)
        )
        context.stored = self._blob_store.put(path, data)
        Log.info(
            f"Stored {name}",
            session=context.session_id,
            path=context.stored.path,
            size=context.stored.size,
        )
        return context
