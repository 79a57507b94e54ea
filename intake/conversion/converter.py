import threading
from collections import Counter, deque
from collections.abc import Callable
from dataclasses import dataclass

from intake.clock import Clock, SystemClock
from intake.conversion.backends.base import ConversionBackend
from intake.conversion.exceptions import ConversionError
from intake.conversion.matrix import (
    can_convert,
    conversion_type,
    converted_file_name,
    estimate_output_size,
    recommended_format,
    supported_targets,
)
from intake.conversion.models import (
    ConversionJob,
    ConversionProgress,
    ConversionStats,
    ConversionStatus,
    ConvertedArtifact,
    StageRecord,
    stage_percentage,
    stage_plan,
)
from intake.conversion.profiles import resolve_profile
from intake.files.formats import mime_type_for
from intake.files.models import FileSubmission
from intake.logging.logger import Log

ProgressCallback = Callable[[ConversionProgress], None]

DEFAULT_HISTORY_SIZE = 1000


@dataclass(frozen=True)
class _FinishedJob:
    pair: str
    status: ConversionStatus
    duration_ms: int | None


class FormatConverter:
    """Runs a staged conversion plan against a pluggable backend.

    Unsupported pairs raise ``ConversionError`` before any stage runs. A
    failure inside a stage does not raise: the job is returned with status
    ``failed``, the last completed percentage and the error text.
    """

    def __init__(
        self,
        backend: ConversionBackend,
        clock: Clock | None = None,
        history_size: int = DEFAULT_HISTORY_SIZE,
    ) -> None:
        self._backend = backend
        self._clock = clock or SystemClock()
        self._history: deque[_FinishedJob] = deque(maxlen=history_size)
        self._history_lock = threading.Lock()

    @property
    def backend_name(self) -> str:
        return self._backend.name

    def can_convert(self, source_format: str, target_format: str) -> bool:
        return can_convert(source_format, target_format)

    def supported_targets(self, source_format: str) -> tuple[str, ...]:
        return supported_targets(source_format)

    def recommended_format(self, source_format: str) -> str | None:
        return recommended_format(source_format)

    def convert(
        self,
        submission: FileSubmission,
        target_format: str,
        quality: str = "medium",
        progress: ProgressCallback | None = None,
    ) -> ConversionJob:
        job = self.plan(submission, target_format, quality)
        stages = stage_plan(job.conversion_type)
        started_at = self._clock.now()
        job.start(started_at)
        Log.info(
            f"Converting {submission.name} from {job.source_format} to {job.target_format}",
            job=job.job_id,
            quality=job.quality,
            backend=self._backend.name,
        )

        for index, stage in enumerate(stages):
            try:
                self._backend.run_stage(job, stage)
            except Exception as exc:
                return self._fail(job, exc)

            now = self._clock.now()
            percentage = stage_percentage(index, len(stages))
            job.record_stage(StageRecord(stage.name, stage.description, percentage, now))
            if progress is not None:
                progress(
                    ConversionProgress(
                        job_id=job.job_id,
                        stage=stage.name,
                        description=stage.description,
                        percentage=percentage,
                        eta_ms=_eta_ms(started_at, percentage, now),
                    )
                )

        try:
            data = self._backend.render(job, submission)
        except Exception as exc:
            return self._fail(job, exc)

        job.complete(
            ConvertedArtifact(
                name=converted_file_name(submission.name, job.target_format),
                format=job.target_format,
                mime_type=mime_type_for(job.target_format),
                estimated_size=estimate_output_size(submission.size, job.target_format),
                data=data,
            ),
            self._clock.now(),
        )
        self._remember(job)
        Log.info(f"Conversion {job.job_id} completed", duration_ms=job.duration_ms)
        return job

    def plan(
        self, submission: FileSubmission, target_format: str, quality: str = "medium"
    ) -> ConversionJob:
        """Validate the request and build a pending job without running it."""
        source = submission.extension
        target = target_format.lower().lstrip(".")
        if not can_convert(source, target):
            raise ConversionError(f"Cannot convert from {source or '(none)'} to {target}")
        if not self._backend.supports(source, target):
            raise ConversionError(
                f"Backend '{self._backend.name}' cannot convert {source} to {target}"
            )
        kind = conversion_type(source)
        if kind is None:
            raise ConversionError(f"No conversion plan for {source} files")
        return ConversionJob(
            source_format=source,
            target_format=target,
            conversion_type=kind,
            quality=quality.lower(),
            profile=resolve_profile(kind, quality),
            source_name=submission.name,
            source_size=submission.size,
        )

    def _fail(self, job: ConversionJob, exc: Exception) -> ConversionJob:
        if not isinstance(exc, ConversionError):
            Log.error(f"Conversion backend '{self._backend.name}' crashed: {exc}")
        job.fail(str(exc), self._clock.now())
        self._remember(job)
        Log.warning(
            f"Conversion {job.job_id} failed at {job.progress}%: {job.error}",
            source=job.source_name,
        )
        return job

    def stats(self) -> ConversionStats:
        """Totals over the most recent finished jobs."""
        with self._history_lock:
            history = list(self._history)
        total = len(history)
        successful = sum(1 for job in history if job.status is ConversionStatus.COMPLETED)
        durations = [
            job.duration_ms
            for job in history
            if job.status is ConversionStatus.COMPLETED and job.duration_ms is not None
        ]
        return ConversionStats(
            total=total,
            successful=successful,
            failed=total - successful,
            success_rate=round(successful / total * 100) if total else 0,
            format_stats=dict(Counter(job.pair for job in history)),
            average_conversion_ms=round(sum(durations) / len(durations)) if durations else 0,
        )

    def _remember(self, job: ConversionJob) -> None:
        record = _FinishedJob(
            pair=f"{job.source_format}-{job.target_format}",
            status=job.status,
            duration_ms=job.duration_ms,
        )
        with self._history_lock:
            self._history.append(record)


def _eta_ms(started_at: float, percentage: int, now: float) -> int:
    elapsed_ms = (now - started_at) * 1000
    fraction = percentage / 100
    if fraction <= 0:
        return 0
    return max(0, round(elapsed_ms / fraction - elapsed_ms))
