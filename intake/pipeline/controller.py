"""Drives one file through the intake state machine.

    selected -> quick_checked -> scanning -> ready -> [converting -> ready]
             -> uploading -> stored

Any file-local error ends the run in ``rejected`` (before storage) or
``failed`` (during storage) with a human-readable reason. Illegal transitions
raise ``InvalidTransitionError``.
"""

import threading
from dataclasses import replace

from intake.conversion.exceptions import ConversionError
from intake.conversion.models import ConversionProgress, ConversionStatus
from intake.files.models import FileSubmission
from intake.logging.logger import Log
from intake.pipeline.models import FileOutcome, IntakeContext, IntakeOptions
from intake.pipeline.states import (
    TERMINAL_STATES,
    WITHDRAWABLE_STATES,
    FileState,
    ensure_transition,
)
from intake.pipeline.steps import ConvertStep, QuickCheckStep, ScanStep, StoreStep
from intake.progress.reporter import ProgressReporter
from intake.records.base import RecordStore
from intake.records.exceptions import RecordStoreError
from intake.records.models import FileRecord, Notification
from intake.validation.exceptions import ValidationError

WITHDRAWN_REASON = "withdrawn"

# File-level progress bands; conversion percentages are mapped into 40-80.
QUICK_CHECK_PERCENT = 5
SCAN_START_PERCENT = 10
SCAN_DONE_PERCENT = 40
CONVERSION_BAND = (40, 80)
UPLOAD_START_PERCENT = 85
COMPLETE_PERCENT = 100


class IntakeController:
    def __init__(
        self,
        submission: FileSubmission,
        session_id: str,
        actor_id: str,
        options: IntakeOptions,
        quick_check_step: QuickCheckStep,
        scan_step: ScanStep,
        convert_step: ConvertStep,
        store_step: StoreStep,
        record_store: RecordStore,
        reporter: ProgressReporter,
    ) -> None:
        self._submission = submission
        self._context = IntakeContext(session_id=session_id, actor_id=actor_id, options=options)
        self._quick_check_step = quick_check_step
        self._scan_step = scan_step
        self._convert_step = convert_step
        self._store_step = store_step
        self._records = record_store
        self._reporter = reporter
        self._lock = threading.Lock()
        self._percentage = 0

        self._record(
            "create_file_record",
            FileRecord(
                file_id=submission.file_id,
                session_id=session_id,
                actor_id=actor_id,
                name=submission.name,
                size=submission.size,
                mime_type=submission.mime_type,
                status=FileState.SELECTED.value,
            ),
        )
        self._publish("selected", 0, "File selected")

    @property
    def file_id(self) -> str:
        return self._submission.file_id

    @property
    def submission(self) -> FileSubmission:
        return self._submission

    @property
    def state(self) -> FileState:
        with self._lock:
            return self._context.state

    @property
    def is_terminal(self) -> bool:
        return self.state in TERMINAL_STATES

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def quick_check(self) -> bool:
        try:
            self._quick_check_step.run(self._context, self._submission)
        except ValidationError as exc:
            self.reject(str(exc), error=exc)
            return False
        if not self._advance(FileState.QUICK_CHECKED):
            return False
        self._publish("quick_check", QUICK_CHECK_PERCENT, "Quick checks passed")
        return True

    def scan(self) -> bool:
        if not self._advance(FileState.SCANNING):
            return False
        self._publish("scan", SCAN_START_PERCENT, "Scanning for threats")
        try:
            self._scan_step.run(self._context, self._submission)
        except Exception as exc:
            Log.error(f"Scan of {self._submission.name} failed unexpectedly: {exc}")
            self.reject(f"Security scan could not run: {exc}", error=exc)
            return False

        result = self._context.scan_result
        if result is None:
            self.reject("Security scan produced no result")
            return False
        if not result.secure:
            self.reject(result.rejection_reason())
            return False
        self._advance(FileState.READY)
        self._publish("scan", SCAN_DONE_PERCENT, f"Scan passed (risk score {result.risk_score})")
        return True

    def convert(self) -> bool:
        """Run the optional conversion; True when the file is still ready afterwards."""
        if self.is_terminal:
            return False
        if ConvertStep.target_for(self._context, self._submission) is None:
            return True
        if not self._advance(FileState.CONVERTING):
            return False
        try:
            self._convert_step.run(self._context, self._submission, progress=self._on_conversion)
        except ConversionError as exc:
            self.reject(str(exc), error=exc)
            return False
        except Exception as exc:
            Log.error(f"Conversion of {self._submission.name} failed unexpectedly: {exc}")
            self.reject(f"Conversion failed: {exc}", error=exc)
            return False

        job = self._context.conversion_job
        if job is None or job.status is ConversionStatus.FAILED:
            error = job.error if job is not None else "no conversion job was started"
            self.reject(f"Conversion failed: {error}", error_name=ConversionError.__name__)
            return False
        self._advance(FileState.READY)
        self._publish("convert", CONVERSION_BAND[1], f"Converted to {job.target_format}")
        return True

    def upload(self) -> bool:
        if not self._advance(FileState.UPLOADING):
            return False
        self._publish("upload", UPLOAD_START_PERCENT, "Uploading")
        try:
            self._store_step.run(self._context, self._submission)
        except Exception as exc:
            self._finish(FileState.FAILED, f"Upload failed: {exc}", type(exc).__name__)
            return False
        self._finish(FileState.STORED, None, None)
        return True

    def process(self) -> FileOutcome:
        """Scan, convert and upload in one go; for callers without a batch."""
        if self.state is FileState.SELECTED:
            self.quick_check()
        if self.state is FileState.QUICK_CHECKED and self.scan():
            if self.convert():
                self.upload()
        return self.outcome()

    def reject(
        self,
        reason: str,
        error: Exception | None = None,
        error_name: str | None = None,
    ) -> bool:
        """Move to ``rejected`` unless the run already ended."""
        name = error_name or (type(error).__name__ if error is not None else None)
        return self._finish(FileState.REJECTED, reason, name)

    def withdraw(self) -> bool:
        return self._finish(
            FileState.REJECTED, WITHDRAWN_REASON, None, only_from=WITHDRAWABLE_STATES
        )

    def outcome(self) -> FileOutcome:
        with self._lock:
            context = self._context
            if context.state not in TERMINAL_STATES:
                raise RuntimeError(
                    f"File {self.file_id} has not finished ({context.state.value})"
                )
            return FileOutcome(
                file_id=self._submission.file_id,
                name=self._submission.name,
                size=self._submission.size,
                state=context.state,
                reason=context.reason,
                error=context.error,
                scan_result=context.scan_result,
                conversion_job=context.conversion_job,
                stored=context.stored,
                state_history=tuple(context.history),
            )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _advance(self, target: FileState) -> bool:
        """Apply a non-terminal transition; False if the run already ended."""
        with self._lock:
            if self._context.state in TERMINAL_STATES:
                return False
            ensure_transition(self._context.state, target)
            self._context.state = target
            self._context.history.append(target)
        self._record("update_file_status", self.file_id, target.value)
        return True

    def _finish(
        self,
        target: FileState,
        reason: str | None,
        error_name: str | None,
        only_from: frozenset[FileState] | None = None,
    ) -> bool:
        with self._lock:
            current = self._context.state
            if current in TERMINAL_STATES:
                return False
            if only_from is not None and current not in only_from:
                return False
            ensure_transition(current, target)
            self._context.state = target
            self._context.history.append(target)
            self._context.reason = reason
            self._context.error = error_name

        context = self._context
        scan = context.scan_result
        self._record(
            "update_file_status",
            self.file_id,
            target.value,
            reason=reason,
            storage_path=context.stored.path if context.stored else None,
            storage_url=context.stored.url if context.stored else None,
            sha256=scan.identity.sha256 if scan else None,
            risk_score=scan.risk_score if scan else None,
        )
        if target is FileState.STORED:
            stored_size = context.stored.size if context.stored else 0
            self._record("increment_usage", context.actor_id, 1, stored_size)
            self._notify("upload_complete", f"{self._submission.name} uploaded successfully")
            self._publish("complete", COMPLETE_PERCENT, "Upload complete")
            Log.info(f"File {self._submission.name} stored", session=context.session_id)
        else:
            self._notify(f"upload_{target.value}", f"{self._submission.name}: {reason}")
            self._publish(target.value, self._percentage, reason or target.value)
            Log.warning(
                f"File {self._submission.name} {target.value}: {reason}",
                session=context.session_id,
                error=error_name,
            )
        self._reporter.close(context.session_id, self.file_id)
        self._release_payload()
        return True

    def _release_payload(self) -> None:
        """Drop the file and converted bytes once the run has ended."""
        self._submission = replace(self._submission, content=None)
        context = self._context
        context.payload = None
        job = context.conversion_job
        if job is not None and job.output is not None:
            job.output = job.output.without_data()

    def _on_conversion(self, update: ConversionProgress) -> None:
        low, high = CONVERSION_BAND
        percentage = low + round((high - low) * update.percentage / 100)
        self._publish(update.stage, percentage, update.description, eta_ms=update.eta_ms)

    def _publish(
        self, stage: str, percentage: int, message: str, eta_ms: int | None = None
    ) -> None:
        self._percentage = max(self._percentage, percentage)
        self._reporter.publish(
            self._context.session_id,
            self.file_id,
            stage=stage,
            percentage=self._percentage,
            state=self._context.state.value,
            eta_ms=eta_ms,
            message=message,
        )

    def _notify(self, kind: str, message: str) -> None:
        self._record(
            "append_notification",
            Notification(
                actor_id=self._context.actor_id,
                kind=kind,
                message=message,
                payload={"file_id": self.file_id, "session_id": self._context.session_id},
            ),
        )

    def _record(self, operation: str, *args: object, **kwargs: object) -> None:
        try:
            getattr(self._records, operation)(*args, **kwargs)
        except RecordStoreError as exc:
            Log.warning(f"Record store {operation} failed for {self.file_id}: {exc}")
