"""Batch-level orchestration of the intake pipeline.

A batch runs in two phases. Pre-flight runs synchronously in the caller's
thread: the session is opened, and every file is quick-checked and granted a
rate-limit slot in submission order. Everything after that (scanning,
optional conversion, storage) runs on background executors, and the session
closes once every file has reached a terminal state.

Closed sessions stay queryable until ``session_retention`` newer sessions have
closed; after that their progress channels, controllers and totals are dropped.
"""

import random
import threading
from collections import deque
from collections.abc import Iterator, Sequence
from concurrent.futures import Future, ThreadPoolExecutor, as_completed

from intake.clock import Clock, SystemClock
from intake.config.settings import Settings
from intake.conversion.converter import FormatConverter
from intake.conversion.factory import ConversionBackendFactory
from intake.conversion.models import ConversionStats
from intake.files.models import FileSubmission
from intake.logging.logger import Log
from intake.pipeline.controller import IntakeController
from intake.pipeline.models import IntakeOptions
from intake.pipeline.steps import ConvertStep, QuickCheckStep, ScanStep, StoreStep
from intake.progress.models import ProgressEvent
from intake.progress.reporter import ProgressReporter
from intake.ratelimit.exceptions import RateLimitError
from intake.ratelimit.limiter import RateLimiter
from intake.records.base import RecordStore
from intake.records.exceptions import RecordStoreError
from intake.records.factory import RecordStoreFactory
from intake.records.models import Notification
from intake.security.events import SecurityEvent, SecurityEventLog, SecurityEventType
from intake.security.factory import ScanBackendFactory
from intake.security.report import SecurityReport, build_security_report
from intake.security.scanner import SecurityScanner
from intake.sessions.aggregator import UploadSessionAggregator
from intake.sessions.exceptions import SessionNotFoundError
from intake.sessions.models import SessionSummary
from intake.storage.base import BlobStore
from intake.storage.factory import BlobStoreFactory
from intake.validation.quick_validator import QuickValidator

UPLOAD_POLICIES: tuple[str, ...] = ("sequential", "concurrent")


class IntakeService:
    def __init__(
        self,
        validator: QuickValidator,
        limiter: RateLimiter,
        scanner: SecurityScanner,
        converter: FormatConverter,
        blob_store: BlobStore,
        record_store: RecordStore,
        event_log: SecurityEventLog,
        aggregator: UploadSessionAggregator | None = None,
        reporter: ProgressReporter | None = None,
        clock: Clock | None = None,
        scan_workers: int = 4,
        upload_policy: str = "sequential",
        upload_workers: int = 2,
        batch_workers: int = 4,
        session_retention: int = 256,
        rng: random.Random | None = None,
    ) -> None:
        if upload_policy not in UPLOAD_POLICIES:
            raise ValueError(
                f"Unknown upload policy '{upload_policy}'. Choose from: {list(UPLOAD_POLICIES)}"
            )
        if session_retention < 1:
            raise ValueError("session_retention must be at least 1")
        self._clock = clock or SystemClock()
        self._limiter = limiter
        self._scanner = scanner
        self._converter = converter
        self._record_store = record_store
        self._event_log = event_log
        self._aggregator = aggregator or UploadSessionAggregator(self._clock)
        self._reporter = reporter or ProgressReporter(self._clock)
        self._upload_policy = upload_policy

        self._quick_check_step = QuickCheckStep(validator)
        self._scan_step = ScanStep(scanner)
        self._convert_step = ConvertStep(converter)
        self._store_step = StoreStep(blob_store, self._clock, rng)

        self._batch_pool = ThreadPoolExecutor(batch_workers, thread_name_prefix="intake-batch")
        self._scan_pool = ThreadPoolExecutor(scan_workers, thread_name_prefix="intake-scan")
        self._upload_pool = (
            ThreadPoolExecutor(upload_workers, thread_name_prefix="intake-upload")
            if upload_policy == "concurrent"
            else None
        )
        self._runs: dict[str, dict[str, IntakeController]] = {}
        self._futures: dict[str, Future[SessionSummary]] = {}
        self._retired: deque[str] = deque()
        self._session_retention = session_retention
        self._lock = threading.Lock()

    @property
    def scanner(self) -> SecurityScanner:
        return self._scanner

    @property
    def limiter(self) -> RateLimiter:
        return self._limiter

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def submit_batch(
        self,
        actor_id: str,
        files: Sequence[FileSubmission],
        options: IntakeOptions | None = None,
    ) -> str:
        """Start a batch and return its session id once pre-flight has passed.

        Raises:
            RateLimitError: if a file could not get a rate-limit slot; the
                whole batch is rejected and the session is already closed.
        """
        options = options or IntakeOptions()
        session_id = self._aggregator.open(actor_id, len(files))
        controllers = [self._controller(session_id, actor_id, f, options) for f in files]
        with self._lock:
            self._runs[session_id] = {c.file_id: c for c in controllers}

        survivors = self._preflight(session_id, actor_id, controllers)
        future = self._batch_pool.submit(self._run_batch, session_id, survivors)
        with self._lock:
            if session_id in self._runs:
                self._futures[session_id] = future
        return session_id

    def process_batch(
        self,
        actor_id: str,
        files: Sequence[FileSubmission],
        options: IntakeOptions | None = None,
        timeout: float | None = None,
    ) -> SessionSummary:
        session_id = self.submit_batch(actor_id, files, options)
        return self.wait(session_id, timeout=timeout)

    def wait(self, session_id: str, timeout: float | None = None) -> SessionSummary:
        """Block until the session is closed and return its final summary."""
        with self._lock:
            future = self._futures.get(session_id)
        if future is None:
            return self._aggregator.summary(session_id)
        return future.result(timeout=timeout)

    def progress(self, session_id: str, file_id: str) -> Iterator[ProgressEvent]:
        with self._lock:
            run = self._runs.get(session_id)
        if run is None:
            raise SessionNotFoundError(f"Session {session_id} not found")
        if file_id not in run:
            raise KeyError(f"File {file_id} is not part of session {session_id}")
        return self._reporter.subscribe(session_id, file_id)

    def get_session_summary(self, session_id: str) -> SessionSummary:
        return self._aggregator.summary(session_id)

    def get_security_events(self, limit: int = 100) -> list[SecurityEvent]:
        return self._event_log.recent(limit)

    def get_security_stats(self) -> dict[str, int]:
        return self._scanner.stats()

    def get_security_report(self, session_id: str) -> SecurityReport:
        summary = self._aggregator.summary(session_id)
        results = [o.scan_result for o in summary.outcomes if o.scan_result is not None]
        return build_security_report(results, self._clock.now())

    def get_conversion_stats(self) -> ConversionStats:
        return self._converter.stats()

    def withdraw(self, session_id: str, file_id: str) -> bool:
        """Withdraw a file that is selected, quick-checked or ready.

        Returns False when the file already moved past those states.
        """
        with self._lock:
            controller = self._runs.get(session_id, {}).get(file_id)
        if controller is None:
            raise SessionNotFoundError(f"File {file_id} not found in session {session_id}")
        withdrawn = controller.withdraw()
        if withdrawn:
            Log.info("File withdrawn", session=session_id, file=file_id)
        return withdrawn

    def shutdown(self, wait: bool = True) -> None:
        self._batch_pool.shutdown(wait=wait)
        self._scan_pool.shutdown(wait=wait)
        if self._upload_pool is not None:
            self._upload_pool.shutdown(wait=wait)

    # ------------------------------------------------------------------
    # Batch phases
    # ------------------------------------------------------------------

    def _preflight(
        self, session_id: str, actor_id: str, controllers: list[IntakeController]
    ) -> list[IntakeController]:
        survivors: list[IntakeController] = []
        for controller in controllers:
            if not controller.quick_check():
                self._aggregator.record_outcome(session_id, controller.outcome())
                continue
            if not self._limiter.try_acquire(actor_id):
                self._abort(session_id, actor_id, controllers, acquired=len(survivors))
            survivors.append(controller)
        return survivors

    def _abort(
        self,
        session_id: str,
        actor_id: str,
        controllers: list[IntakeController],
        acquired: int,
    ) -> None:
        """Reject the whole batch and hand back the slots it already took."""
        self._limiter.release(actor_id, acquired)
        ceiling = self._limiter.ceiling
        reason = f"Upload rate limit exceeded ({ceiling} files per window)"
        recorded = self._aggregator.recorded_file_ids(session_id)
        for controller in controllers:
            controller.reject(reason, error_name=RateLimitError.__name__)
            if controller.file_id not in recorded:
                self._aggregator.record_outcome(session_id, controller.outcome())
        summary = self._aggregator.close(session_id, aborted_reason=reason)
        self._event_log.record(
            SecurityEventType.RATE_LIMIT_EXCEEDED,
            actor_id=actor_id,
            details={"session_id": session_id, "ceiling": ceiling, "files": len(controllers)},
        )
        self._persist(summary)
        self._notify(actor_id, "rate_limited", reason, session_id)
        self._retire(session_id)
        raise RateLimitError(actor_id, ceiling, summary)

    def _run_batch(self, session_id: str, controllers: list[IntakeController]) -> SessionSummary:
        ready: list[IntakeController] = []
        scans = {self._scan_pool.submit(self._scan_and_convert, c): c for c in controllers}
        for future in as_completed(scans):
            controller = scans[future]
            future.result()
            if controller.is_terminal:
                self._aggregator.record_outcome(session_id, controller.outcome())
            else:
                ready.append(controller)

        # Upload in submission order.
        order = {c.file_id: index for index, c in enumerate(controllers)}
        ready.sort(key=lambda c: order[c.file_id])
        if self._upload_pool is None:
            for controller in ready:
                self._upload(session_id, controller)
        else:
            uploads = [self._upload_pool.submit(self._upload, session_id, c) for c in ready]
            for future in uploads:
                future.result()

        summary = self._aggregator.close(session_id)
        self._persist(summary)
        self._notify(
            summary.actor_id,
            "batch_complete",
            f"{summary.successful_uploads} of {summary.total_files} files uploaded",
            session_id,
        )
        self._retire(session_id)
        return summary

    @staticmethod
    def _scan_and_convert(controller: IntakeController) -> None:
        if controller.scan():
            controller.convert()

    def _upload(self, session_id: str, controller: IntakeController) -> None:
        controller.upload()
        self._aggregator.record_outcome(session_id, controller.outcome())

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _controller(
        self,
        session_id: str,
        actor_id: str,
        submission: FileSubmission,
        options: IntakeOptions,
    ) -> IntakeController:
        return IntakeController(
            submission=submission,
            session_id=session_id,
            actor_id=actor_id,
            options=options,
            quick_check_step=self._quick_check_step,
            scan_step=self._scan_step,
            convert_step=self._convert_step,
            store_step=self._store_step,
            record_store=self._record_store,
            reporter=self._reporter,
        )

    def _retire(self, session_id: str) -> None:
        """Mark a closed session and evict the oldest beyond the retention bound."""
        with self._lock:
            self._retired.append(session_id)
            evicted: list[str] = []
            while len(self._retired) > self._session_retention:
                old = self._retired.popleft()
                self._runs.pop(old, None)
                self._futures.pop(old, None)
                evicted.append(old)
        for old in evicted:
            self._reporter.discard_session(old)
            self._aggregator.discard(old)
            Log.debug("Session evicted", session=old)

    def _persist(self, summary: SessionSummary) -> None:
        try:
            self._record_store.save_session(summary)
        except RecordStoreError as exc:
            Log.warning(f"Could not save session {summary.session_id}: {exc}")

    def _notify(self, actor_id: str, kind: str, message: str, session_id: str) -> None:
        try:
            self._record_store.append_notification(
                Notification(
                    actor_id=actor_id,
                    kind=kind,
                    message=message,
                    payload={"session_id": session_id},
                )
            )
        except RecordStoreError as exc:
            Log.warning(f"Could not append notification for {actor_id}: {exc}")


def build_service(
    settings: Settings,
    clock: Clock | None = None,
    record_store: RecordStore | None = None,
    blob_store: BlobStore | None = None,
) -> IntakeService:
    """Wire every pipeline component from settings; built once per process."""
    clock = clock or SystemClock()
    event_log = SecurityEventLog(capacity=settings.security_event_capacity, clock=clock)
    scanner = SecurityScanner(
        event_log=event_log,
        backend=ScanBackendFactory.create(settings, clock),
        clock=clock,
        max_file_size=settings.max_file_size_bytes,
        prefix_bytes=settings.scan_prefix_bytes,
        quarantine_threshold=settings.quarantine_threshold,
        upload_ceiling=settings.rate_limit_per_hour,
    )
    return IntakeService(
        validator=QuickValidator(settings.max_file_size_bytes),
        limiter=RateLimiter(
            ceiling=settings.rate_limit_per_hour,
            window_seconds=settings.rate_limit_window_seconds,
            clock=clock,
        ),
        scanner=scanner,
        converter=FormatConverter(
            ConversionBackendFactory.create(settings, clock),
            clock,
            history_size=settings.conversion_history_size,
        ),
        blob_store=blob_store or BlobStoreFactory.create(settings),
        record_store=record_store or RecordStoreFactory.create(settings, clock),
        event_log=event_log,
        clock=clock,
        scan_workers=settings.scan_workers,
        upload_policy=settings.upload_policy.lower(),
        upload_workers=settings.upload_workers,
        batch_workers=settings.batch_workers,
        session_retention=settings.session_retention,
        rng=random.Random(settings.simulation_seed),
    )
