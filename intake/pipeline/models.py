from dataclasses import dataclass, field

from intake.conversion.models import ConversionJob
from intake.pipeline.states import FileState
from intake.security.models import SecurityScanResult
from intake.storage.base import StoredObject


@dataclass(frozen=True)
class IntakeOptions:
    """Per-batch choices made by the caller."""

    target_format: str | None = None
    quality: str = "medium"
    auto_convert: bool = False

    @classmethod
    def from_payload(cls, payload: dict[str, object] | None) -> "IntakeOptions":
        payload = payload or {}
        target = payload.get("target_format")
        return cls(
            target_format=str(target).lower().lstrip(".") if target else None,
            quality=str(payload.get("quality") or "medium"),
            auto_convert=bool(payload.get("auto_convert", False)),
        )


@dataclass(frozen=True)
class FileOutcome:
    """Terminal result of one controller run."""

    file_id: str
    name: str
    size: int
    state: FileState
    reason: str | None = None
    error: str | None = None
    scan_result: SecurityScanResult | None = None
    conversion_job: ConversionJob | None = None
    stored: StoredObject | None = None
    state_history: tuple[FileState, ...] = ()

    @property
    def succeeded(self) -> bool:
        return self.state is FileState.STORED

    def to_payload(self) -> dict[str, object]:
        payload: dict[str, object] = {
            "file_id": self.file_id,
            "name": self.name,
            "size": self.size,
            "state": self.state.value,
            "reason": self.reason,
            "error": self.error,
            "state_history": [s.value for s in self.state_history],
        }
        if self.scan_result is not None:
            payload["scan"] = {
                "scan_id": self.scan_result.scan_id,
                "risk_score": self.scan_result.risk_score,
                "risk_level": self.scan_result.risk_level.value,
                "secure": self.scan_result.secure,
                "quarantined": self.scan_result.quarantined,
                "sha256": self.scan_result.identity.sha256,
                "findings": [f.description for f in self.scan_result.findings],
                "recommendations": list(self.scan_result.recommendations),
            }
        if self.conversion_job is not None:
            job = self.conversion_job
            metrics = job.quality_metrics
            payload["conversion"] = {
                "job_id": job.job_id,
                "target_format": job.target_format,
                "status": job.status.value,
                "progress": job.progress,
                "error": job.error,
                "output_name": job.output.name if job.output else None,
                "quality_metrics": metrics.to_payload() if metrics else None,
            }
        if self.stored is not None:
            payload["stored"] = {"path": self.stored.path, "url": self.stored.url}
        return payload


@dataclass
class IntakeContext:
    """Mutable state of one file while it moves through the intake steps."""

    session_id: str
    actor_id: str
    options: IntakeOptions
    state: FileState = FileState.SELECTED
    history: list[FileState] = field(default_factory=lambda: [FileState.SELECTED])
    scan_result: SecurityScanResult | None = None
    conversion_job: ConversionJob | None = None
    payload_name: str | None = None
    payload: bytes | None = None
    stored: StoredObject | None = None
    reason: str | None = None
    error: str | None = None
