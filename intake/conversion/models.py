import uuid
from dataclasses import dataclass, field, replace
from enum import Enum

from intake.conversion.exceptions import ConversionError


class ConversionStatus(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass(frozen=True)
class StageSpec:
    """One step of a conversion plan; ``failure_rate`` is a probability in [0, 1]."""

    name: str
    description: str
    duration_ms: int
    failure_rate: float = 0.0


BASE_STAGES: tuple[StageSpec, ...] = (
    StageSpec("analyze", "Analyzing source file", 500, 0.01),
    StageSpec("prepare", "Preparing conversion environment", 300, 0.005),
)

TYPE_STAGES: dict[str, tuple[StageSpec, ...]] = {
    "document": (
        StageSpec("extract", "Extracting document content", 1000, 0.02),
        StageSpec("format", "Converting formatting", 1500, 0.03),
        StageSpec("layout", "Generating output layout", 2000, 0.02),
        StageSpec("optimize", "Optimizing output", 800, 0.01),
    ),
    "image": (
        StageSpec("decode", "Decoding image data", 400, 0.01),
        StageSpec("transform", "Applying transformations", 600, 0.02),
        StageSpec("encode", "Encoding to target format", 500, 0.01),
    ),
    "video": (
        StageSpec("transcode", "Converting file format", 1000, 0.02),
        StageSpec("optimize", "Optimizing output", 500, 0.01),
    ),
    "audio": (
        StageSpec("transcode", "Converting file format", 1000, 0.02),
        StageSpec("optimize", "Optimizing output", 500, 0.01),
    ),
}

FINALIZE_STAGE = StageSpec("finalize", "Finalizing conversion", 200, 0.001)


def stage_plan(conversion_type: str) -> tuple[StageSpec, ...]:
    specific = TYPE_STAGES.get(conversion_type, TYPE_STAGES["video"])
    return (*BASE_STAGES, *specific, FINALIZE_STAGE)


def stage_percentage(index: int, total: int) -> int:
    """Cumulative percentage after the stage at zero-based ``index`` completes."""
    return round(100 * (index + 1) / total)


@dataclass(frozen=True)
class StageRecord:
    name: str
    description: str
    percentage: int
    completed_at: float


@dataclass(frozen=True)
class ConversionProgress:
    """Emitted after every completed stage."""

    job_id: str
    stage: str
    description: str
    percentage: int
    eta_ms: int


@dataclass(frozen=True)
class ConvertedArtifact:
    name: str
    format: str
    mime_type: str
    estimated_size: int
    data: bytes | None = None

    @property
    def size(self) -> int:
        """Actual byte size when data was produced, otherwise the estimate."""
        return len(self.data) if self.data is not None else self.estimated_size

    def without_data(self) -> "ConvertedArtifact":
        return replace(self, data=None, estimated_size=self.size)


@dataclass(frozen=True)
class QualityMetrics:
    compression_ratio: float
    size_difference: int
    size_reduction_percent: int
    estimated_quality_loss: str

    def to_payload(self) -> dict[str, object]:
        return {
            "compression_ratio": self.compression_ratio,
            "size_difference": self.size_difference,
            "size_reduction_percent": self.size_reduction_percent,
            "estimated_quality_loss": self.estimated_quality_loss,
        }


def estimate_quality_loss(compression_ratio: float) -> str:
    """Rough loss grade from how much the output shrank (ratio is source / output)."""
    if compression_ratio > 3:
        return "low"
    if compression_ratio > 1.5:
        return "minimal"
    if compression_ratio < 0.8:
        return "high"
    return "none"


def quality_metrics(source_size: int, output_size: int) -> QualityMetrics:
    ratio = source_size / output_size if output_size > 0 else 0.0
    difference = source_size - output_size
    reduction = round(difference / source_size * 100) if source_size > 0 else 0
    return QualityMetrics(
        compression_ratio=round(ratio, 2),
        size_difference=difference,
        size_reduction_percent=reduction,
        estimated_quality_loss=estimate_quality_loss(ratio),
    )


@dataclass
class ConversionJob:
    source_format: str
    target_format: str
    conversion_type: str
    quality: str
    profile: dict[str, object]
    source_name: str
    source_size: int
    job_id: str = field(default_factory=lambda: f"conv_{uuid.uuid4().hex[:12]}")
    status: ConversionStatus = ConversionStatus.PENDING
    progress: int = 0
    stages: list[StageRecord] = field(default_factory=list)
    error: str | None = None
    output: ConvertedArtifact | None = None
    started_at: float | None = None
    finished_at: float | None = None

    @property
    def is_finished(self) -> bool:
        return self.status in (ConversionStatus.COMPLETED, ConversionStatus.FAILED)

    @property
    def duration_ms(self) -> int | None:
        if self.started_at is None or self.finished_at is None:
            return None
        return int((self.finished_at - self.started_at) * 1000)

    @property
    def quality_metrics(self) -> QualityMetrics | None:
        if self.output is None:
            return None
        return quality_metrics(self.source_size, self.output.size)

    def start(self, now: float) -> None:
        if self.status is not ConversionStatus.PENDING:
            raise ConversionError(f"Conversion job {self.job_id} was already started")
        self.status = ConversionStatus.RUNNING
        self.started_at = now

    def record_stage(self, record: StageRecord) -> None:
        self._ensure_running()
        self.stages.append(record)
        self.progress = record.percentage

    def complete(self, artifact: ConvertedArtifact, now: float) -> None:
        self._ensure_running()
        self.output = artifact
        self.status = ConversionStatus.COMPLETED
        self.finished_at = now

    def fail(self, error: str, now: float) -> None:
        self._ensure_running()
        self.error = error
        self.status = ConversionStatus.FAILED
        self.finished_at = now

    def _ensure_running(self) -> None:
        if self.status is not ConversionStatus.RUNNING:
            raise ConversionError(
                f"Conversion job {self.job_id} is {self.status.value}, not running"
            )


@dataclass(frozen=True)
class ConversionStats:
    total: int
    successful: int
    failed: int
    success_rate: int
    format_stats: dict[str, int]
    average_conversion_ms: int

    def to_payload(self) -> dict[str, object]:
        return {
            "total": self.total,
            "successful": self.successful,
            "failed": self.failed,
            "success_rate": self.success_rate,
            "format_stats": dict(self.format_stats),
            "average_conversion_ms": self.average_conversion_ms,
        }
