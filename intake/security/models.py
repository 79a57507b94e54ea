from dataclasses import dataclass, field
from enum import Enum


class Severity(str, Enum):
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class RiskLevel(str, Enum):
    CLEAN = "clean"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


@dataclass(frozen=True)
class Finding:
    """One triggered check and the risk points it contributes."""

    kind: str  # e.g. "dangerous_extension", "virus_signature", "mime_mismatch"
    severity: Severity
    description: str
    points: int = 0


@dataclass(frozen=True)
class ScanIdentity:
    """Echo of the scanned input."""

    file_id: str
    file_name: str
    file_size: int
    sha256: str | None = None


@dataclass(frozen=True)
class SecurityScanResult:
    """Immutable outcome of one scan attempt; a re-scan produces a new result."""

    scan_id: str
    identity: ScanIdentity
    risk_score: int
    findings: tuple[Finding, ...]
    secure: bool
    quarantined: bool
    risk_level: RiskLevel
    duration_ms: int
    scanned_at: float
    actor_id: str | None = None
    recommendations: tuple[str, ...] = field(default_factory=tuple)

    @property
    def errors(self) -> list[str]:
        return [
            f.description
            for f in self.findings
            if f.severity in (Severity.ERROR, Severity.CRITICAL)
        ]

    @property
    def warnings(self) -> list[str]:
        return [f.description for f in self.findings if f.severity is Severity.WARNING]

    def has_critical(self) -> bool:
        return any(f.severity is Severity.CRITICAL for f in self.findings)

    def rejection_reason(self) -> str:
        """Human-readable reason used when the pipeline rejects the file."""
        blocking = self.errors or self.warnings
        detail = ", ".join(blocking) if blocking else "risk threshold reached"
        return f"Security scan failed (risk score {self.risk_score}): {detail}"
