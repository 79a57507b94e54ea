"""Roll-up of the scan results of one batch."""

from collections import Counter
from collections.abc import Sequence
from dataclasses import dataclass, field

from intake.security.models import RiskLevel, SecurityScanResult

HIGH_RISK_LEVELS = frozenset({RiskLevel.HIGH, RiskLevel.CRITICAL})


@dataclass(frozen=True)
class SecurityReport:
    total_files: int
    clean_files: int
    quarantined_files: int
    security_score: int
    generated_at: float
    risk_distribution: dict[str, int] = field(default_factory=dict)
    threat_types: dict[str, int] = field(default_factory=dict)
    recommendations: tuple[str, ...] = ()

    def to_payload(self) -> dict[str, object]:
        return {
            "summary": {
                "total_files": self.total_files,
                "clean_files": self.clean_files,
                "quarantined_files": self.quarantined_files,
                "security_score": self.security_score,
            },
            "risk_distribution": dict(self.risk_distribution),
            "threat_types": dict(self.threat_types),
            "generated_at": self.generated_at,
            "recommendations": list(self.recommendations),
        }


def build_security_report(results: Sequence[SecurityScanResult], now: float) -> SecurityReport:
    """Summarize ``results``; an empty batch scores 100."""
    total = len(results)
    levels = Counter(result.risk_level for result in results)
    threats = Counter(finding.kind for result in results for finding in result.findings)
    clean = levels[RiskLevel.CLEAN]
    quarantined = sum(1 for result in results if result.quarantined)
    return SecurityReport(
        total_files=total,
        clean_files=clean,
        quarantined_files=quarantined,
        security_score=round(clean / total * 100) if total else 100,
        generated_at=now,
        risk_distribution={level.value: levels[level] for level in RiskLevel},
        threat_types=dict(threats),
        recommendations=system_recommendations(results),
    )


def system_recommendations(results: Sequence[SecurityScanResult]) -> tuple[str, ...]:
    recommendations: list[str] = []
    quarantined = sum(1 for result in results if result.quarantined)
    if quarantined:
        recommendations.append(f"{quarantined} files were quarantined - review security policies")
    if any(result.risk_level in HIGH_RISK_LEVELS for result in results):
        recommendations.append("Consider implementing stricter file upload policies")
    return tuple(recommendations)
