import re
from typing import ClassVar

from intake.files.formats import TEXT_LIKE_EXTENSIONS
from intake.files.models import FileSubmission
from intake.security.backends.base import ScanBackend
from intake.security.models import Finding, Severity

SIGNATURE_POINTS = 100
SUSPICIOUS_CONTENT_POINTS = 30


class SignatureScanBackend(ScanBackend):
    """Matches known signatures and script-injection patterns in a content prefix."""

    name = "signature"

    DEFAULT_SIGNATURES: ClassVar[tuple[str, ...]] = (
        "EICAR-STANDARD-ANTIVIRUS-TEST-FILE",
        r"X5O!P%@AP[4\PZX54(P^)7CC)7}$EICAR",
        "malware_signature_1",
        "trojan_pattern_2",
        "worm_detection_3",
    )

    SUSPICIOUS_PATTERNS: ClassVar[tuple[re.Pattern[str], ...]] = (
        re.compile(r"script\s*:", re.IGNORECASE),
        re.compile(r"<script", re.IGNORECASE),
        re.compile(r"javascript:", re.IGNORECASE),
        re.compile(r"vbscript:", re.IGNORECASE),
        re.compile(r"onload\s*=", re.IGNORECASE),
        re.compile(r"onerror\s*=", re.IGNORECASE),
        re.compile(r"onclick\s*=", re.IGNORECASE),
        re.compile(r"eval\s*\(", re.IGNORECASE),
        re.compile(r"document\.write", re.IGNORECASE),
        re.compile(r"window\.location", re.IGNORECASE),
    )

    def __init__(self, signatures: tuple[str, ...] | None = None) -> None:
        raw = signatures if signatures is not None else self.DEFAULT_SIGNATURES
        self._signatures = tuple((s, s.encode("utf-8")) for s in raw)

    def inspect(self, submission: FileSubmission, prefix: bytes) -> list[Finding]:
        findings = self._match_signatures(prefix)
        if self._is_text_like(submission):
            findings.extend(self._match_patterns(prefix.decode("utf-8", errors="ignore")))
        return findings

    def _match_signatures(self, prefix: bytes) -> list[Finding]:
        return [
            Finding(
                kind="virus_signature",
                severity=Severity.CRITICAL,
                description=f"Virus signature detected: {label}",
                points=SIGNATURE_POINTS,
            )
            for label, needle in self._signatures
            if needle in prefix
        ]

    def _match_patterns(self, text: str) -> list[Finding]:
        return [
            Finding(
                kind="suspicious_content",
                severity=Severity.WARNING,
                description=f"Suspicious content pattern detected: {pattern.pattern}",
                points=SUSPICIOUS_CONTENT_POINTS,
            )
            for pattern in self.SUSPICIOUS_PATTERNS
            if pattern.search(text)
        ]

    @staticmethod
    def _is_text_like(submission: FileSubmission) -> bool:
        return (
            submission.extension in TEXT_LIKE_EXTENSIONS
            or submission.mime_type.startswith("text/")
        )
