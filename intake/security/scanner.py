"""Multi-factor risk scoring for submitted files.

Every check is independent and contributes points; the points are summed and
clamped to [0, 100]. The decision is threshold-gated:

    secure      = score < threshold and no ERROR finding
    quarantined = not secure or any CRITICAL finding

ERROR is reserved for hard rejects worth at least ``threshold`` points, so a
result is quarantined exactly when the score reaches the threshold or a
CRITICAL finding is present.
"""

import hashlib
import re
import threading
import uuid
from collections.abc import Iterable
from typing import ClassVar

from intake.clock import Clock, SystemClock
from intake.files.exceptions import FileReadError
from intake.files.formats import (
    ARCHIVE_EXTENSIONS,
    DANGEROUS_EXTENSIONS,
    MAX_FILENAME_LENGTH,
    expected_mime_type,
    extension_count,
    format_file_size,
    is_allow_listed,
)
from intake.files.models import FileSubmission
from intake.logging.logger import Log
from intake.security.backends.base import ScanBackend
from intake.security.backends.signature import SignatureScanBackend
from intake.security.events import DAY_SECONDS, SecurityEventLog, SecurityEventType
from intake.security.exceptions import ScanError
from intake.security.models import (
    Finding,
    RiskLevel,
    ScanIdentity,
    SecurityScanResult,
    Severity,
)

MAX_RISK_SCORE = 100
DEFAULT_QUARANTINE_THRESHOLD = 70
DEFAULT_PREFIX_BYTES = 5120

FAILED_SCAN_TYPES = frozenset(
    {
        SecurityEventType.SCAN_FAILED,
        SecurityEventType.VIRUS_DETECTED,
        SecurityEventType.BLACKLISTED_HASH,
    }
)


def clamp_score(points: int) -> int:
    return max(0, min(MAX_RISK_SCORE, points))


def risk_score(findings: Iterable[Finding]) -> int:
    return clamp_score(sum(f.points for f in findings))


def assess(
    findings: Iterable[Finding],
    threshold: int = DEFAULT_QUARANTINE_THRESHOLD,
) -> tuple[int, bool, bool]:
    """Apply the decision rule to a set of findings.

    Returns:
        ``(risk_score, secure, quarantined)``.
    """
    findings = list(findings)
    score = risk_score(findings)
    has_error = any(f.severity is Severity.ERROR for f in findings)
    has_critical = any(f.severity is Severity.CRITICAL for f in findings)
    secure = score < threshold and not has_error
    quarantined = not secure or has_critical
    return score, secure, quarantined


def classify_risk(findings: Iterable[Finding]) -> RiskLevel:
    counts = {severity: 0 for severity in Severity}
    for finding in findings:
        counts[finding.severity] += 1
    if counts[Severity.CRITICAL]:
        return RiskLevel.CRITICAL
    if counts[Severity.ERROR]:
        return RiskLevel.HIGH
    if counts[Severity.WARNING] > 1 or counts[Severity.INFO] > 3:
        return RiskLevel.MEDIUM
    if counts[Severity.WARNING] or counts[Severity.INFO]:
        return RiskLevel.LOW
    return RiskLevel.CLEAN


class SecurityScanner:
    """Scores a submission and decides whether it must be quarantined.

    The scanner always returns a result: unreadable content or a failing
    backend lowers the score through a penalty finding instead of raising.
    Only a missing submission raises.
    """

    THREAT_KEYWORDS: ClassVar[tuple[str, ...]] = (
        "virus", "malware", "trojan", "hack", "crack", "keygen",
    )

    FILENAME_PATTERNS: ClassVar[tuple[re.Pattern[str], ...]] = (
        re.compile(r"script\s*:", re.IGNORECASE),
        re.compile(r"<script", re.IGNORECASE),
        re.compile(r"javascript:", re.IGNORECASE),
        re.compile(r"vbscript:", re.IGNORECASE),
        re.compile(r"onload=", re.IGNORECASE),
        re.compile(r"onclick=", re.IGNORECASE),
        re.compile(r"eval\(", re.IGNORECASE),
        re.compile(r"document\.write", re.IGNORECASE),
    )

    RECOMMENDATIONS: ClassVar[dict[str, str]] = {
        "virus_signature": "Immediately quarantine file and run full system scan",
        "blacklisted_hash": "Immediately quarantine file and run full system scan",
        "dangerous_extension": "Block file upload and notify user of policy violation",
        "suspicious_content": "Review file content manually before allowing upload",
        "threat_keyword": "Consider renaming file to remove suspicious patterns",
        "suspicious_filename": "Consider renaming file to remove suspicious patterns",
        "size_limit": "Compress file or split into smaller parts",
        "archive": "Standard security protocols apply to compressed archives",
    }

    LEVEL_RECOMMENDATIONS: ClassVar[dict[RiskLevel, str]] = {
        RiskLevel.CRITICAL: "DO NOT UPLOAD - File poses serious security risk",
        RiskLevel.HIGH: "Manual review required before upload",
        RiskLevel.MEDIUM: "Upload with caution and monitor closely",
        RiskLevel.LOW: "Upload allowed with standard monitoring",
    }

    def __init__(
        self,
        event_log: SecurityEventLog,
        backend: ScanBackend | None = None,
        clock: Clock | None = None,
        max_file_size: int = 50 * 1024 * 1024,
        prefix_bytes: int = DEFAULT_PREFIX_BYTES,
        quarantine_threshold: int = DEFAULT_QUARANTINE_THRESHOLD,
        upload_ceiling: int = 20,
    ) -> None:
        self._event_log = event_log
        self._backend = backend or SignatureScanBackend()
        self._clock = clock or SystemClock()
        self._max_file_size = max_file_size
        self._prefix_bytes = prefix_bytes
        self._threshold = quarantine_threshold
        self._upload_ceiling = upload_ceiling
        self._blacklist: set[str] = set()
        self._blacklist_lock = threading.Lock()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def scan(
        self, submission: FileSubmission | None, actor_id: str | None = None
    ) -> SecurityScanResult:
        if submission is None:
            raise ValueError("No file provided for scanning")

        started = self._clock.now()
        scan_id = f"scan_{uuid.uuid4().hex[:12]}"
        Log.debug("Scanning file", scan_id=scan_id, file=submission.name, actor=actor_id)

        findings: list[Finding] = []
        findings.extend(self._check_extension(submission))
        findings.extend(self._check_size(submission))
        findings.extend(self._check_filename(submission.name))
        content_findings, sha256, engine_failed = self._check_content(submission)
        findings.extend(content_findings)
        findings.extend(self._check_behavior(actor_id))

        score, secure, quarantined = assess(findings, self._threshold)
        level = classify_risk(findings)
        result = SecurityScanResult(
            scan_id=scan_id,
            identity=ScanIdentity(
                file_id=submission.file_id,
                file_name=submission.name,
                file_size=submission.size,
                sha256=sha256,
            ),
            risk_score=score,
            findings=tuple(findings),
            secure=secure,
            quarantined=quarantined,
            risk_level=level,
            duration_ms=int((self._clock.now() - started) * 1000),
            scanned_at=started,
            actor_id=actor_id,
            recommendations=self._recommendations(findings, level),
        )
        self._log_outcome(result, engine_failed)
        Log.info(
            f"Security scan completed for {submission.name}",
            scan_id=scan_id,
            risk_score=score,
            secure=secure,
            quarantined=quarantined,
        )
        return result

    def add_to_blacklist(self, sha256: str) -> None:
        with self._blacklist_lock:
            self._blacklist.add(sha256.lower())

    def is_blacklisted(self, sha256: str) -> bool:
        with self._blacklist_lock:
            return sha256.lower() in self._blacklist

    def stats(self) -> dict[str, int]:
        stats = self._event_log.stats()
        with self._blacklist_lock:
            stats["blacklisted_hashes"] = len(self._blacklist)
        return stats

    # ------------------------------------------------------------------
    # Checks
    # ------------------------------------------------------------------

    def _check_extension(self, submission: FileSubmission) -> list[Finding]:
        extension = submission.extension
        if extension in DANGEROUS_EXTENSIONS:
            return [
                Finding(
                    "dangerous_extension",
                    Severity.ERROR,
                    f"File type '.{extension}' is not allowed for security reasons",
                    100,
                )
            ]

        findings: list[Finding] = []
        if not is_allow_listed(extension):
            findings.append(
                Finding(
                    "unsupported_type",
                    Severity.WARNING,
                    f"File type '.{extension}' is not commonly supported",
                    20,
                )
            )
        if extension in ARCHIVE_EXTENSIONS:
            findings.append(
                Finding("archive", Severity.INFO, "Compressed archive may hide content", 10)
            )

        expected = expected_mime_type(extension)
        if submission.mime_type and expected and submission.mime_type != expected:
            findings.append(
                Finding(
                    "mime_mismatch",
                    Severity.WARNING,
                    f"MIME type mismatch: expected {expected}, got {submission.mime_type}",
                    30,
                )
            )
        return findings

    def _check_size(self, submission: FileSubmission) -> list[Finding]:
        size = submission.size
        findings: list[Finding] = []
        if size > self._max_file_size:
            findings.append(
                Finding(
                    "size_limit",
                    Severity.WARNING,
                    f"File size ({format_file_size(size)}) exceeds maximum limit "
                    f"({format_file_size(self._max_file_size)})",
                    50,
                )
            )
        if size == 0:
            findings.append(Finding("empty_file", Severity.WARNING, "File appears to be empty", 40))
        if size > 2 * self._max_file_size:
            findings.append(
                Finding("oversized", Severity.WARNING, "File is exceptionally large", 20)
            )
        return findings

    def _check_filename(self, name: str) -> list[Finding]:
        findings: list[Finding] = []
        if "\0" in name:
            findings.append(
                Finding(
                    "null_bytes",
                    Severity.ERROR,
                    "File name contains null bytes (potential security risk)",
                    90,
                )
            )

        lowered = name.lower()
        if any(keyword in lowered for keyword in self.THREAT_KEYWORDS):
            findings.append(
                Finding(
                    "threat_keyword",
                    Severity.WARNING,
                    "Potential threat detected in filename",
                    60,
                )
            )

        for pattern in self.FILENAME_PATTERNS:
            if pattern.search(name):
                findings.append(
                    Finding(
                        "suspicious_filename",
                        Severity.WARNING,
                        f"Filename contains potentially suspicious content: {pattern.pattern}",
                        25,
                    )
                )

        if extension_count(name) > 2:
            findings.append(
                Finding(
                    "multiple_extensions",
                    Severity.WARNING,
                    "File has multiple extensions (potentially suspicious)",
                    15,
                )
            )
        if len(name) > MAX_FILENAME_LENGTH:
            findings.append(
                Finding("long_filename", Severity.INFO, "Filename is exceptionally long", 10)
            )
        if name.startswith(".") and name != ".htaccess":
            findings.append(Finding("hidden_file", Severity.INFO, "Hidden file detected", 5))
        return findings

    def _check_content(
        self, submission: FileSubmission
    ) -> tuple[list[Finding], str | None, bool]:
        """Inspect the bounded prefix and fingerprint the content.

        Returns:
            ``(findings, sha256 or None, engine_failed)``.
        """
        try:
            prefix = submission.read_prefix(self._prefix_bytes)
        except FileReadError as exc:
            Log.warning(f"Could not read content of {submission.name}: {exc}")
            return [
                Finding(
                    "content_unreadable",
                    Severity.WARNING,
                    "Unable to validate file content",
                    10,
                )
            ], None, True

        findings: list[Finding] = []
        sha256 = self._fingerprint(submission)
        if sha256 is None:
            findings.append(
                Finding("hash_unavailable", Severity.WARNING, "Unable to calculate file hash", 10)
            )
        elif self.is_blacklisted(sha256):
            findings.append(
                Finding(
                    "blacklisted_hash",
                    Severity.CRITICAL,
                    "File matches known malicious content",
                    100,
                )
            )

        engine_failed = sha256 is None
        try:
            findings.extend(self._backend.inspect(submission, prefix))
        except ScanError as exc:
            engine_failed = True
            findings.append(self._engine_penalty(str(exc)))
        except Exception as exc:
            engine_failed = True
            Log.error(f"Scan backend '{self._backend.name}' crashed: {exc}")
            findings.append(self._engine_penalty(str(exc)))
        return findings, sha256, engine_failed

    def _check_behavior(self, actor_id: str | None) -> list[Finding]:
        if not actor_id:
            return []
        since = self._clock.now() - DAY_SECONDS
        events = self._event_log.for_actor(actor_id, since)
        failed = sum(1 for e in events if e.type in FAILED_SCAN_TYPES)
        passed = sum(1 for e in events if e.type is SecurityEventType.SCAN_PASSED)

        findings: list[Finding] = []
        if failed > 5:
            findings.append(
                Finding(
                    "repeated_failures",
                    Severity.WARNING,
                    "Multiple failed uploads detected",
                    25,
                )
            )
        if passed > self._upload_ceiling:
            findings.append(
                Finding(
                    "high_frequency",
                    Severity.WARNING,
                    "Unusually high upload frequency",
                    15,
                )
            )
        return findings

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _fingerprint(submission: FileSubmission) -> str | None:
        digest = hashlib.sha256()
        try:
            for chunk in submission.iter_chunks():
                digest.update(chunk)
        except FileReadError:
            return None
        return digest.hexdigest()

    @staticmethod
    def _engine_penalty(detail: str) -> Finding:
        return Finding(
            "scan_incomplete",
            Severity.WARNING,
            f"Content scan could not complete: {detail}",
            10,
        )

    def _recommendations(self, findings: list[Finding], level: RiskLevel) -> tuple[str, ...]:
        ordered: dict[str, None] = {}
        for finding in findings:
            recommendation = self.RECOMMENDATIONS.get(finding.kind)
            if recommendation:
                ordered[recommendation] = None
        level_recommendation = self.LEVEL_RECOMMENDATIONS.get(level)
        if level_recommendation:
            ordered[level_recommendation] = None
        return tuple(ordered)

    def _log_outcome(self, result: SecurityScanResult, engine_failed: bool) -> None:
        kinds = {f.kind for f in result.findings}
        if "virus_signature" in kinds or "simulated_virus" in kinds:
            event_type = SecurityEventType.VIRUS_DETECTED
        elif "blacklisted_hash" in kinds:
            event_type = SecurityEventType.BLACKLISTED_HASH
        elif engine_failed:
            event_type = SecurityEventType.SCAN_ERROR
        elif result.secure:
            event_type = SecurityEventType.SCAN_PASSED
        else:
            event_type = SecurityEventType.SCAN_FAILED
        self._event_log.record(
            event_type,
            actor_id=result.actor_id,
            file_name=result.identity.file_name,
            details={
                "scan_id": result.scan_id,
                "risk_score": result.risk_score,
                "quarantined": result.quarantined,
                "findings": sorted(kinds),
            },
        )
