from dataclasses import dataclass, field

from intake.files.formats import DANGEROUS_EXTENSIONS, MAX_FILENAME_LENGTH, format_file_size
from intake.files.models import FileSubmission
from intake.validation.exceptions import ValidationError

DEFAULT_MAX_FILE_SIZE = 50 * 1024 * 1024


@dataclass(frozen=True)
class QuickCheckResult:
    """Outcome of the cheap metadata-only gate."""

    is_allowed: bool
    within_size_limit: bool
    has_valid_name: bool
    reasons: list[str] = field(default_factory=list)

    @property
    def is_safe(self) -> bool:
        return self.is_allowed and self.within_size_limit and self.has_valid_name


class QuickValidator:
    """Rejects trivially unacceptable submissions before any scan is paid for.

    Works on static metadata only (name, declared size), so it holds no state
    and can be shared between threads.
    """

    def __init__(self, max_file_size: int = DEFAULT_MAX_FILE_SIZE) -> None:
        self._max_file_size = max_file_size

    @property
    def max_file_size(self) -> int:
        return self._max_file_size

    def check(self, submission: FileSubmission) -> QuickCheckResult:
        extension = submission.extension
        reasons: list[str] = []

        is_allowed = extension not in DANGEROUS_EXTENSIONS
        if not is_allowed:
            reasons.append(f"File type '.{extension}' is not allowed for security reasons")

        within_size_limit = submission.size <= self._max_file_size
        if not within_size_limit:
            reasons.append(
                f"File size ({format_file_size(submission.size)}) exceeds maximum limit "
                f"({format_file_size(self._max_file_size)})"
            )

        has_valid_name = 0 < len(submission.name) <= MAX_FILENAME_LENGTH
        if not has_valid_name:
            reasons.append(
                "File name is empty"
                if not submission.name
                else f"File name exceeds {MAX_FILENAME_LENGTH} characters"
            )

        return QuickCheckResult(
            is_allowed=is_allowed,
            within_size_limit=within_size_limit,
            has_valid_name=has_valid_name,
            reasons=reasons,
        )

    def ensure_safe(self, submission: FileSubmission) -> QuickCheckResult:
        """Run ``check`` and raise if the submission is not safe.

        Raises:
            ValidationError: carrying every violated rule.
        """
        result = self.check(submission)
        if not result.is_safe:
            raise ValidationError(result.reasons)
        return result
