from abc import ABC, abstractmethod

from intake.files.models import FileSubmission
from intake.security.models import Finding


class ScanBackend(ABC):
    """Contract for content-inspection engines plugged into the scanner."""

    name: str = "base"

    @abstractmethod
    def inspect(self, submission: FileSubmission, prefix: bytes) -> list[Finding]:
        """Inspect the bounded content prefix of a submission.

        Args:
            submission: The file being scanned (metadata only should be used
                beyond ``prefix``).
            prefix: At most ``scan_prefix_bytes`` bytes from the start of the file.

        Returns:
            Findings for every signature or pattern that matched.

        Raises:
            ScanError: if the engine cannot complete the inspection.
        """
