from abc import ABC, abstractmethod


class BasePdfExtractor(ABC):
    """Contract for text extraction from PDF uploads."""

    name: str = "base"

    @abstractmethod
    def extract(self, pdf_bytes: bytes) -> str:
        """Extract plain text from PDF bytes, one page per paragraph.

        Raises:
            PdfExtractionError: if the document cannot be opened or read.
        """
