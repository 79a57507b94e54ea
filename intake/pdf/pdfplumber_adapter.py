import io

import pdfplumber

from intake.pdf.base import BasePdfExtractor
from intake.pdf.exceptions import PdfExtractionError


class PdfPlumberExtractor(BasePdfExtractor):
    name = "pdfplumber"

    def extract(self, pdf_bytes: bytes) -> str:
        if not pdf_bytes:
            raise PdfExtractionError("Cannot extract text from an empty PDF")
        try:
            with pdfplumber.open(io.BytesIO(pdf_bytes)) as document:
                pages = [(page.extract_text() or "").strip() for page in document.pages]
        except Exception as exc:
            raise PdfExtractionError(f"pdfplumber could not read PDF: {exc}") from exc
        return "\n\n".join(p for p in pages if p)
