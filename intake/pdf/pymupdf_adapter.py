import pymupdf

from intake.pdf.base import BasePdfExtractor
from intake.pdf.exceptions import PdfExtractionError


class PyMuPdfExtractor(BasePdfExtractor):
    name = "pymupdf"

    def extract(self, pdf_bytes: bytes) -> str:
        if not pdf_bytes:
            raise PdfExtractionError("Cannot extract text from an empty PDF")
        try:
            with pymupdf.open(stream=pdf_bytes, filetype="pdf") as document:  # type: ignore[no-untyped-call]
                pages = [page.get_text().strip() for page in document]
        except Exception as exc:
            raise PdfExtractionError(f"PyMuPDF could not read PDF: {exc}") from exc
        return "\n\n".join(p for p in pages if p)
