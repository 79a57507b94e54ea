from intake.pdf.base import BasePdfExtractor
from intake.pdf.pdfplumber_adapter import PdfPlumberExtractor
from intake.pdf.pymupdf_adapter import PyMuPdfExtractor


class PdfExtractorFactory:
    """Resolves a PDF text extractor by engine name."""

    ENGINES: dict[str, type[BasePdfExtractor]] = {
        "pdfplumber": PdfPlumberExtractor,
        "pymupdf": PyMuPdfExtractor,
    }

    @classmethod
    def create(cls, engine: str) -> BasePdfExtractor:
        extractor_cls = cls.ENGINES.get(engine.lower())
        if extractor_cls is None:
            raise ValueError(
                f"Unknown PDF engine '{engine}'. Choose from: {list(cls.ENGINES)}"
            )
        return extractor_cls()
