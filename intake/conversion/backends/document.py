"""Real conversions between plain text, PDF and HTML."""

import html
import io
import textwrap

from reportlab.lib.pagesizes import A4
from reportlab.pdfgen import canvas

from intake.conversion.backends.base import ConversionBackend
from intake.conversion.exceptions import ConversionError
from intake.conversion.models import ConversionJob, StageSpec
from intake.files.exceptions import FileReadError
from intake.files.models import FileSubmission
from intake.logging.logger import Log
from intake.pdf.base import BasePdfExtractor
from intake.pdf.exceptions import PdfExtractionError

PAGE_MARGIN = 72
LINE_HEIGHT = 14
FONT_SIZE = 11
WRAP_WIDTH = 90


class DocumentConversionBackend(ConversionBackend):
    """Converts txt to pdf/html and pdf to txt/html.

    Stages carry no delay; all work happens in ``render``.
    """

    name = "document"

    PAIRS: frozenset[tuple[str, str]] = frozenset(
        {("txt", "pdf"), ("txt", "html"), ("pdf", "txt"), ("pdf", "html")}
    )

    def __init__(self, pdf_extractor: BasePdfExtractor) -> None:
        self._pdf_extractor = pdf_extractor

    def supports(self, source_format: str, target_format: str) -> bool:
        return (source_format, target_format) in self.PAIRS

    def run_stage(self, job: ConversionJob, stage: StageSpec) -> None:
        Log.debug(f"Document conversion stage '{stage.name}'", job=job.job_id)

    def render(self, job: ConversionJob, submission: FileSubmission) -> bytes | None:
        try:
            raw = submission.read_all()
        except FileReadError as exc:
            raise ConversionError(f"Cannot read {submission.name}: {exc}") from exc

        if job.source_format == "pdf":
            try:
                text = self._pdf_extractor.extract(raw)
            except PdfExtractionError as exc:
                raise ConversionError(str(exc)) from exc
        else:
            text = raw.decode("utf-8", errors="replace")

        if job.target_format == "pdf":
            return text_to_pdf(text)
        if job.target_format == "html":
            return text_to_html(text, title=submission.base_name).encode("utf-8")
        return text.encode("utf-8")


def text_to_pdf(text: str) -> bytes:
    buffer = io.BytesIO()
    pdf = canvas.Canvas(buffer, pagesize=A4)
    _width, height = A4
    pdf.setFont("Helvetica", FONT_SIZE)
    y = height - PAGE_MARGIN
    for line in _wrap(text):
        if y < PAGE_MARGIN:
            pdf.showPage()
            pdf.setFont("Helvetica", FONT_SIZE)
            y = height - PAGE_MARGIN
        pdf.drawString(PAGE_MARGIN, y, line)
        y -= LINE_HEIGHT
    pdf.save()
    return buffer.getvalue()


def text_to_html(text: str, title: str = "") -> str:
    paragraphs = [p.strip() for p in text.split("\n\n") if p.strip()]
    body = "\n".join(
        f"<p>{html.escape(p).replace(chr(10), '<br>')}</p>" for p in paragraphs
    )
    return (
        "<!DOCTYPE html>\n<html>\n<head>\n<meta charset=\"utf-8\">\n"
        f"<title>{html.escape(title)}</title>\n</head>\n<body>\n{body}\n</body>\n</html>\n"
    )


def _wrap(text: str) -> list[str]:
    lines: list[str] = []
    for raw_line in text.splitlines():
        lines.extend(textwrap.wrap(raw_line, WRAP_WIDTH) or [""])
    return lines
