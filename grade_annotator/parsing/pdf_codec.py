"""Paginated-glyph codec for PDF documents, built on PyMuPDF."""

from typing import List, Tuple

import fitz  # PyMuPDF

from grade_annotator.exceptions import CodecError
from grade_annotator.models import BoundingBox, DocumentFormat
from grade_annotator.utils.logger import logger

from .base import DocumentCodec, GeometricModel, TextRun

# Catalog entry holding the index of the first appended report page.
REPORT_START_KEY = "GradingReportStart"


def hex_to_rgb(color: str) -> Tuple[float, float, float]:
    """Convert ``RRGGBB`` to a PyMuPDF colour tuple in 0..1."""
    value = color.lstrip("#")
    return tuple(int(value[i:i + 2], 16) / 255.0 for i in (0, 2, 4))


class PdfModel(GeometricModel):
    """Geometric view over an open PyMuPDF document."""

    document_format = DocumentFormat.PDF

    def __init__(self, document: fitz.Document):
        self.document = document

    @property
    def page_count(self) -> int:
        return self.document.page_count

    def page_size(self, page_index: int) -> Tuple[float, float]:
        rect = self.document[page_index].rect
        return rect.width, rect.height

    def runs(self, page_index: int) -> List[TextRun]:
        page = self.document[page_index]
        runs = []
        for block in page.get_text("dict").get("blocks", []):
            if block.get("type") != 0:
                continue
            for line in block.get("lines", []):
                for span in line.get("spans", []):
                    text = span.get("text", "")
                    if not text:
                        continue
                    x0, y0, x1, y1 = span["bbox"]
                    runs.append(TextRun(text, x0, y0, x1 - x0, y1 - y0))
        return runs

    def draw_image(self, page_index: int, box: BoundingBox, png: bytes) -> None:
        page = self.document[page_index]
        rect = fitz.Rect(box.x, box.y, box.x1, box.y1)
        page.insert_image(rect, stream=png, keep_proportion=True, overlay=True)

    def draw_text(self, page_index: int, box: BoundingBox, lines: List[str],
                  font_size: float, color: str) -> None:
        page = self.document[page_index]
        rgb = hex_to_rgb(color)
        for i, line in enumerate(lines):
            point = fitz.Point(box.x, box.y + font_size * (i + 1))
            page.insert_text(point, line, fontsize=font_size, fontname="helv", color=rgb)

    def _report_start(self):
        kind, value = self.document.xref_get_key(self.document.pdf_catalog(), REPORT_START_KEY)
        if kind != "int":
            return None
        start = int(value)
        return start if 0 < start < self.document.page_count else None

    @property
    def content_page_count(self) -> int:
        start = self._report_start()
        return self.page_count if start is None else start

    def append_pages(self, pdf_bytes: bytes) -> None:
        start = self._report_start()
        if start is not None:
            self.document.delete_pages(from_page=start, to_page=self.document.page_count - 1)
            logger.debug(f"Removed previous grading report from page {start + 1}")
        start = self.document.page_count

        source = fitz.open(stream=pdf_bytes, filetype="pdf")
        try:
            self.document.insert_pdf(source)
        finally:
            source.close()
        self.document.xref_set_key(self.document.pdf_catalog(), REPORT_START_KEY, str(start))


class PdfCodec(DocumentCodec):
    """Codec for PDF files."""

    document_format = DocumentFormat.PDF

    def parse(self, data: bytes) -> PdfModel:
        try:
            document = fitz.open(stream=data, filetype="pdf")
        except Exception as e:
            logger.error(f"PDF Error: failed to open document: {str(e)}")
            raise CodecError(
                f"Failed to parse PDF: {e}",
                document_format=self.document_format.value,
                operation="parse",
                original_error=e,
            )
        if document.page_count == 0:
            document.close()
            raise CodecError(
                "PDF document has no pages",
                document_format=self.document_format.value,
                operation="parse",
            )
        return PdfModel(document)

    def serialize(self, model: PdfModel) -> bytes:
        try:
            return model.document.tobytes(garbage=3, deflate=True)
        except Exception as e:
            raise CodecError(
                f"Failed to serialize PDF: {e}",
                document_format=self.document_format.value,
                operation="serialize",
                original_error=e,
            )
        finally:
            model.document.close()

    def close(self, model: PdfModel) -> None:
        if not model.document.is_closed:
            model.document.close()

    def extract_text(self, data: bytes) -> str:
        model = self.parse(data)
        try:
            pages = [page.get_text() for page in model.document]
        finally:
            self.close(model)
        text = "\n\n".join(p for p in pages if p.strip())
        logger.debug(f"Extracted {len(text)} characters from PDF")
        return text
