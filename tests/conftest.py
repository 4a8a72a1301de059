"""
Test configuration and fixtures for the Grade Annotator test suite.
"""

import os

os.environ.setdefault("LOG_TO_FILE", "false")

from io import BytesIO
from typing import List, Optional, Sequence, Tuple

import fitz
import pytest
from docx import Document
from openpyxl import Workbook

from grade_annotator.config import AnnotationConfig
from grade_annotator.models import BoundingBox, GradingResult, InstructorSettings
from grade_annotator.parsing import GeometricModel, TextRun
from grade_annotator.services import AnnotationService

PAGE_WIDTH = 612
PAGE_HEIGHT = 792


class FakeGeometricModel(GeometricModel):
    """In-memory page model that records what gets drawn."""

    def __init__(self, pages: Sequence[Sequence[TextRun]],
                 size: Tuple[float, float] = (PAGE_WIDTH, PAGE_HEIGHT)):
        self.pages = [list(runs) for runs in pages]
        self.size = size
        self.images: List[Tuple[int, BoundingBox, bytes]] = []
        self.texts: List[Tuple[int, BoundingBox, List[str]]] = []
        self.appended: List[bytes] = []

    @property
    def page_count(self) -> int:
        return len(self.pages)

    def page_size(self, page_index: int) -> Tuple[float, float]:
        return self.size

    def runs(self, page_index: int) -> List[TextRun]:
        return self.pages[page_index]

    def draw_image(self, page_index: int, box: BoundingBox, png: bytes) -> None:
        self.images.append((page_index, box, png))

    def draw_text(self, page_index: int, box: BoundingBox, lines: List[str],
                  font_size: float, color: str) -> None:
        self.texts.append((page_index, box, list(lines)))

    def append_pages(self, pdf_bytes: bytes) -> None:
        self.appended.append(pdf_bytes)


def make_docx(table_rows: Optional[Sequence[Sequence[str]]] = None,
              paragraphs: Sequence[str] = ()) -> bytes:
    """Build a DOCX with an optional table followed by paragraphs."""
    document = Document()
    if table_rows:
        table = document.add_table(rows=len(table_rows), cols=len(table_rows[0]))
        for r, row in enumerate(table_rows):
            for c, value in enumerate(row):
                table.cell(r, c).text = value
    for text in paragraphs:
        document.add_paragraph(text)
    buffer = BytesIO()
    document.save(buffer)
    return buffer.getvalue()


def make_xlsx(cells: Sequence[Tuple[str, str]]) -> bytes:
    """Build a one-sheet workbook from (coordinate, value) pairs."""
    workbook = Workbook()
    ws = workbook.active
    ws.title = "Grades"
    for coordinate, value in cells:
        ws[coordinate] = value
    buffer = BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()


def make_pdf(labels: Sequence[Tuple[str, float, float]] = (), pages: int = 1,
             fontsize: float = 12) -> bytes:
    """Build a PDF; each label is (text, x, baseline_y) on the first page."""
    document = fitz.open()
    for _ in range(pages):
        document.new_page(width=PAGE_WIDTH, height=PAGE_HEIGHT)
    for text, x, y in labels:
        document[0].insert_text((x, y), text, fontsize=fontsize, fontname="helv")
    data = document.tobytes()
    document.close()
    return data


@pytest.fixture
def annotation_config():
    """Default configuration, independent of files and environment."""
    return AnnotationConfig()


@pytest.fixture
def service(annotation_config):
    """An AnnotationService with default collaborators."""
    return AnnotationService(config=annotation_config)


@pytest.fixture
def grading_result():
    """A typical grading result."""
    return GradingResult(
        score=87,
        teacher_comment="Excellent analysis, but cite more sources.",
        summary="A well structured essay.",
        letter_grade="B+",
    )


@pytest.fixture
def instructor():
    """Enabled text signature."""
    return InstructorSettings(enabled=True, mode="text", name="Dr. Li", font_style="artistic")


@pytest.fixture
def png_bytes():
    """A small opaque PNG image."""
    from PIL import Image

    image = Image.new("RGB", (200, 80), (0, 0, 128))
    buffer = BytesIO()
    image.save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture
def score_table_docx():
    """The classic two-row grading table."""
    return make_docx([["评分", ""], ["教师评语", ""]])


@pytest.fixture
def docx_factory():
    """Factory building DOCX bytes from table rows and paragraphs."""
    return make_docx


@pytest.fixture
def xlsx_factory():
    """Factory building XLSX bytes from (coordinate, value) pairs."""
    return make_xlsx


@pytest.fixture
def pdf_factory():
    """Factory building PDF bytes with labels on the first page."""
    return make_pdf


@pytest.fixture
def geometric_model_factory():
    """Factory for in-memory geometric models."""
    return FakeGeometricModel
