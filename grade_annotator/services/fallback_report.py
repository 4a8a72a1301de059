"""
Fallback grading report.

Used when no placeholder could be located or when annotation fails. The
report is either appended to the original document (new pages, section or
worksheet) or produced as a standalone PDF with ReportLab.
"""

from io import BytesIO
from typing import List, Optional
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.utils import ImageReader
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfbase.cidfonts import UnicodeCIDFont
from reportlab.platypus import Image, Paragraph, SimpleDocTemplate, Spacer

from grade_annotator.config import FallbackConfig
from grade_annotator.models import GradingResult, InstructorSettings
from grade_annotator.parsing import GeometricModel, StructuralModel
from grade_annotator.utils.logger import logger

CJK_FONT = "STSong-Light"
MAX_SIGNATURE_WIDTH = 150

_cjk_registered = False


def _cjk_font() -> str:
    global _cjk_registered
    if not _cjk_registered:
        pdfmetrics.registerFont(UnicodeCIDFont(CJK_FONT))
        _cjk_registered = True
    return CJK_FONT


def _needs_cjk(text: str) -> bool:
    return any(ord(ch) > 0xFF for ch in text)


class FallbackReportGenerator:
    """Builds the grading summary used when in-place annotation is not possible."""

    def __init__(self, config: Optional[FallbackConfig] = None):
        self.config = config or FallbackConfig()

    def truncate(self, text: str) -> str:
        limit = self.config.comment_limit
        if len(text) <= limit:
            return text
        return text[:limit].rstrip() + "..."

    def signer(self, instructor: Optional[InstructorSettings]) -> str:
        if instructor and instructor.enabled and instructor.name:
            return instructor.name
        return self.config.default_signer

    def summary_lines(self, filename: str, result: GradingResult, score_text: str,
                      instructor: Optional[InstructorSettings] = None) -> List[str]:
        """Plain ``Label: value`` lines shared by every report flavour."""
        score = score_text
        if result.letter_grade:
            score = f"{score_text} ({result.letter_grade})"
        lines = [f"File: {filename}", f"Score: {score}"]
        if result.summary:
            lines.append(f"Summary: {self.truncate(result.summary)}")
        comment = result.teacher_comment or "No comments generated."
        lines.append(f"Comments: {self.truncate(comment)}")
        lines.append(f"Instructor: {self.signer(instructor)}")
        return lines

    def generate(self, filename: str, result: GradingResult, score_text: str,
                 instructor: Optional[InstructorSettings] = None) -> bytes:
        """Build a standalone PDF report."""
        buffer = BytesIO()
        doc = SimpleDocTemplate(buffer, pagesize=A4,
                                rightMargin=72, leftMargin=72,
                                topMargin=72, bottomMargin=36,
                                title=self.config.title)
        styles = getSampleStyleSheet()
        title_style = ParagraphStyle(
            'ReportTitle',
            parent=styles['Heading1'],
            fontSize=22,
            spaceAfter=24,
            alignment=TA_CENTER,
            textColor=colors.HexColor('#2c3e50')
        )
        body_style = ParagraphStyle('ReportBody', parent=styles['Normal'], fontSize=11, leading=16)
        cjk_style = ParagraphStyle('ReportBodyCJK', parent=body_style, fontName=_cjk_font(),
                                   wordWrap='CJK')

        story = [Paragraph(escape(self.config.title), title_style)]
        for line in self.summary_lines(filename, result, score_text, instructor):
            label, _, value = line.partition(": ")
            style = cjk_style if _needs_cjk(value) else body_style
            value_html = escape(value).replace("\n", "<br/>")
            story.append(Paragraph(f"<b>{escape(label)}:</b> {value_html}", style))
            story.append(Spacer(1, 10))

        signature = instructor.image_bytes() if instructor and instructor.enabled else None
        if signature:
            try:
                width, height = ImageReader(BytesIO(signature)).getSize()
                scale = min(1.0, MAX_SIGNATURE_WIDTH / float(width))
                story.append(Image(BytesIO(signature), width=width * scale, height=height * scale))
            except (OSError, ValueError, ZeroDivisionError) as e:
                logger.warning(f"Signature image skipped in fallback report: {e}")

        doc.build(story)
        logger.info(f"Generated fallback report for {filename}")
        return buffer.getvalue()

    def append_to(self, model, filename: str, result: GradingResult, score_text: str,
                  instructor: Optional[InstructorSettings] = None) -> None:
        """Append the report to a parsed document."""
        if isinstance(model, GeometricModel):
            model.append_pages(self.generate(filename, result, score_text, instructor))
        elif isinstance(model, StructuralModel):
            image = instructor.image_bytes() if instructor and instructor.enabled else None
            model.append_summary(
                self.config.title,
                self.summary_lines(filename, result, score_text, instructor),
                image=image,
            )
        else:
            raise TypeError(f"Unsupported model type: {type(model).__name__}")
        logger.info(f"Appended grading report to {filename}")
