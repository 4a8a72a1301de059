"""Grid-paragraph codec for Word documents, built on python-docx."""

from io import BytesIO
from typing import Any, Dict, List, Optional, Tuple

from docx import Document
from docx.enum.text import WD_BREAK
from docx.oxml import OxmlElement
from docx.oxml.ns import qn
from docx.shared import Pt

from grade_annotator.exceptions import CodecError
from grade_annotator.models import DocumentFormat
from grade_annotator.utils.logger import logger

from .base import DocumentCodec, NativeRun, NodeKind, StructuralModel, StructuralNode

DEFAULT_IMAGE_WIDTH_PT = 100
# Hidden bookmark spanning an appended grading report.
REPORT_BOOKMARK = "_GradingReport"


def _paragraph_text(p) -> str:
    parts = []
    for child in p.iter(qn("w:t"), qn("w:br"), qn("w:tab")):
        if child.tag == qn("w:t"):
            parts.append(child.text or "")
        elif child.tag == qn("w:br"):
            parts.append("\n")
        else:
            parts.append("\t")
    return "".join(parts)


def _cell_text(tc) -> str:
    return "\n".join(_paragraph_text(p) for p in tc.iterchildren(qn("w:p")))


def _report_elements(body) -> List[Any]:
    """Body children of a grading report appended by an earlier run."""
    start = next((b for b in body.iter(qn("w:bookmarkStart"))
                  if b.get(qn("w:name")) == REPORT_BOOKMARK), None)
    if start is None or start.getparent().getparent().tag != qn("w:body"):
        return []
    bookmark_id = start.get(qn("w:id"))
    elements = []
    element = start.getparent()
    while element is not None and element.tag != qn("w:sectPr"):
        elements.append(element)
        if any(end.get(qn("w:id")) == bookmark_id for end in element.iter(qn("w:bookmarkEnd"))):
            break
        element = element.getnext()
    return elements


def _next_bookmark_id(body) -> str:
    ids = [b.get(qn("w:id"), "") for b in body.iter(qn("w:bookmarkStart"))]
    return str(max((int(i) for i in ids if i.isdigit()), default=-1) + 1)


class DocxModel(StructuralModel):
    """Arena view over a python-docx document.

    Table cells come first in document order (nested tables included),
    followed by body-level paragraphs. A grading report appended by an
    earlier run is left out.
    """

    document_format = DocumentFormat.DOCX

    def __init__(self, document):
        super().__init__()
        self.document = document
        self._elements: List[Any] = []
        self._index_of: Dict[Any, int] = {}
        body = document.element.body

        for tc in body.iter(qn("w:tc")):
            parent_tc = next(tc.iterancestors(qn("w:tc")), None)
            parent = self._index_of.get(parent_tc) if parent_tc is not None else None
            self._register(tc, NodeKind.CELL, _cell_text(tc), parent)

        report = set(_report_elements(body))
        for p in body.iterchildren(qn("w:p")):
            if p not in report:
                self._register(p, NodeKind.PARAGRAPH, _paragraph_text(p), None)

    def _register(self, element, kind: NodeKind, text: str, parent: Optional[int]):
        node = self._add_node(kind, text, parent=parent)
        self._elements.append(element)
        self._index_of[element] = node.index

    def element(self, node: StructuralNode):
        return self._elements[node.index]

    def next_sibling(self, node: StructuralNode) -> Optional[StructuralNode]:
        sibling = self.element(node).getnext()
        if node.kind is NodeKind.CELL:
            while sibling is not None and sibling.tag != qn("w:tc"):
                sibling = sibling.getnext()
        elif sibling is not None and sibling.tag != qn("w:p"):
            return None
        if sibling is None or sibling not in self._index_of:
            return None
        return self.nodes[self._index_of[sibling]]

    def materialize(self, node: StructuralNode) -> StructuralNode:
        return node

    def detach_formatting(self, node: StructuralNode) -> Tuple[Any, Any]:
        element = self.element(node)
        if node.kind is NodeKind.CELL:
            tc_pr = element.find(qn("w:tcPr"))
            first_p = element.find(qn("w:p"))
            p_pr = first_p.find(qn("w:pPr")) if first_p is not None else None
        else:
            tc_pr = None
            p_pr = element.find(qn("w:pPr"))
        if tc_pr is not None:
            element.remove(tc_pr)
        if p_pr is not None:
            p_pr.getparent().remove(p_pr)
        return tc_pr, p_pr

    def clear_children(self, node: StructuralNode) -> None:
        element = self.element(node)
        for child in list(element):
            element.remove(child)

    def attach_formatting(self, node: StructuralNode, descriptor: Tuple[Any, Any]) -> None:
        tc_pr, p_pr = descriptor
        element = self.element(node)
        if node.kind is NodeKind.CELL:
            if tc_pr is not None:
                element.append(tc_pr)
            paragraph = OxmlElement("w:p")
            element.append(paragraph)
        else:
            paragraph = element
        if p_pr is not None:
            paragraph.insert(0, p_pr)

    def _target_paragraph(self, node: StructuralNode):
        element = self.element(node)
        if node.kind is NodeKind.PARAGRAPH:
            return element
        paragraphs = element.findall(qn("w:p"))
        if paragraphs:
            return paragraphs[-1]
        paragraph = OxmlElement("w:p")
        element.append(paragraph)
        return paragraph

    def append_run(self, node: StructuralNode, run: NativeRun) -> None:
        paragraph = self._target_paragraph(node)
        r = OxmlElement("w:r")
        r_pr = OxmlElement("w:rPr")
        if run.font_name:
            fonts = OxmlElement("w:rFonts")
            for attr in ("w:ascii", "w:hAnsi", "w:eastAsia"):
                fonts.set(qn(attr), run.font_name)
            r_pr.append(fonts)
        color = OxmlElement("w:color")
        color.set(qn("w:val"), run.color)
        r_pr.append(color)
        r.append(r_pr)

        if run.image:
            width = Pt(run.image_width_pt or DEFAULT_IMAGE_WIDTH_PT)
            inline = self.document.part.new_pic_inline(BytesIO(run.image), width=width)
            r.add_drawing(inline)
        else:
            for i, line in enumerate(run.text.split("\n")):
                if i:
                    r.append(OxmlElement("w:br"))
                t = OxmlElement("w:t")
                t.set(qn("xml:space"), "preserve")
                t.text = line
                r.append(t)

        paragraph.append(r)
        node.text = run.text

    def run_count(self, node: StructuralNode) -> int:
        return len(list(self.element(node).iter(qn("w:r"))))

    def append_summary(self, title: str, lines: List[str],
                       image: Optional[bytes] = None) -> None:
        document = self.document
        body = document.element.body
        previous = _report_elements(body)
        for element in previous:
            body.remove(element)
        if previous:
            logger.debug("Replacing grading report from an earlier run")

        first = document.add_paragraph()
        first.add_run().add_break(WD_BREAK.PAGE)
        last = document.add_paragraph()
        heading = last.add_run(title)
        heading.bold = True
        heading.font.size = Pt(16)
        for line in lines:
            last = document.add_paragraph(line)
        if image:
            last = document.add_paragraph()
            last.add_run().add_picture(BytesIO(image), width=Pt(DEFAULT_IMAGE_WIDTH_PT))

        bookmark_id = _next_bookmark_id(body)
        start = OxmlElement("w:bookmarkStart")
        start.set(qn("w:id"), bookmark_id)
        start.set(qn("w:name"), REPORT_BOOKMARK)
        first._p.append(start)
        end = OxmlElement("w:bookmarkEnd")
        end.set(qn("w:id"), bookmark_id)
        last._p.append(end)


class DocxCodec(DocumentCodec):
    """Codec for .docx files."""

    document_format = DocumentFormat.DOCX

    def parse(self, data: bytes) -> DocxModel:
        try:
            document = Document(BytesIO(data))
        except Exception as e:
            logger.error(f"DOCX Error: failed to parse document: {str(e)}")
            raise CodecError(
                f"Failed to parse DOCX: {e}",
                document_format=self.document_format.value,
                operation="parse",
                original_error=e,
            )
        return DocxModel(document)

    def serialize(self, model: DocxModel) -> bytes:
        buffer = BytesIO()
        try:
            model.document.save(buffer)
        except Exception as e:
            raise CodecError(
                f"Failed to serialize DOCX: {e}",
                document_format=self.document_format.value,
                operation="serialize",
                original_error=e,
            )
        return buffer.getvalue()

    def extract_text(self, data: bytes) -> str:
        model = self.parse(data)
        lines = [n.text for n in model.paragraphs()]
        for table in model.document.tables:
            for row in table.rows:
                lines.append("\t".join(cell.text for cell in row.cells))
        text = "\n".join(lines)
        logger.debug(f"Extracted {len(text)} characters from DOCX")
        return text
