"""Spreadsheet-grid codec for Excel workbooks, built on openpyxl."""

from copy import copy
from io import BytesIO
from typing import Any, Dict, List, Optional, Tuple

from openpyxl import load_workbook
from openpyxl.cell.cell import MergedCell
from openpyxl.styles import Alignment, Font
from openpyxl.utils import get_column_letter

from grade_annotator.exceptions import CodecError
from grade_annotator.models import DocumentFormat
from grade_annotator.utils.logger import logger

from .base import DocumentCodec, NativeRun, NodeKind, StructuralModel, StructuralNode

SUMMARY_SHEET_TITLE = "Grading Report"


class XlsxModel(StructuralModel):
    """Arena view over an openpyxl workbook.

    Every non-empty cell becomes a node addressed as ``Sheet!B3``. Cells to
    the right of a label that do not exist yet are added lazily as virtual
    nodes by :meth:`next_sibling`. The grading report sheet is left out.
    """

    document_format = DocumentFormat.XLSX

    def __init__(self, workbook):
        super().__init__()
        self.workbook = workbook
        self._coords: List[Tuple[str, int, int]] = []
        self._index_of: Dict[Tuple[str, int, int], int] = {}

        for ws in workbook.worksheets:
            if ws.title == SUMMARY_SHEET_TITLE:
                continue
            for row in ws.iter_rows():
                for cell in row:
                    if isinstance(cell, MergedCell) or cell.value is None:
                        continue
                    self._register(ws.title, cell.row, cell.column, str(cell.value))

    def _register(self, sheet: str, row: int, column: int, text: str,
                  exists: bool = True) -> StructuralNode:
        address = f"{sheet}!{get_column_letter(column)}{row}"
        node = self._add_node(NodeKind.CELL, text, address=address, exists=exists)
        key = (sheet, row, column)
        self._coords.append(key)
        self._index_of[key] = node.index
        return node

    def cell(self, node: StructuralNode):
        sheet, row, column = self._coords[node.index]
        return self.workbook[sheet].cell(row=row, column=column)

    def next_sibling(self, node: StructuralNode) -> Optional[StructuralNode]:
        sheet, row, column = self._coords[node.index]
        ws = self.workbook[sheet]
        limit = max(ws.max_column, column) + 1
        target = column + 1
        # Skip over the covered part of a merged label.
        while target <= limit and f"{get_column_letter(target)}{row}" in ws.merged_cells:
            target += 1
        key = (sheet, row, target)
        if key in self._index_of:
            return self.nodes[self._index_of[key]]
        return self._register(sheet, row, target, "", exists=False)

    def materialize(self, node: StructuralNode) -> StructuralNode:
        if not node.exists:
            cell = self.cell(node)
            cell.value = ""
            cell.data_type = "s"
            node.exists = True
        return node

    def detach_formatting(self, node: StructuralNode) -> Tuple[Font, Alignment]:
        cell = self.cell(node)
        return copy(cell.font), copy(cell.alignment)

    def clear_children(self, node: StructuralNode) -> None:
        self.cell(node).value = None

    def attach_formatting(self, node: StructuralNode, descriptor: Tuple[Font, Alignment]) -> None:
        cell = self.cell(node)
        cell.font, cell.alignment = descriptor

    def append_run(self, node: StructuralNode, run: NativeRun) -> None:
        cell = self.cell(node)
        existing = cell.value or ""
        cell.value = f"{existing}{run.text}"
        cell.data_type = "s"
        font = copy(cell.font)
        font.color = f"FF{run.color}"
        if run.font_name:
            font.name = run.font_name
        cell.font = font
        if "\n" in cell.value:
            alignment = copy(cell.alignment)
            alignment.vertical = alignment.vertical or "top"
            alignment.wrap_text = True
            cell.alignment = alignment
        node.text = cell.value

    def run_count(self, node: StructuralNode) -> int:
        return 0 if self.cell(node).value in (None, "") else 1

    def append_summary(self, title: str, lines: List[str],
                       image: Optional[bytes] = None) -> None:
        if SUMMARY_SHEET_TITLE in self.workbook.sheetnames:
            del self.workbook[SUMMARY_SHEET_TITLE]
        ws = self.workbook.create_sheet(SUMMARY_SHEET_TITLE)
        ws["A1"] = title
        ws["A1"].font = Font(bold=True, size=14)
        for offset, line in enumerate(lines, start=3):
            label, sep, value = line.partition(": ")
            if sep:
                ws.cell(row=offset, column=1, value=label)
                ws.cell(row=offset, column=2, value=value)
            else:
                ws.cell(row=offset, column=1, value=line)
        ws.column_dimensions["A"].width = 18
        ws.column_dimensions["B"].width = 80


class XlsxCodec(DocumentCodec):
    """Codec for .xlsx workbooks."""

    document_format = DocumentFormat.XLSX

    def parse(self, data: bytes) -> XlsxModel:
        try:
            workbook = load_workbook(BytesIO(data))
        except Exception as e:
            logger.error(f"XLSX Error: failed to parse workbook: {str(e)}")
            raise CodecError(
                f"Failed to parse XLSX: {e}",
                document_format=self.document_format.value,
                operation="parse",
                original_error=e,
            )
        return XlsxModel(workbook)

    def serialize(self, model: XlsxModel) -> bytes:
        buffer = BytesIO()
        try:
            model.workbook.save(buffer)
        except Exception as e:
            raise CodecError(
                f"Failed to serialize XLSX: {e}",
                document_format=self.document_format.value,
                operation="serialize",
                original_error=e,
            )
        return buffer.getvalue()

    def extract_text(self, data: bytes) -> str:
        model = self.parse(data)
        sections: List[str] = []
        for ws in model.workbook.worksheets:
            rows = []
            for values in ws.iter_rows(values_only=True):
                cells: List[Any] = ["" if v is None else str(v) for v in values]
                if any(cells):
                    rows.append("\t".join(cells))
            sections.append(f"Sheet: {ws.title}\n" + "\n".join(rows))
        text = "\n\n".join(sections)
        logger.debug(f"Extracted {len(text)} characters from XLSX")
        return text
