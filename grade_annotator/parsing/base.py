"""
Document model capabilities shared by the codecs.

Codecs turn bytes into one of two model shapes. Structural models (DOCX,
XLSX) expose an arena of cell and paragraph nodes addressed by index;
geometric models (PDF) expose per-page text runs with absolute positions.
The annotation services only talk to these interfaces.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, List, Optional, Tuple

from grade_annotator.models import BoundingBox, DocumentFormat


class NodeKind(Enum):
    """Kind of structural node."""
    CELL = "cell"
    PARAGRAPH = "paragraph"


@dataclass
class StructuralNode:
    """One cell or paragraph in a structural model's arena.

    ``parent`` is the arena index of the containing node (or None) and is
    only used for lookup. ``exists`` is False for grid cells synthesized as
    sibling targets that are not yet present in the document.
    """
    index: int
    kind: NodeKind
    text: str
    parent: Optional[int] = None
    address: Optional[str] = None
    exists: bool = True


@dataclass(frozen=True)
class NativeRun:
    """A text run written natively into a structural document."""
    text: str
    color: str
    font_name: Optional[str] = None
    image: Optional[bytes] = None
    image_width_pt: Optional[float] = None


@dataclass(frozen=True)
class TextRun:
    """A positioned run of text on a fixed page, in points."""
    text: str
    x: float
    y: float
    width: float
    height: float

    @property
    def box(self) -> BoundingBox:
        return BoundingBox(self.x, self.y, self.width, self.height)


class StructuralModel(ABC):
    """Capability interface for grid and paragraph shaped documents."""

    document_format: DocumentFormat

    def __init__(self):
        self.nodes: List[StructuralNode] = []

    def _add_node(self, kind: NodeKind, text: str, parent: Optional[int] = None,
                  address: Optional[str] = None, exists: bool = True) -> StructuralNode:
        node = StructuralNode(len(self.nodes), kind, text, parent, address, exists)
        self.nodes.append(node)
        return node

    def node(self, index: int) -> StructuralNode:
        return self.nodes[index]

    def cells(self) -> List[StructuralNode]:
        return [n for n in self.nodes if n.kind is NodeKind.CELL and n.exists]

    def paragraphs(self) -> List[StructuralNode]:
        return [n for n in self.nodes if n.kind is NodeKind.PARAGRAPH]

    @abstractmethod
    def next_sibling(self, node: StructuralNode) -> Optional[StructuralNode]:
        """Return the node that follows ``node`` at the same level, if any."""

    @abstractmethod
    def materialize(self, node: StructuralNode) -> StructuralNode:
        """Make sure a synthesized node exists in the underlying document."""

    @abstractmethod
    def detach_formatting(self, node: StructuralNode) -> Any:
        """Remove and return the node's formatting descriptor."""

    @abstractmethod
    def clear_children(self, node: StructuralNode) -> None:
        """Remove every child of the node."""

    @abstractmethod
    def attach_formatting(self, node: StructuralNode, descriptor: Any) -> None:
        """Restore a descriptor returned by :meth:`detach_formatting`."""

    @abstractmethod
    def append_run(self, node: StructuralNode, run: NativeRun) -> None:
        """Append a styled run to the node."""

    @abstractmethod
    def run_count(self, node: StructuralNode) -> int:
        """Number of text runs currently inside the node."""

    @abstractmethod
    def append_summary(self, title: str, lines: List[str],
                       image: Optional[bytes] = None) -> None:
        """Append a grading summary section to the document."""


class GeometricModel(ABC):
    """Capability interface for paginated, absolutely positioned documents."""

    document_format: DocumentFormat = DocumentFormat.PDF

    @property
    @abstractmethod
    def page_count(self) -> int:
        """Number of pages."""

    @property
    def content_page_count(self) -> int:
        """Pages before any grading report appended by an earlier run."""
        return self.page_count

    @abstractmethod
    def page_size(self, page_index: int) -> Tuple[float, float]:
        """Page (width, height) in points."""

    @abstractmethod
    def runs(self, page_index: int) -> List[TextRun]:
        """Text runs of a page in reading order."""

    @abstractmethod
    def draw_image(self, page_index: int, box: BoundingBox, png: bytes) -> None:
        """Draw a PNG image into the box."""

    @abstractmethod
    def draw_text(self, page_index: int, box: BoundingBox, lines: List[str],
                  font_size: float, color: str) -> None:
        """Draw plain text lines starting at the top of the box."""

    @abstractmethod
    def append_pages(self, pdf_bytes: bytes) -> None:
        """Append a grading report, replacing one appended earlier."""


class DocumentCodec(ABC):
    """Parses and serializes one document format family."""

    document_format: DocumentFormat

    @abstractmethod
    def parse(self, data: bytes):
        """Parse bytes into a model. Raises CodecError on malformed input."""

    @abstractmethod
    def serialize(self, model) -> bytes:
        """Serialize a model back to bytes. Raises CodecError on failure."""

    def close(self, model) -> None:
        """Release a model that will not be serialized."""

    @abstractmethod
    def extract_text(self, data: bytes) -> str:
        """Extract plain text for display or grading."""
