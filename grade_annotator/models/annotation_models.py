"""
Annotation data models.

Placeholder matches, geometric regions and the content injected into them,
together with the grading input types supplied by callers.
"""

import base64
import binascii
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class DocumentFormat(Enum):
    """Supported document container families."""
    DOCX = "docx"
    XLSX = "xlsx"
    PDF = "pdf"

    @property
    def mime_type(self) -> str:
        return _MIME_TYPES[self]

    @property
    def extension(self) -> str:
        return self.value

    @property
    def is_geometric(self) -> bool:
        return self is DocumentFormat.PDF

    @classmethod
    def from_hint(cls, hint: Optional[str]) -> Optional["DocumentFormat"]:
        """Resolve a MIME type, extension or filename to a format.

        Returns None when the hint does not name a supported format.
        """
        if not hint:
            return None
        value = hint.strip().lower()
        for fmt, mime in _MIME_TYPES.items():
            if value == mime:
                return fmt
        suffix = value.rsplit(".", 1)[-1]
        for fmt in cls:
            if suffix == fmt.value:
                return fmt
        return None


_MIME_TYPES = {
    DocumentFormat.DOCX: "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    DocumentFormat.XLSX: "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    DocumentFormat.PDF: "application/pdf",
}


class Category(Enum):
    """Annotation category a placeholder belongs to."""
    SCORE = "score"
    COMMENT = "comment"
    SIGNATURE = "signature"


class Orientation(Enum):
    """Reading orientation of a located label."""
    HORIZONTAL = "horizontal"
    VERTICAL = "vertical"


class PlacementStrategy(Enum):
    """How the planner positioned content relative to its label."""
    BESIDE = "beside"
    STACKED = "stacked"
    OVERFLOW = "overflow"


@dataclass(frozen=True)
class BoundingBox:
    """Axis-aligned box in page points, origin top-left."""
    x: float
    y: float
    width: float
    height: float

    @property
    def x1(self) -> float:
        return self.x + self.width

    @property
    def y1(self) -> float:
        return self.y + self.height

    def intersects(self, other: "BoundingBox") -> bool:
        """Inclusive intersection test; touching edges count as overlap."""
        return not (
            other.x > self.x1
            or other.x1 < self.x
            or other.y > self.y1
            or other.y1 < self.y
        )

    def moved(self, x: Optional[float] = None, y: Optional[float] = None) -> "BoundingBox":
        return BoundingBox(
            self.x if x is None else x,
            self.y if y is None else y,
            self.width,
            self.height,
        )

    @classmethod
    def union(cls, boxes: List["BoundingBox"]) -> "BoundingBox":
        min_x = min(b.x for b in boxes)
        min_y = min(b.y for b in boxes)
        max_x = max(b.x1 for b in boxes)
        max_y = max(b.y1 for b in boxes)
        return cls(min_x, min_y, max_x - min_x, max_y - min_y)


@dataclass(frozen=True)
class PlaceholderMatch:
    """A resolved placeholder.

    For structural documents ``node_index`` is the arena index of the target
    node and ``label_index`` that of the node carrying the keyword. For
    geometric documents ``page_index`` and ``span`` locate the keyword in the
    page's character stream.
    """
    category: Category
    keyword: str
    node_index: Optional[int] = None
    label_index: Optional[int] = None
    page_index: Optional[int] = None
    span: Optional[tuple] = None

    @property
    def priority(self) -> int:
        return len(self.keyword)


@dataclass(frozen=True)
class LayoutRegion:
    """A geometric placeholder: the label's page, box and orientation."""
    match: PlaceholderMatch
    page_index: int
    box: BoundingBox
    orientation: Orientation

    @property
    def category(self) -> Category:
        return self.match.category


@dataclass(frozen=True)
class PlannedDraw:
    """Concrete draw box chosen for a region."""
    region: LayoutRegion
    box: BoundingBox
    strategy: PlacementStrategy


@dataclass(frozen=True)
class AnnotationContent:
    """Content injected for one category."""
    category: Category
    text: str
    color: str
    font_name: Optional[str] = None
    artistic: bool = False
    image: Optional[bytes] = None


@dataclass
class FeedbackItem:
    """Inline feedback produced by the grader."""
    original_text: str
    comment: str
    sentiment: str = "neutral"
    score_impact: float = 0
    suggestion: Optional[str] = None


@dataclass
class GradingResult:
    """Grading outcome for one document."""
    score: float
    teacher_comment: str = ""
    summary: str = ""
    letter_grade: str = ""
    feedback: List[FeedbackItem] = field(default_factory=list)

    @property
    def display_score(self) -> str:
        value = float(self.score)
        if value.is_integer():
            return str(int(value))
        return f"{value:g}"

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GradingResult":
        feedback = [FeedbackItem(**item) for item in data.get("feedback", [])]
        return cls(
            score=float(data.get("score", 0)),
            teacher_comment=data.get("teacher_comment", ""),
            summary=data.get("summary", ""),
            letter_grade=data.get("letter_grade", ""),
            feedback=feedback,
        )


_DATA_URL_RE = re.compile(r"^data:image/[\w.+-]+;base64,", re.IGNORECASE)


@dataclass
class InstructorSettings:
    """Instructor signature settings."""
    enabled: bool = False
    mode: str = "text"
    name: str = ""
    font_style: str = "standard"
    image_data: Optional[Any] = None

    @property
    def artistic(self) -> bool:
        return self.font_style == "artistic"

    def image_bytes(self) -> Optional[bytes]:
        """Signature image as raw bytes, decoding a base64 data URL if needed."""
        if self.mode != "image" or not self.image_data:
            return None
        if isinstance(self.image_data, (bytes, bytearray)):
            return bytes(self.image_data)
        payload = _DATA_URL_RE.sub("", str(self.image_data).strip())
        try:
            return base64.b64decode(payload, validate=True)
        except (binascii.Error, ValueError):
            return None
