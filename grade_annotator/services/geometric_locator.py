"""
Placeholder location for paginated documents with absolutely positioned text.

Each page's runs are flattened into one string with a parallel list of
per-character boxes. A run's width is split evenly across its characters,
which is close enough for proportional fonts given that the boxes are only
used to anchor annotations.
"""

from typing import List, Optional, Sequence, Tuple

from grade_annotator.config import LocatorConfig
from grade_annotator.models import (
    BoundingBox,
    Category,
    LayoutRegion,
    Orientation,
    PlaceholderMatch,
)
from grade_annotator.parsing import GeometricModel, TextRun
from grade_annotator.utils.logger import logger

from .keyword_index import CATEGORY_ORDER, KeywordIndex


def build_char_map(runs: Sequence[TextRun]) -> Tuple[str, List[BoundingBox]]:
    """Concatenate run text and return it with one box per character."""
    chars: List[str] = []
    boxes: List[BoundingBox] = []
    for run in runs:
        if not run.text:
            continue
        char_width = run.width / len(run.text)
        for i, ch in enumerate(run.text):
            chars.append(ch)
            boxes.append(BoundingBox(run.x + i * char_width, run.y, char_width, run.height))
    return "".join(chars), boxes


def find_all(haystack: str, needle: str) -> List[int]:
    """Start offsets of every occurrence, overlapping ones included."""
    positions = []
    start = haystack.find(needle)
    while start != -1:
        positions.append(start)
        start = haystack.find(needle, start + 1)
    return positions


class GeometricLocator:
    """Finds label regions in a :class:`GeometricModel`."""

    def __init__(self, keyword_index: KeywordIndex, config: Optional[LocatorConfig] = None):
        self.keyword_index = keyword_index
        self.config = config or LocatorConfig()

    def orientation_of(self, box: BoundingBox) -> Orientation:
        if box.height > box.width * self.config.vertical_ratio:
            return Orientation.VERTICAL
        return Orientation.HORIZONTAL

    def locate(self, model: GeometricModel,
               categories: Sequence[Category] = CATEGORY_ORDER) -> List[LayoutRegion]:
        regions: List[LayoutRegion] = []
        for page_index in range(model.content_page_count):
            regions.extend(self.locate_page(model, page_index, categories))
        logger.debug(
            f"Geometric locator found {len(regions)} region(s) on {model.content_page_count} page(s)"
        )
        return regions

    def locate_page(self, model: GeometricModel, page_index: int,
                    categories: Sequence[Category] = CATEGORY_ORDER) -> List[LayoutRegion]:
        text, boxes = build_char_map(model.runs(page_index))
        if not text:
            return []

        accepted: List[LayoutRegion] = []
        # Entries come longest first, so the most specific label claims a spot.
        for category, keyword in self.keyword_index.entries(categories):
            for start in find_all(text, keyword):
                end = start + len(keyword)
                box = BoundingBox.union(boxes[start:end])
                if any(box.intersects(r.box) for r in accepted):
                    continue
                match = PlaceholderMatch(
                    category=category,
                    keyword=keyword,
                    page_index=page_index,
                    span=(start, end),
                )
                accepted.append(LayoutRegion(match, page_index, box, self.orientation_of(box)))

        accepted.sort(key=lambda r: r.match.span[0])
        return accepted
