"""
Draw-box planning for annotations on fixed pages.

Coordinates are in points with the origin at the top-left of the page.
Planning happens in two steps: :meth:`LayoutPlanner.frame` picks the anchor
and width budget for a region before its content is rendered, and
:meth:`LayoutPlanner.place` turns the rendered size into a final box that
avoids labels and earlier annotations and stays on the page.
"""

from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

from grade_annotator.config import LayoutConfig
from grade_annotator.models import (
    BoundingBox,
    Category,
    LayoutRegion,
    Orientation,
    PlacementStrategy,
    PlannedDraw,
)
from grade_annotator.utils.logger import logger

COLLISION_GAP = 2.0


@dataclass(frozen=True)
class PlacementFrame:
    """Anchor chosen for a region before its content size is known.

    ``y`` is the top edge, except for BESIDE score and signature frames
    where it is the bottom edge the content is aligned to.
    """
    x: float
    y: float
    max_width: float
    strategy: PlacementStrategy
    bottom_aligned: bool = False


class LayoutPlanner:
    """Plans draw boxes for one document.

    A planner remembers every box it has placed, so use a fresh instance per
    document.
    """

    def __init__(self, config: Optional[LayoutConfig] = None,
                 regions: Sequence[LayoutRegion] = ()):
        self.config = config or LayoutConfig()
        self._labels: Dict[int, List[BoundingBox]] = {}
        self._placed: Dict[int, List[BoundingBox]] = {}
        for region in regions:
            self._labels.setdefault(region.page_index, []).append(region.box)

    def frame(self, region: LayoutRegion, page_size: Tuple[float, float]) -> PlacementFrame:
        cfg = self.config
        page_width, _ = page_size
        label = region.box

        if region.category is Category.SCORE:
            x = label.x1 + cfg.score_offset
            return PlacementFrame(x, label.y1, page_width - cfg.edge_margin - x,
                                  PlacementStrategy.BESIDE, bottom_aligned=True)

        if region.category is Category.SIGNATURE:
            x = label.x1 + cfg.signature_offset
            return PlacementFrame(x, label.y1 + cfg.signature_drop, cfg.signature_max_width,
                                  PlacementStrategy.BESIDE, bottom_aligned=True)

        x = label.x1 + cfg.comment_margin
        if x + cfg.comment_target_width > page_width - cfg.edge_margin:
            logger.debug(f"Comment beside label at x={label.x:.1f} overflows; moving below")
            return PlacementFrame(
                cfg.overflow_inset,
                label.y1 + cfg.overflow_gap,
                page_width - 2 * cfg.overflow_inset,
                PlacementStrategy.OVERFLOW,
            )
        if region.orientation is Orientation.VERTICAL:
            return PlacementFrame(x, label.y, cfg.comment_target_width, PlacementStrategy.STACKED)
        return PlacementFrame(x, label.y1 - cfg.baseline_lift, cfg.comment_target_width,
                              PlacementStrategy.BESIDE)

    def place(self, region: LayoutRegion, frame: PlacementFrame,
              page_size: Tuple[float, float], width: float, height: float) -> PlannedDraw:
        """Return the final draw box for content of the given size."""
        if region.category is Category.SIGNATURE and width > self.config.signature_max_width:
            height = height * self.config.signature_max_width / width
            width = self.config.signature_max_width

        label = region.box
        strategy = frame.strategy
        top = frame.y - height if frame.bottom_aligned else frame.y
        box = BoundingBox(frame.x, top, width, height)

        page_width = page_size[0]
        right_edge = page_width - min(self.config.edge_margin, page_width / 4)
        if strategy is PlacementStrategy.BESIDE and box.x1 > right_edge:
            logger.debug(f"{region.category.value} beside label at x={label.x:.1f} overflows; moving below")
            box = BoundingBox(label.x, label.y1 + self.config.overflow_gap, width, height)
            strategy = PlacementStrategy.OVERFLOW

        box = self._avoid_collisions(region, box)
        box = self._fit_to_page(box, page_size)
        if box.intersects(label):
            # Clamped back onto its own label at the bottom of the page.
            box = box.moved(y=max(label.y - COLLISION_GAP - box.height, 0.0))

        self._placed.setdefault(region.page_index, []).append(box)
        return PlannedDraw(region=region, box=box, strategy=strategy)

    def _avoid_collisions(self, region: LayoutRegion, box: BoundingBox) -> BoundingBox:
        obstacles = [
            b for b in self._labels.get(region.page_index, []) if b != region.box
        ] + self._placed.get(region.page_index, [])

        for _ in range(self.config.max_collision_attempts):
            hits = [o for o in obstacles if box.intersects(o)]
            if not hits:
                break
            box = box.moved(y=max(o.y1 for o in hits) + COLLISION_GAP)
        return box

    def _fit_to_page(self, box: BoundingBox, page_size: Tuple[float, float]) -> BoundingBox:
        page_width, page_height = page_size
        edge = min(self.config.edge_margin, page_width / 4)
        top_margin = min(self.config.min_top_margin, page_height / 4)
        avail_w = page_width - 2 * edge
        avail_h = page_height - 2 * top_margin

        width, height = box.width, box.height
        if width > avail_w or height > avail_h:
            scale = min(avail_w / width if width else 1.0,
                        avail_h / height if height else 1.0)
            width, height = width * scale, height * scale

        x = min(max(box.x, edge), page_width - edge - width)
        y = min(max(box.y, top_margin), page_height - top_margin - height)
        return BoundingBox(x, y, width, height)
