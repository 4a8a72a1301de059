"""Unit tests for LayoutPlanner."""

import pytest

from grade_annotator.models import (
    BoundingBox,
    Category,
    LayoutRegion,
    Orientation,
    PlaceholderMatch,
    PlacementStrategy,
)
from grade_annotator.services import LayoutPlanner

PAGE = (612, 792)


def region(category, x, y, width, height, page=0, orientation=Orientation.HORIZONTAL):
    match = PlaceholderMatch(category=category, keyword=category.value, page_index=page, span=(0, 1))
    return LayoutRegion(match, page, BoundingBox(x, y, width, height), orientation)


def inside_page(box, page=PAGE):
    width, height = page
    return box.x >= 0 and box.y >= 0 and box.x1 <= width and box.y1 <= height


class TestFrames:
    """Anchor selection before content is rendered."""

    def test_score_sits_beside_label_on_its_baseline(self):
        score = region(Category.SCORE, 100, 700, 50, 12)
        frame = LayoutPlanner(regions=[score]).frame(score, PAGE)

        assert frame.x == 200
        assert frame.y == 712
        assert frame.bottom_aligned
        assert frame.max_width == 612 - 20 - 200
        assert frame.strategy is PlacementStrategy.BESIDE

    def test_comment_beside_label(self):
        comment = region(Category.COMMENT, 100, 300, 60, 12)
        frame = LayoutPlanner(regions=[comment]).frame(comment, PAGE)

        assert frame.strategy is PlacementStrategy.BESIDE
        assert frame.x == 210
        assert frame.y == 302
        assert frame.max_width == 350

    def test_comment_near_right_edge_overflows_below(self):
        comment = region(Category.COMMENT, 450, 300, 60, 12)
        frame = LayoutPlanner(regions=[comment]).frame(comment, PAGE)

        assert frame.strategy is PlacementStrategy.OVERFLOW
        assert frame.x == 40
        assert frame.y == 312 + 15
        assert frame.max_width == 612 - 80

    def test_vertical_comment_is_stacked(self):
        comment = region(Category.COMMENT, 100, 100, 12, 40, orientation=Orientation.VERTICAL)
        frame = LayoutPlanner(regions=[comment]).frame(comment, PAGE)

        assert frame.strategy is PlacementStrategy.STACKED
        assert frame.y == 100
        assert frame.x == 162


class TestPlacement:
    """Final boxes for rendered content."""

    def test_score_box_right_of_label_and_on_page(self):
        score = region(Category.SCORE, 100, 700, 50, 12)
        planner = LayoutPlanner(regions=[score])
        planned = planner.place(score, planner.frame(score, PAGE), PAGE, 60, 20)

        assert planned.box == BoundingBox(200, 692, 60, 20)
        assert planned.box.x > score.box.x1
        assert inside_page(planned.box)

    def test_overflow_box_stays_within_page_width(self):
        comment = region(Category.COMMENT, 450, 300, 60, 12)
        planner = LayoutPlanner(regions=[comment])
        planned = planner.place(comment, planner.frame(comment, PAGE), PAGE, 500, 30)

        assert planned.box.x == 40
        assert planned.box.x1 <= 612
        assert planned.strategy is PlacementStrategy.OVERFLOW

    def test_signature_width_is_capped(self):
        signature = region(Category.SIGNATURE, 100, 500, 60, 12)
        planner = LayoutPlanner(regions=[signature])
        planned = planner.place(signature, planner.frame(signature, PAGE), PAGE, 300, 100)

        assert planned.box.width == 150
        assert planned.box.height == pytest.approx(50)
        assert planned.box.x == 180
        assert planned.box.y1 == pytest.approx(517)

    def test_content_is_pushed_below_other_labels(self):
        score = region(Category.SCORE, 100, 100, 50, 12)
        comment = region(Category.COMMENT, 200, 80, 80, 12)
        planner = LayoutPlanner(regions=[score, comment])
        planned = planner.place(score, planner.frame(score, PAGE), PAGE, 60, 30)

        assert planned.box.y == pytest.approx(92 + 2)
        assert not planned.box.intersects(comment.box)

    def test_content_is_pushed_below_earlier_annotations(self):
        first = region(Category.SCORE, 100, 400, 50, 12)
        second = region(Category.SCORE, 100, 405, 50, 12)
        planner = LayoutPlanner()
        earlier = planner.place(first, planner.frame(first, PAGE), PAGE, 60, 30)
        later = planner.place(second, planner.frame(second, PAGE), PAGE, 60, 30)

        assert not later.box.intersects(earlier.box)
        assert later.box.y > earlier.box.y1

    def test_oversized_content_is_shrunk_proportionally(self):
        comment = region(Category.COMMENT, 450, 300, 60, 12)
        planner = LayoutPlanner(regions=[comment])
        planned = planner.place(comment, planner.frame(comment, PAGE), PAGE, 1000, 2000)

        assert planned.box.height == pytest.approx(792 - 60)
        assert planned.box.width / planned.box.height == pytest.approx(0.5)
        assert inside_page(planned.box)

    def test_content_is_clamped_below_top_margin(self):
        score = region(Category.SCORE, 100, 5, 50, 12)
        planner = LayoutPlanner(regions=[score])
        planned = planner.place(score, planner.frame(score, PAGE), PAGE, 60, 40)

        assert planned.box.y == 30

    def test_zero_sized_content_does_not_fail(self):
        score = region(Category.SCORE, 100, 300, 50, 12)
        planner = LayoutPlanner(regions=[score])
        planned = planner.place(score, planner.frame(score, PAGE), PAGE, 0, 0)

        assert planned.box.width == 0
        assert inside_page(planned.box)

    def test_small_page_keeps_margins_proportional(self):
        page = (60, 80)
        score = region(Category.SCORE, 5, 20, 10, 6)
        planner = LayoutPlanner(regions=[score])
        planned = planner.place(score, planner.frame(score, page), page, 100, 20)

        assert inside_page(planned.box, page)

    def test_score_near_right_edge_moves_below_label(self):
        score = region(Category.SCORE, 545, 387, 31, 16)
        planner = LayoutPlanner(regions=[score])
        planned = planner.place(score, planner.frame(score, PAGE), PAGE, 84.5, 35)

        assert planned.strategy is PlacementStrategy.OVERFLOW
        assert not planned.box.intersects(score.box)
        assert planned.box.y == pytest.approx(403 + 15)
        assert planned.box.x1 <= 612 - 20
        assert inside_page(planned.box)

    def test_signature_near_right_edge_moves_below_label(self):
        signature = region(Category.SIGNATURE, 500, 300, 60, 12)
        planner = LayoutPlanner(regions=[signature])
        planned = planner.place(signature, planner.frame(signature, PAGE), PAGE, 120, 40)

        assert planned.strategy is PlacementStrategy.OVERFLOW
        assert not planned.box.intersects(signature.box)
        assert inside_page(planned.box)

    def test_bottom_right_label_gets_content_above_it(self):
        score = region(Category.SCORE, 545, 740, 31, 16)
        planner = LayoutPlanner(regions=[score])
        planned = planner.place(score, planner.frame(score, PAGE), PAGE, 84.5, 35)

        assert not planned.box.intersects(score.box)
        assert planned.box.y1 < score.box.y
        assert inside_page(planned.box)
