"""Unit tests for GeometricLocator."""

import random

import pytest

from grade_annotator.models import Category, Orientation
from grade_annotator.parsing import TextRun
from grade_annotator.services import GeometricLocator, KeywordIndex, build_char_map

SCORE_AND_COMMENT = [Category.SCORE, Category.COMMENT]


class TestCharMap:
    """Test cases for build_char_map."""

    def test_concatenates_runs_with_one_box_per_char(self):
        runs = [TextRun("ab", 10, 20, 20, 12), TextRun("", 0, 0, 0, 0), TextRun("c", 50, 20, 8, 12)]
        text, boxes = build_char_map(runs)

        assert text == "abc"
        assert len(boxes) == 3
        assert boxes[0].x == 10 and boxes[1].x == 20
        assert boxes[1].width == 10
        assert boxes[2].x == 50


class TestGeometricLocator:
    """Test cases for GeometricLocator."""

    @pytest.fixture
    def locator(self):
        return GeometricLocator(KeywordIndex.default())

    def test_composite_label_yields_one_region(self, locator, geometric_model_factory):
        """'Teacher Comments' is not also claimed as a signature or a bare comment."""
        model = geometric_model_factory([[TextRun("Teacher Comments", 100, 100, 160, 12)]])
        regions = locator.locate(model)

        assert len(regions) == 1
        assert regions[0].category is Category.COMMENT
        assert regions[0].match.keyword == "Teacher Comments"
        assert regions[0].box.x == 100
        assert regions[0].box.width == pytest.approx(160)

    def test_every_occurrence_is_found(self, locator, geometric_model_factory):
        model = geometric_model_factory([[
            TextRun("Score", 50, 100, 50, 12),
            TextRun("Score", 50, 400, 50, 12),
        ]])
        regions = locator.locate(model, SCORE_AND_COMMENT)

        assert [r.box.y for r in regions] == [100, 400]
        assert all(r.category is Category.SCORE for r in regions)

    def test_regions_on_every_page(self, locator, geometric_model_factory):
        model = geometric_model_factory([
            [TextRun("Score", 50, 100, 50, 12)],
            [],
            [TextRun("Comments", 50, 100, 80, 12)],
        ])
        regions = locator.locate(model, SCORE_AND_COMMENT)

        assert [(r.page_index, r.category) for r in regions] == [
            (0, Category.SCORE),
            (2, Category.COMMENT),
        ]

    def test_label_split_across_runs(self, locator, geometric_model_factory):
        model = geometric_model_factory([[TextRun("Sc", 50, 100, 20, 12), TextRun("ore", 70, 100, 30, 12)]])
        regions = locator.locate(model, SCORE_AND_COMMENT)

        assert len(regions) == 1
        assert regions[0].box.x == 50
        assert regions[0].box.x1 == pytest.approx(100)

    def test_tall_label_is_vertical(self, locator, geometric_model_factory):
        model = geometric_model_factory([[TextRun("评语", 100, 100, 12, 40)]])
        regions = locator.locate(model, SCORE_AND_COMMENT)

        assert regions[0].orientation is Orientation.VERTICAL

    def test_wide_label_is_horizontal(self, locator, geometric_model_factory):
        model = geometric_model_factory([[TextRun("评语", 100, 100, 24, 12)]])
        assert locator.locate(model)[0].orientation is Orientation.HORIZONTAL

    def test_signature_excluded_when_not_requested(self, locator, geometric_model_factory):
        model = geometric_model_factory([[TextRun("Instructor", 100, 100, 60, 12)]])
        assert locator.locate(model, SCORE_AND_COMMENT) == []
        assert locator.locate(model)[0].category is Category.SIGNATURE

    @pytest.mark.parametrize("seed", range(5))
    def test_accepted_regions_never_overlap(self, locator, geometric_model_factory, seed):
        rng = random.Random(seed)
        words = ["Score", "Teacher Comments", "Teacher", "Comments", "评分", "教师评语", "Signature", "text"]
        runs = []
        for _ in range(30):
            word = rng.choice(words)
            runs.append(TextRun(word, rng.uniform(0, 500), rng.uniform(0, 700),
                                len(word) * rng.uniform(4, 8), 12))
        model = geometric_model_factory([runs])

        regions = locator.locate(model)

        assert len(regions) <= len(runs)
        for i, first in enumerate(regions):
            for second in regions[i + 1:]:
                assert not first.box.intersects(second.box)
