"""Tests for annotation data models."""

import base64

import pytest

from grade_annotator.models import (
    AnnotationResult,
    BoundingBox,
    DocumentFormat,
    GradingResult,
    InstructorSettings,
)


class TestBoundingBox:
    """Test cases for BoundingBox."""

    def test_touching_edges_intersect(self):
        assert BoundingBox(0, 0, 10, 10).intersects(BoundingBox(10, 0, 5, 5))
        assert BoundingBox(0, 0, 10, 10).intersects(BoundingBox(0, 10, 5, 5))

    def test_separate_boxes_do_not_intersect(self):
        assert not BoundingBox(0, 0, 10, 10).intersects(BoundingBox(10.5, 0, 5, 5))

    def test_union(self):
        union = BoundingBox.union([BoundingBox(10, 20, 5, 5), BoundingBox(0, 22, 5, 10)])
        assert union == BoundingBox(0, 20, 15, 12)

    def test_moved(self):
        box = BoundingBox(1, 2, 3, 4)
        assert box.moved(y=10) == BoundingBox(1, 10, 3, 4)
        assert box.x1 == 4 and box.y1 == 6


class TestDocumentFormat:
    """Test cases for format hints."""

    @pytest.mark.parametrize("hint, expected", [
        ("application/pdf", DocumentFormat.PDF),
        ("PDF", DocumentFormat.PDF),
        ("Essay.Final.docx", DocumentFormat.DOCX),
        ("application/vnd.openxmlformats-officedocument.spreadsheetml.sheet", DocumentFormat.XLSX),
        ("notes.txt", None),
        ("", None),
        (None, None),
    ])
    def test_from_hint(self, hint, expected):
        assert DocumentFormat.from_hint(hint) is expected

    def test_geometric_flag(self):
        assert DocumentFormat.PDF.is_geometric
        assert not DocumentFormat.DOCX.is_geometric


class TestGradingResult:
    """Test cases for GradingResult."""

    @pytest.mark.parametrize("score, expected", [(87, "87"), (87.0, "87"), (87.5, "87.5")])
    def test_display_score(self, score, expected):
        assert GradingResult(score=score).display_score == expected

    def test_from_dict_coerces_numeric_strings(self):
        result = GradingResult.from_dict({"score": "87.5"})
        assert result.score == 87.5
        assert result.display_score == "87.5"

    @pytest.mark.parametrize("score", [None, "excellent"])
    def test_from_dict_rejects_non_numeric_scores(self, score):
        with pytest.raises((TypeError, ValueError)):
            GradingResult.from_dict({"score": score})

    def test_from_dict(self):
        result = GradingResult.from_dict({
            "score": 72,
            "teacher_comment": "Fine",
            "feedback": [{"original_text": "teh", "comment": "typo"}],
        })
        assert result.score == 72
        assert isinstance(result.score, float)
        assert result.feedback[0].comment == "typo"
        assert result.letter_grade == ""


class TestInstructorSettings:
    """Test cases for InstructorSettings."""

    def test_data_url_is_decoded(self, png_bytes):
        url = "data:image/png;base64," + base64.b64encode(png_bytes).decode("ascii")
        settings = InstructorSettings(enabled=True, mode="image", image_data=url)
        assert settings.image_bytes() == png_bytes

    def test_raw_bytes_pass_through(self, png_bytes):
        settings = InstructorSettings(enabled=True, mode="image", image_data=png_bytes)
        assert settings.image_bytes() == png_bytes

    def test_text_mode_has_no_image(self, png_bytes):
        assert InstructorSettings(mode="text", image_data=png_bytes).image_bytes() is None

    def test_invalid_base64_is_ignored(self):
        settings = InstructorSettings(mode="image", image_data="data:image/png;base64,@@@")
        assert settings.image_bytes() is None

    def test_artistic(self):
        assert InstructorSettings(font_style="artistic").artistic
        assert not InstructorSettings().artistic


class TestAnnotationResult:
    """Test cases for AnnotationResult."""

    def test_unpacks_to_bytes_and_format(self):
        data, fmt = AnnotationResult(b"%PDF", "pdf")
        assert (data, fmt) == (b"%PDF", "pdf")

    def test_partial_flag(self):
        assert AnnotationResult(b"", "docx", warnings=["PARTIAL_MUTATION: failed"]).partial
        assert not AnnotationResult(b"", "docx", warnings=["RASTERIZATION_ERROR: x"]).partial

    def test_to_dict_omits_bytes(self):
        data = AnnotationResult(b"abc", "xlsx", modifications=2).to_dict()
        assert data["size"] == 3
        assert data["modifications"] == 2
        assert "output_bytes" not in data
