"""Unit tests for content rendering."""

import pytest

from grade_annotator.config import RenderConfig
from grade_annotator.exceptions import RasterizationError
from grade_annotator.models import AnnotationContent, Category
from grade_annotator.services import ContentRenderer, RenderMode, TextRasterizer

PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"


class FixedWidthRasterizer(TextRasterizer):
    """Every character measures 10px, whatever the font."""

    def measure(self, text, size, artistic=False):
        return len(text) * 10


class TestWrap:
    """Greedy line wrapping."""

    @pytest.fixture
    def rasterizer(self):
        return FixedWidthRasterizer()

    def test_breaks_at_word_boundaries(self, rasterizer):
        assert rasterizer.wrap("aaa bbb ccc", 18, 70) == ["aaa bbb", "ccc"]

    def test_breaks_between_cjk_characters(self, rasterizer):
        assert rasterizer.wrap("评语很好", 18, 20) == ["评语", "很好"]

    def test_long_word_is_split(self, rasterizer):
        assert rasterizer.wrap("abcdefghij", 18, 30) == ["abc", "def", "ghi", "j"]

    def test_explicit_newlines_are_kept(self, rasterizer):
        assert rasterizer.wrap("ok\nfine", 18, 100) == ["ok", "fine"]


class TestContentRenderer:
    """Test cases for ContentRenderer."""

    @pytest.fixture
    def renderer(self):
        return ContentRenderer(RenderConfig())

    def test_structured_run_keeps_text_and_color(self, renderer):
        run = renderer.render_structured(AnnotationContent(Category.SCORE, "87 / 100", "FF0000"))

        assert run.text == "87 / 100"
        assert run.color == "FF0000"
        assert run.font_name is None
        assert run.image is None

    def test_artistic_signature_uses_calligraphic_font(self, renderer):
        run = renderer.render_structured(
            AnnotationContent(Category.SIGNATURE, "Dr. Li", "000000", artistic=True)
        )
        assert run.font_name == "KaiTi"

    def test_signature_image_run(self, renderer, png_bytes):
        run = renderer.render_structured(
            AnnotationContent(Category.SIGNATURE, "Dr. Li", "000000", image=png_bytes)
        )
        assert run.image == png_bytes
        assert run.image_width_pt == 100

    def test_score_is_rasterized(self, renderer):
        rendered = renderer.render_geometric(AnnotationContent(Category.SCORE, "87 / 100", "FF0000"), 300)

        assert rendered.mode is RenderMode.RASTER
        assert rendered.png.startswith(PNG_SIGNATURE)
        assert rendered.width > 0 and rendered.height > 0

    def test_short_latin_comment_is_native_text(self, renderer):
        rendered = renderer.render_geometric(AnnotationContent(Category.COMMENT, "Good work", "FF0000"), 350)

        assert rendered.mode is RenderMode.TEXT
        assert rendered.lines == ["Good work"]
        assert rendered.font_size == 9.0
        assert rendered.png is None

    def test_cjk_comment_is_rasterized(self, renderer):
        rendered = renderer.render_geometric(AnnotationContent(Category.COMMENT, "论证清晰，引用充分。", "FF0000"), 350)

        assert rendered.mode is RenderMode.RASTER
        assert rendered.png.startswith(PNG_SIGNATURE)
        assert "".join(rendered.lines) == "论证清晰，引用充分。"

    def test_long_comment_wraps_within_budget(self):
        renderer = ContentRenderer(RenderConfig(), FixedWidthRasterizer())
        text = " ".join(["word"] * 40)
        rendered = renderer.render_geometric(AnnotationContent(Category.COMMENT, text, "FF0000"), 100)

        assert rendered.mode is RenderMode.RASTER
        assert len(rendered.lines) > 1
        # 100pt at scale 2 minus padding on both sides
        assert all(len(line) * 10 <= 180 for line in rendered.lines)

    def test_signature_image_drawn_at_half_size(self, renderer, png_bytes):
        rendered = renderer.render_geometric(
            AnnotationContent(Category.SIGNATURE, "Dr. Li", "000000", image=png_bytes), 150
        )
        assert rendered.mode is RenderMode.RASTER
        assert (rendered.width, rendered.height) == (100, 40)

    def test_unreadable_signature_image_raises(self, renderer):
        with pytest.raises(RasterizationError):
            renderer.render_geometric(
                AnnotationContent(Category.SIGNATURE, "Dr. Li", "000000", image=b"not an image"), 150
            )

    def test_invalid_color_raises(self, renderer):
        with pytest.raises(RasterizationError) as exc_info:
            renderer.render_geometric(AnnotationContent(Category.SCORE, "87", "ZZZZZZ"), 300)
        assert exc_info.value.recoverable
