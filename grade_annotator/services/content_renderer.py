"""
Content rendering for annotations.

Structured documents receive native text runs. Geometric documents receive
either a PNG image of the text, rasterized with Pillow at a fixed scale, or
short plain-Latin text that the PDF viewer can draw with a base-14 font.
"""

import re
from dataclasses import dataclass, field
from enum import Enum
from functools import lru_cache
from io import BytesIO
from typing import List, Optional, Sequence, Tuple

from PIL import Image, ImageColor, ImageDraw, ImageFont

from grade_annotator.config import RenderConfig
from grade_annotator.exceptions import RasterizationError
from grade_annotator.models import AnnotationContent, Category
from grade_annotator.parsing import NativeRun
from grade_annotator.utils.logger import logger

DEFAULT_FONT_PATHS = (
    "NotoSansCJK-Regular.ttc",
    "/usr/share/fonts/opentype/noto/NotoSansCJK-Regular.ttc",
    "/usr/share/fonts/noto-cjk/NotoSansCJK-Regular.ttc",
    "/System/Library/Fonts/PingFang.ttc",
    "msyh.ttc",
    "simhei.ttf",
    "DejaVuSans.ttf",
    "/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf",
    "arial.ttf",
)

DEFAULT_SIGNATURE_FONT_PATHS = (
    "simkai.ttf",
    "KaiTi.ttf",
    "STKAITI.TTF",
    "/System/Library/Fonts/Supplemental/Songti.ttc",
    "/usr/share/fonts/truetype/arphic/ukai.ttc",
)

SIGNATURE_IMAGE_WIDTH_PT = 100

# One CJK ideograph, kana or fullwidth form per segment; other text by word.
_SEGMENT_RE = re.compile(
    r"[\u2e80-\u9fff\uac00-\ud7af\uf900-\ufaff\uff00-\uffef]"
    r"|[^\s\u2e80-\u9fff\uac00-\ud7af\uf900-\ufaff\uff00-\uffef]+"
    r"|\s+"
)


class RenderMode(Enum):
    """How geometric content is drawn."""
    RASTER = "raster"
    TEXT = "text"


@dataclass
class RenderedContent:
    """Geometric content ready for drawing; sizes are in points."""
    mode: RenderMode
    width: float
    height: float
    png: Optional[bytes] = None
    lines: List[str] = field(default_factory=list)
    font_size: float = 9.0
    color: str = "000000"


@lru_cache(maxsize=32)
def _load_font(paths: Tuple[str, ...], size: int):
    for path in paths:
        try:
            return ImageFont.truetype(path, size)
        except (OSError, IOError):
            continue
    logger.debug(f"No TrueType font found among {len(paths)} candidate(s); using Pillow default")
    return ImageFont.load_default(size=size)


class TextRasterizer:
    """Text measurement and rendering with Pillow."""

    def __init__(self, font_paths: Sequence[str] = (), signature_font_paths: Sequence[str] = ()):
        self.font_paths = tuple(font_paths) + DEFAULT_FONT_PATHS
        self.signature_font_paths = (
            tuple(signature_font_paths) + DEFAULT_SIGNATURE_FONT_PATHS + self.font_paths
        )

    def font(self, size: int, artistic: bool = False):
        paths = self.signature_font_paths if artistic else self.font_paths
        return _load_font(paths, int(size))

    def measure(self, text: str, size: int, artistic: bool = False) -> float:
        """Rendered width of ``text`` in pixels."""
        try:
            return self.font(size, artistic).getlength(text)
        except (OSError, ValueError, UnicodeError) as e:
            raise RasterizationError(f"Failed to measure text: {e}", text=text, original_error=e)

    def render(self, lines: Sequence[str], size: int, color: str, padding: int = 10,
               line_height: float = 1.4, artistic: bool = False) -> Tuple[bytes, int, int]:
        """Render lines onto a transparent PNG; returns (png, width_px, height_px)."""
        try:
            font = self.font(size, artistic)
            step = size * line_height
            width = int(max((font.getlength(line) for line in lines), default=0)) + 2 * padding
            height = int(step * max(len(lines), 1)) + 2 * padding
            image = Image.new("RGBA", (max(width, 1), max(height, 1)), (255, 255, 255, 0))
            draw = ImageDraw.Draw(image)
            fill = ImageColor.getrgb(f"#{color}")
            for i, line in enumerate(lines):
                draw.text((padding, padding + i * step), line, font=font, fill=fill)
            buffer = BytesIO()
            image.save(buffer, format="PNG")
        except (OSError, ValueError, UnicodeError) as e:
            raise RasterizationError(f"Failed to rasterize text: {e}", text="\n".join(lines), original_error=e)
        return buffer.getvalue(), image.width, image.height

    def wrap(self, text: str, size: int, max_width: float, artistic: bool = False) -> List[str]:
        """Greedy wrap at word or CJK character boundaries within ``max_width`` px."""
        lines: List[str] = []
        for paragraph in text.split("\n"):
            current = ""
            for segment in _SEGMENT_RE.findall(paragraph):
                candidate = current + segment
                if self.measure(candidate.rstrip(), size, artistic) <= max_width:
                    current = candidate
                    continue
                if current.strip():
                    lines.append(current.rstrip())
                current = segment.lstrip()
                if current and self.measure(current, size, artistic) > max_width:
                    pieces = self._break_word(current, size, max_width, artistic)
                    lines.extend(pieces[:-1])
                    current = pieces[-1]
            lines.append(current.rstrip())
        return lines

    def _break_word(self, word: str, size: int, max_width: float, artistic: bool) -> List[str]:
        pieces, current = [], ""
        for ch in word:
            if current and self.measure(current + ch, size, artistic) > max_width:
                pieces.append(current)
                current = ch
            else:
                current += ch
        pieces.append(current)
        return pieces


def _is_latin(text: str) -> bool:
    try:
        text.encode("latin-1")
    except UnicodeEncodeError:
        return False
    return True


def normalize_image(data: bytes) -> Tuple[bytes, int, int]:
    """Re-encode an arbitrary image as PNG."""
    try:
        with Image.open(BytesIO(data)) as image:
            image = image.convert("RGBA")
            buffer = BytesIO()
            image.save(buffer, format="PNG")
            return buffer.getvalue(), image.width, image.height
    except (OSError, ValueError) as e:
        raise RasterizationError(f"Unreadable signature image: {e}", original_error=e)


class ContentRenderer:
    """Turns annotation content into native runs or drawable page content."""

    def __init__(self, config: Optional[RenderConfig] = None,
                 rasterizer: Optional[TextRasterizer] = None):
        self.config = config or RenderConfig()
        self.rasterizer = rasterizer or TextRasterizer(
            self.config.font_paths, self.config.signature_font_paths
        )

    def render_structured(self, content: AnnotationContent) -> NativeRun:
        font_name = content.font_name
        if content.artistic and not font_name:
            font_name = self.config.artistic_font_name
        return NativeRun(
            text=content.text,
            color=content.color,
            font_name=font_name,
            image=content.image,
            image_width_pt=SIGNATURE_IMAGE_WIDTH_PT if content.image else None,
        )

    def render_geometric(self, content: AnnotationContent, max_width: float) -> RenderedContent:
        """Render content for a page slot at most ``max_width`` points wide.

        Raises:
            RasterizationError: if the text or image cannot be rendered
        """
        cfg = self.config
        if content.category is Category.SIGNATURE and content.image:
            png, width_px, height_px = normalize_image(content.image)
            # Images are drawn at half their pixel size.
            return RenderedContent(RenderMode.RASTER, width_px / 2, height_px / 2, png=png)

        if content.category is Category.COMMENT:
            native = self._native_comment(content, max_width)
            if native is not None:
                return native
            size = cfg.comment_font_size
            budget = max(max_width * cfg.scale - 2 * cfg.padding, size)
            lines = self.rasterizer.wrap(content.text, size, budget)
        else:
            size = cfg.score_font_size if content.category is Category.SCORE else cfg.signature_font_size
            lines = content.text.split("\n")

        png, width_px, height_px = self.rasterizer.render(
            lines,
            size,
            content.color,
            padding=cfg.padding,
            line_height=cfg.line_height,
            artistic=content.artistic,
        )
        logger.log_metric("rasterizations")
        return RenderedContent(
            RenderMode.RASTER,
            width_px / cfg.scale,
            height_px / cfg.scale,
            png=png,
            lines=lines,
            color=content.color,
        )

    def _native_comment(self, content: AnnotationContent, max_width: float) -> Optional[RenderedContent]:
        """Short single-line Latin comments are drawn as real PDF text."""
        cfg = self.config
        if "\n" in content.text or not _is_latin(content.text):
            return None
        size_px = int(round(cfg.native_font_size * cfg.scale))
        width = self.rasterizer.measure(content.text, size_px) / cfg.scale
        if width > max_width:
            return None
        return RenderedContent(
            RenderMode.TEXT,
            width,
            cfg.native_font_size * cfg.line_height,
            lines=[content.text],
            font_size=cfg.native_font_size,
            color=content.color,
        )
