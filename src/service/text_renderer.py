import io
import logging
import math
from dataclasses import dataclass
from typing import Dict, Iterable, Iterator, Protocol, Tuple

import numpy as np
from PIL import Image, ImageDraw, ImageFont

from config import CanvasConfig
from errors import FontLoadError
from logger import Logger
from service.compositor import ScaleResult

INK_COLOR: Tuple[int, int, int, int] = (0, 0, 0, 255)
COVERAGE_THRESHOLD: float = 0.5


@dataclass(frozen=True)
class GlyphBitmap:
    coverage: np.ndarray  # (h, w) floats in [0, 1]
    origin: Tuple[int, int]  # top-left of the bitmap, relative to the pen on the baseline


class GlyphRasterizer(Protocol):
    def layout(self, text: str, scale: float) -> Iterable[GlyphBitmap]:
        ...


class PillowGlyphRasterizer:
    """
    Lays out text with a FreeType font loaded through Pillow, one coverage bitmap per visible glyph.
    Origins are relative to the pen on the baseline, so glyph tops are usually negative.
    """

    def __init__(self, font_data: bytes) -> None:
        self._font_data = font_data
        self._fonts: Dict[int, ImageFont.FreeTypeFont] = {}
        # Fail early on malformed data rather than at first layout
        self._get_font(12)

    def _get_font(self, size: int) -> ImageFont.FreeTypeFont:
        font = self._fonts.get(size)
        if font is None:
            try:
                font = ImageFont.truetype(io.BytesIO(self._font_data), size)
            except (OSError, ValueError) as e:
                raise FontLoadError(f"Could not load typeface: {e}") from e
            self._fonts[size] = font
        return font

    def layout(self, text: str, scale: float) -> Iterator[GlyphBitmap]:
        font = self._get_font(max(1, int(round(scale))))
        for i, ch in enumerate(text):
            left, top, right, bottom = font.getbbox(ch, anchor="ls")
            if right <= left or bottom <= top:
                # Blank glyph (space, control character)
                continue

            pen_x = math.floor(font.getlength(text[:i]))
            mask = Image.new("L", (right - left, bottom - top), 0)
            ImageDraw.Draw(mask).text((-left, -top), ch, font=font, fill=255, anchor="ls")
            coverage = np.asarray(mask, dtype=np.float64) / 255.0
            if not coverage.any():
                continue
            yield GlyphBitmap(coverage=coverage, origin=(pen_x + left, top))


@dataclass(frozen=True)
class CaptionStrip:
    pixels: np.ndarray  # (text_size + text_padding, canvas_width, 4) uint8
    ink_width: int  # one past the right-most painted column


def render_caption_strip(caption: str, rasterizer: GlyphRasterizer, config: CanvasConfig) -> CaptionStrip:
    """
    Rasterize ``caption`` into a canvas-wide scratch strip, black on background.
    Only pixels with more than half coverage are painted, fully opaque.
    """
    height = config.text_size + config.text_padding
    width = config.canvas_width
    strip = np.empty((height, width, 4), dtype=np.uint8)
    strip[...] = config.background_rgba

    inked = []
    for glyph in rasterizer.layout(caption, config.text_size):
        ys, xs = np.nonzero(glyph.coverage > COVERAGE_THRESHOLD)
        if xs.size:
            inked.append((glyph.origin, ys, xs))

    baseline = caption_baseline(inked, config)
    ink_width = 0
    for origin, ys, xs in inked:
        xs = xs + origin[0] + config.glyph_inset
        ys = ys + origin[1] + baseline + config.glyph_inset
        inside = (xs >= 0) & (xs < width) & (ys >= 0) & (ys < height)
        if not inside.any():
            continue
        xs, ys = xs[inside], ys[inside]
        strip[ys, xs] = INK_COLOR
        ink_width = max(ink_width, int(xs.max()) + 1)

    return CaptionStrip(pixels=strip, ink_width=ink_width)


def caption_baseline(inked, config: CanvasConfig) -> int:
    """
    Strip row of the baseline: the middle of the strip, moved up or down just
    enough to keep the ink inside the copied ``[0, text_size)`` band. When the
    ink is taller than the band its top is kept.
    """
    baseline = (config.text_size + config.text_padding) // 2
    if not inked:
        return baseline
    ink_top = min(origin[1] + int(ys.min()) for origin, ys, _ in inked)
    ink_bottom = max(origin[1] + int(ys.max()) for origin, ys, _ in inked)
    baseline = min(baseline, config.text_size - 1 - config.glyph_inset - ink_bottom)
    return max(baseline, -config.glyph_inset - ink_top)


def caption_position(strip: CaptionStrip, result: ScaleResult, config: CanvasConfig) -> Tuple[int, int]:
    """Canvas position of the caption: centred on its ink, half a margin below the photo."""
    return (
        (config.canvas_width - strip.ink_width) // 2,
        result.bottom + config.margin // 2,
    )


def place_caption(canvas: np.ndarray, strip: CaptionStrip, result: ScaleResult, config: CanvasConfig) -> None:
    if strip.ink_width == 0:
        return
    x, y = caption_position(strip, result, config)
    rows = min(config.text_size, strip.pixels.shape[0], canvas.shape[0] - y)
    if rows <= 0:
        return
    canvas[y:y + rows, x:x + strip.ink_width] = strip.pixels[:rows, :strip.ink_width]


class TextRenderer:
    def __init__(self, rasterizer: GlyphRasterizer, config: CanvasConfig) -> None:
        self._logger: logging.Logger = Logger().get_logger()
        self._rasterizer = rasterizer
        self._config = config

    def render(self, canvas: np.ndarray, caption: str, result: ScaleResult) -> CaptionStrip:
        strip = render_caption_strip(caption, self._rasterizer, self._config)
        if strip.ink_width == 0 and caption.strip():
            self._logger.warning(f"Caption '{caption}' produced no visible glyphs")
        place_caption(canvas, strip, result, self._config)
        self._logger.debug("Caption '%s' placed with ink width %s", caption, strip.ink_width)
        return strip
