import logging
from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np
from PIL import Image

from config import CanvasConfig
from errors import GeometryError
from logger import Logger
from service.corner_mask import Corner, make_corner_mask, tile_for_corner
from service.scaler import fit_dimensions, scale_image


@dataclass(frozen=True)
class ScaleResult:
    scaled_width: int
    scaled_height: int
    x_offset: int
    y_offset: int

    @property
    def bottom(self) -> int:
        return self.y_offset + self.scaled_height


def validate_geometry(config: CanvasConfig, scaled_size: Optional[Tuple[int, int]] = None) -> None:
    """Reject configurations that would index outside the canvas or the placed photo."""
    if config.canvas_width <= 0 or config.canvas_height <= 0:
        raise GeometryError(
            f"Canvas must be positive, got {config.canvas_width}x{config.canvas_height}"
        )
    if config.margin < 0 or config.bottom_extra_margin < 0:
        raise GeometryError("Margins must not be negative")
    if config.corner_radius < 0:
        raise GeometryError(f"Corner radius must not be negative, got {config.corner_radius}")
    if config.text_size <= 0 or config.text_padding < 0:
        raise GeometryError(f"Text size must be positive, got {config.text_size}")
    if 2 * config.margin >= config.canvas_width or 2 * config.margin >= config.canvas_height:
        raise GeometryError(f"Margin {config.margin} leaves no room on the canvas")

    box_w, box_h = config.content_box
    if box_w <= 0 or box_h <= 0:
        raise GeometryError(f"Content box is empty ({box_w}x{box_h})")

    if scaled_size is not None:
        scaled_w, scaled_h = scaled_size
        if config.corner_radius > min(scaled_w, scaled_h):
            raise GeometryError(
                f"Corner radius {config.corner_radius} exceeds scaled image {scaled_w}x{scaled_h}"
            )


def layout(source_size: Tuple[int, int], config: CanvasConfig) -> ScaleResult:
    """
    Size and position of the photo on the canvas. Horizontally centred on the
    canvas; vertically centred within the area above the caption band.
    """
    scaled_w, scaled_h = fit_dimensions(source_size, config.content_box)
    return ScaleResult(
        scaled_width=scaled_w,
        scaled_height=scaled_h,
        x_offset=(config.canvas_width - scaled_w) // 2,
        y_offset=(config.canvas_height - scaled_h - config.bottom_extra_margin) // 2,
    )


def new_canvas(config: CanvasConfig) -> np.ndarray:
    canvas = np.empty((config.canvas_height, config.canvas_width, 4), dtype=np.uint8)
    canvas[...] = config.background_rgba
    return canvas


def place_image(canvas: np.ndarray, scaled: Image.Image, result: ScaleResult) -> None:
    """Opaque overwrite: photo RGB is copied verbatim, any source transparency is flattened."""
    pixels = np.asarray(scaled.convert("RGBA"))
    if pixels.shape[:2] != (result.scaled_height, result.scaled_width):
        raise GeometryError(
            f"Scaled image is {pixels.shape[1]}x{pixels.shape[0]}, "
            f"layout expects {result.scaled_width}x{result.scaled_height}"
        )
    region = canvas[
        result.y_offset:result.y_offset + result.scaled_height,
        result.x_offset:result.x_offset + result.scaled_width,
    ]
    region[..., :3] = pixels[..., :3]
    region[..., 3] = 255


def alpha_blend(photo: np.ndarray, mask: np.ndarray) -> np.ndarray:
    """
    Blend mask colour over photo pixels, weighted by the mask alpha:
    ``out = (1 - a) * photo + a * mask`` with ``a = mask.A / 255``.
    Channels are truncated to 8 bits and the result is always opaque.
    """
    alpha = mask[..., 3:4].astype(np.float64) / 255.0
    blended = (1.0 - alpha) * photo[..., :3].astype(np.float64) + alpha * mask[..., :3].astype(np.float64)

    out = np.empty(photo.shape[:-1] + (4,), dtype=np.uint8)
    out[..., :3] = np.clip(blended, 0, 255).astype(np.uint8)
    out[..., 3] = 255
    return out


def corner_regions(result: ScaleResult, radius: int):
    """Yield ``(corner, (y0, y1, x0, x1))`` canvas slices covering each R x R corner of the placed photo."""
    left = result.x_offset
    top = result.y_offset
    right = result.x_offset + result.scaled_width
    bottom = result.y_offset + result.scaled_height
    yield Corner.TOP_LEFT, (top, top + radius, left, left + radius)
    yield Corner.TOP_RIGHT, (top, top + radius, right - radius, right)
    yield Corner.BOTTOM_LEFT, (bottom - radius, bottom, left, left + radius)
    yield Corner.BOTTOM_RIGHT, (bottom - radius, bottom, right - radius, right)


def round_corners(canvas: np.ndarray, result: ScaleResult, tile: np.ndarray) -> None:
    radius = tile.shape[0]
    if radius == 0:
        return
    for corner, (y0, y1, x0, x1) in corner_regions(result, radius):
        canvas[y0:y1, x0:x1] = alpha_blend(canvas[y0:y1, x0:x1], tile_for_corner(tile, corner))


class Compositor:
    """
    Builds the framed canvas: off-white background, Lanczos-scaled photo centred
    in the content box, corners faded into the background.
    """

    def __init__(self, config: CanvasConfig) -> None:
        self._logger: logging.Logger = Logger().get_logger()
        self._config = config
        self._corner_tile = make_corner_mask(config.corner_radius, config.background_color)

    @property
    def config(self) -> CanvasConfig:
        return self._config

    def compose(self, source: Image.Image) -> Tuple[np.ndarray, ScaleResult]:
        validate_geometry(self._config)
        result = layout(source.size, self._config)
        validate_geometry(self._config, (result.scaled_width, result.scaled_height))

        scaled = scale_image(source, self._config.content_box)
        self._logger.debug(
            "Scaled %sx%s -> %sx%s at (%s, %s)",
            source.width,
            source.height,
            result.scaled_width,
            result.scaled_height,
            result.x_offset,
            result.y_offset,
        )

        canvas = new_canvas(self._config)
        place_image(canvas, scaled, result)
        round_corners(canvas, result, self._corner_tile)
        return canvas, result
