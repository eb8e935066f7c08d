from enum import Enum
from typing import Tuple

import numpy as np


class Corner(Enum):
    TOP_LEFT = "top_left"
    TOP_RIGHT = "top_right"
    BOTTOM_LEFT = "bottom_left"
    BOTTOM_RIGHT = "bottom_right"


def make_corner_mask(radius: int, color: Tuple[int, int, int]) -> np.ndarray:
    """
    Build the R x R RGBA tile used to round every corner of the photo.

    RGB carries the background colour; alpha says how much of it shows through.
    Pixel (x, y) gets ``clamp(sqrt(x² + y²) - R + 0.5, 0, 1) * 255``: zero inside
    the quarter circle of radius R around the tile origin, 255 beyond it, with a
    one pixel anti-aliased ramp on the boundary. As generated, the tile fits the
    bottom-right corner; the other three are reflections (see ``tile_for_corner``).
    """
    if radius <= 0:
        return np.zeros((0, 0, 4), dtype=np.uint8)

    ys, xs = np.mgrid[0:radius, 0:radius].astype(np.float64)
    coverage = np.clip(np.sqrt(xs * xs + ys * ys) - radius + 0.5, 0.0, 1.0)

    tile = np.empty((radius, radius, 4), dtype=np.uint8)
    tile[..., 0] = color[0]
    tile[..., 1] = color[1]
    tile[..., 2] = color[2]
    # Truncate like an 8-bit cast
    tile[..., 3] = (coverage * 255.0).astype(np.uint8)
    return tile


def tile_for_corner(tile: np.ndarray, corner: Corner) -> np.ndarray:
    """Reflected view of ``tile`` whose alpha rises towards the given outer corner."""
    if corner is Corner.BOTTOM_RIGHT:
        return tile
    if corner is Corner.BOTTOM_LEFT:
        return tile[:, ::-1]
    if corner is Corner.TOP_RIGHT:
        return tile[::-1, :]
    return tile[::-1, ::-1]
