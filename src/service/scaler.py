from typing import Tuple

from PIL import Image

from errors import GeometryError


def fit_dimensions(source_size: Tuple[int, int], box_size: Tuple[int, int]) -> Tuple[int, int]:
    """
    Largest size with the source's aspect ratio that fits inside the box.
    One uniform factor is applied to both axes, so the binding axis lands
    exactly on the box edge and the other one fits within it.
    """
    src_w, src_h = source_size
    box_w, box_h = box_size
    if src_w <= 0 or src_h <= 0:
        raise GeometryError(f"Source image has non-positive dimensions {src_w}x{src_h}")
    if box_w <= 0 or box_h <= 0:
        raise GeometryError(f"Content box has non-positive dimensions {box_w}x{box_h}")

    scale_factor = min(box_w / src_w, box_h / src_h)
    scaled_w = max(1, min(box_w, round(src_w * scale_factor)))
    scaled_h = max(1, min(box_h, round(src_h * scale_factor)))
    return (scaled_w, scaled_h)


def scale_image(image: Image.Image, box_size: Tuple[int, int]) -> Image.Image:
    """Resample ``image`` to fit ``box_size`` (Lanczos keeps downscaling free of aliasing)."""
    scaled_size = fit_dimensions(image.size, box_size)
    if scaled_size == image.size:
        return image.copy()
    return image.resize(scaled_size, Image.LANCZOS)
