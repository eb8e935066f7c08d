import io
import logging
from typing import Optional

from PIL import Image, ImageOps, UnidentifiedImageError

from config import CanvasConfig
from errors import DecodeError, EncodeError
from logger import Logger
from service.compositor import Compositor
from service.text_renderer import GlyphRasterizer, PillowGlyphRasterizer, TextRenderer


class CompositionService:
    """
    Turns a source photo into the framed wallpaper:
      decode -> scale -> canvas + rounded photo -> caption -> PNG.

    Pure with respect to its inputs: the same bytes, caption, typeface and
    config always give byte-identical output. Nothing is written anywhere;
    on any failure a ComposeError subclass is raised and no output exists.
    """

    OUTPUT_FORMAT = "PNG"

    def __init__(self, canvas_config: Optional[CanvasConfig] = None) -> None:
        self._logger: logging.Logger = Logger().get_logger()
        self._canvas_config = canvas_config or CanvasConfig()

    # ---------------------------------------------------------------------
    # Public API
    # ---------------------------------------------------------------------

    def compose(
        self,
        source_bytes: bytes,
        caption: str,
        typeface_data: Optional[bytes] = None,
        canvas_config: Optional[CanvasConfig] = None,
        rasterizer: Optional[GlyphRasterizer] = None,
    ) -> bytes:
        image = self.compose_image(source_bytes, caption, typeface_data, canvas_config, rasterizer)
        return self._encode(image)

    def compose_image(
        self,
        source_bytes: bytes,
        caption: str,
        typeface_data: Optional[bytes] = None,
        canvas_config: Optional[CanvasConfig] = None,
        rasterizer: Optional[GlyphRasterizer] = None,
    ) -> Image.Image:
        """Same as ``compose`` but returns the RGBA canvas instead of encoded bytes."""
        config = canvas_config or self._canvas_config
        if rasterizer is None:
            if typeface_data is None:
                raise ValueError("Either typeface_data or rasterizer must be given")
            rasterizer = PillowGlyphRasterizer(typeface_data)

        source = self._decode(source_bytes)
        self._logger.info(
            "Composing '%s' from %sx%s source onto %sx%s canvas",
            caption,
            source.width,
            source.height,
            config.canvas_width,
            config.canvas_height,
        )

        canvas, result = Compositor(config).compose(source)
        TextRenderer(rasterizer, config).render(canvas, caption, result)
        return Image.fromarray(canvas)

    # ---------------------------------------------------------------------
    # Codec helpers
    # ---------------------------------------------------------------------

    def _decode(self, source_bytes: bytes) -> Image.Image:
        try:
            with Image.open(io.BytesIO(source_bytes)) as img:
                img.load()
                # Normalize camera orientation before measuring the aspect ratio
                return ImageOps.exif_transpose(img).convert("RGBA")
        except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError) as e:
            self._logger.error(f"Failed to decode source image: {e}")
            raise DecodeError(f"Source is not a supported raster image: {e}") from e

    def _encode(self, image: Image.Image) -> bytes:
        try:
            buffer = io.BytesIO()
            image.save(buffer, format=self.OUTPUT_FORMAT)
            return buffer.getvalue()
        except (OSError, ValueError) as e:
            self._logger.error(f"Failed to encode composed image: {e}")
            raise EncodeError(f"Could not encode {self.OUTPUT_FORMAT}: {e}") from e


def compose(
    source_bytes: bytes,
    caption: str,
    typeface_data: bytes,
    canvas_config: Optional[CanvasConfig] = None,
) -> bytes:
    """Compose the framed wallpaper and return it PNG-encoded."""
    return CompositionService(canvas_config).compose(source_bytes, caption, typeface_data)
