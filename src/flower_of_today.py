import argparse
import logging
import os
import sys
import traceback
from typing import Final, List, Optional

from PIL import ImageFont

from config import CanvasConfig, Config
from errors import ComposeError, FontLoadError
from logger import Logger
from service.composition_service import CompositionService
from service.rotation_service import RotationService
from util import Util


class FlowerOfToday:
    DEFAULT_OUTPUT_PATH: Final[str] = "flower_of_today.png"
    DEFAULT_IMAGES_DIR: Final[str] = "wiki_flowers"
    DEFAULT_STATE_PATH: Final[str] = "last_wallpaper_and_idx.txt"

    def __init__(self) -> None:
        # Config & logging
        config = Config()
        self._config: dict = config.get_config()
        self._logger: logging.Logger = Logger().get_logger()

        self._canvas_config = CanvasConfig.from_dict(self._config.get("canvas", {}))

        # Relative paths are anchored at the config file, not the working directory
        rcfg = self._config.get("rotation", {}) or {}
        self._rotation = RotationService(
            images_dir=config.resolve_path(rcfg.get("images_dir") or FlowerOfToday.DEFAULT_IMAGES_DIR),
            permutation_path=config.resolve_path(rcfg.get("permutation_path")),
            state_path=config.resolve_path(rcfg.get("state_path") or FlowerOfToday.DEFAULT_STATE_PATH),
        )
        self._output_path: str = config.resolve_path(
            (self._config.get("output", {}) or {}).get("path") or FlowerOfToday.DEFAULT_OUTPUT_PATH
        )
        self._font_path: Optional[str] = config.resolve_path((self._config.get("text", {}) or {}).get("font_path"))
        self._composer = CompositionService(self._canvas_config)

    def run(self, force: bool = False) -> Optional[str]:
        """
        Compose the photo that is due and write it to the output path.
        Returns the written path, or None when today's image was already produced.
        """
        state = self._rotation.load_state()
        if not force and RotationService.changed_today(state):
            self._logger.info("Wallpaper already changed today; nothing to do.")
            return None

        file_name = self._rotation.current_image()
        caption = Util.caption_from_filename(file_name)
        source_path = os.path.join(self._rotation.images_dir, file_name)
        self._logger.info(f"Today's flower: {caption} ({source_path})")

        with open(source_path, "rb") as f:
            source_bytes = f.read()

        png_bytes = self._composer.compose(source_bytes, caption, self._load_typeface())
        self._write_output(png_bytes)
        self._rotation.advance()
        return self._output_path

    def _load_typeface(self) -> bytes:
        if self._font_path:
            try:
                with open(self._font_path, "rb") as f:
                    return f.read()
            except OSError as e:
                self._logger.warning(f"Falling back to default font: {e}")
        else:
            self._logger.warning("Font path missing in config.text.font_path; using default font")

        # Pillow ships a FreeType default typeface when built with FreeType support
        default_font = ImageFont.load_default(size=self._canvas_config.text_size)
        font_bytes = getattr(default_font, "font_bytes", None)
        if not font_bytes:
            raise FontLoadError("No typeface configured and Pillow has no scalable default font")
        return font_bytes

    def _write_output(self, png_bytes: bytes) -> None:
        temp = f"{self._output_path}.tmp"
        with open(temp, "wb") as f:
            f.write(png_bytes)
        os.replace(temp, self._output_path)
        self._logger.info(f"Wrote {len(png_bytes)} bytes to {self._output_path}")


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Compose today's framed flower wallpaper.")
    parser.add_argument("--config", help="Path to the YAML config file")
    parser.add_argument("--force", action="store_true", help="Compose even if the wallpaper changed today")
    args = parser.parse_args(argv)

    if args.config:
        Config(args.config)

    logger = Logger().get_logger()
    try:
        FlowerOfToday().run(force=args.force)
    except (ComposeError, OSError) as e:
        logger.error(f"Error occurred: {e}")
        logger.error(traceback.format_exc())
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
