import os
from typing import Tuple

IMAGE_EXTENSIONS: Tuple[str, ...] = (".jpg", ".jpeg", ".png")


class Util:
    @staticmethod
    def caption_from_filename(filename: str) -> str:
        """
        Derive the caption shown under a photo from its file name:
        directory and a recognised image extension are stripped, anything else is kept.
        """
        name = os.path.basename(filename)
        stem, ext = os.path.splitext(name)
        if ext.lower() in IMAGE_EXTENSIONS:
            return stem
        return name

    @staticmethod
    def is_image_file(filename: str) -> bool:
        return os.path.splitext(filename)[1].lower() in IMAGE_EXTENSIONS
