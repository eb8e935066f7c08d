import os
from dataclasses import dataclass, fields
from typing import Any, Dict, Optional, Tuple

import yaml

from singleton_meta import SingletonMeta

CONFIG_ENV_VAR = "FLOWER_OF_TODAY_CONFIG"


def _default_config_path() -> str:
    base = os.path.abspath(os.path.join(os.path.dirname(__file__), '..', 'config'))
    return os.path.join(base, 'config.yaml')


class Config(metaclass=SingletonMeta):
    def __init__(self, path: Optional[str] = None) -> None:
        self._path: str = path or os.environ.get(CONFIG_ENV_VAR) or _default_config_path()
        self._config: dict = self._load(self._path)

    @staticmethod
    def _load(path: str) -> dict:
        if not os.path.exists(path):
            return {}
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
        # An empty YAML document loads as None
        return data or {}

    def get_config(self) -> dict:
        return self._config

    def get_path(self) -> str:
        return self._path

    def resolve_path(self, path: Optional[str]) -> Optional[str]:
        """Anchor a relative path from the config at the directory of the config file."""
        if not path:
            return None
        path = os.path.expanduser(path)
        if os.path.isabs(path):
            return path
        return os.path.join(os.path.dirname(os.path.abspath(self._path)), path)


@dataclass(frozen=True)
class CanvasConfig:
    """
    Geometry of the framed wallpaper. Every field feeds the compositor:
      - canvas_width/canvas_height: output size in pixels
      - margin: inset of the content box on all four sides
      - bottom_extra_margin: additional inset at the bottom, reserved for the caption
      - corner_radius: side of the corner mask tile
      - text_size: caption point size (and height of the copied caption band)
      - background_color: off-white RGB shown around the photo and through its corners
      - text_padding: extra rows allocated in the caption strip
      - glyph_inset: pixel nudge applied to every glyph in the strip
    """

    canvas_width: int = 2560
    canvas_height: int = 1530
    margin: int = 50
    bottom_extra_margin: int = 150
    corner_radius: int = 50
    text_size: int = 60
    background_color: Tuple[int, int, int] = (229, 223, 199)
    text_padding: int = 8
    glyph_inset: int = 2

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "CanvasConfig":
        """Build from the ``canvas:`` section of the YAML config; unknown keys are ignored."""
        data = data or {}
        known = {f.name for f in fields(cls)}
        kwargs: Dict[str, Any] = {}
        for key, value in data.items():
            if key not in known:
                continue
            if key == "background_color":
                kwargs[key] = tuple(int(c) for c in value)
            else:
                kwargs[key] = int(value)
        return cls(**kwargs)

    @property
    def background_rgba(self) -> Tuple[int, int, int, int]:
        r, g, b = self.background_color
        return (r, g, b, 255)

    @property
    def content_box(self) -> Tuple[int, int]:
        return (
            self.canvas_width - 2 * self.margin,
            self.canvas_height - 2 * self.margin - self.bottom_extra_margin,
        )
