import io
from typing import Tuple

import numpy as np
import pytest
from PIL import Image, ImageFont

from config import CONFIG_ENV_VAR, CanvasConfig, Config
from logger import Logger
from service.text_renderer import GlyphBitmap
from singleton_meta import SingletonMeta


class BlockRasterizer:
    """Deterministic stand-in for a font: every visible character is a solid block resting on the baseline."""

    def __init__(self, width: int = 10, height: int = 20, gap: int = 4, coverage: float = 1.0) -> None:
        self.width = width
        self.height = height
        self.gap = gap
        self.coverage = coverage

    def layout(self, text, scale):
        pen = 0
        for ch in text:
            if not ch.isspace():
                yield GlyphBitmap(
                    coverage=np.full((self.height, self.width), self.coverage),
                    origin=(pen, -self.height),
                )
            pen += self.width + self.gap


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    # Never pick up the repository's config/config.yaml (and its log file) in tests
    monkeypatch.setenv(CONFIG_ENV_VAR, str(tmp_path / "no-config.yaml"))
    SingletonMeta.reset(Config)
    SingletonMeta.reset(Logger)
    yield
    SingletonMeta.reset(Config)
    SingletonMeta.reset(Logger)


@pytest.fixture
def small_config() -> CanvasConfig:
    # content box 380x240, strip 38 rows
    return CanvasConfig(
        canvas_width=400,
        canvas_height=300,
        margin=10,
        bottom_extra_margin=40,
        corner_radius=20,
        text_size=30,
        text_padding=8,
    )


@pytest.fixture
def block_rasterizer() -> BlockRasterizer:
    return BlockRasterizer()


@pytest.fixture(scope="session")
def font_bytes() -> bytes:
    font = ImageFont.load_default(size=60)
    data = getattr(font, "font_bytes", None)
    if not data:
        pytest.skip("Pillow built without FreeType support")
    return data


@pytest.fixture
def photo_bytes():
    def _make(size: Tuple[int, int], color=(200, 40, 90), fmt: str = "PNG", mode: str = "RGB") -> bytes:
        if mode == "RGBA" and len(color) == 3:
            color = tuple(color) + (255,)
        img = Image.new(mode, size, color)
        buf = io.BytesIO()
        img.save(buf, format=fmt)
        return buf.getvalue()

    return _make
