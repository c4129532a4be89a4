"""
Image Factories

Builds in-memory images and small on-disk assets for composer and renderer tests.
"""

from __future__ import annotations

import io
from pathlib import Path

from PIL import Image

from helpers.badge_composer import BadgeSettings

RED = (255, 0, 0, 255)
GREEN = (0, 255, 0, 255)
BLUE = (0, 0, 255, 255)


def make_image(
    size: tuple[int, int] = (64, 48),
    color: tuple[int, ...] = GREEN,
    mode: str = "RGBA",
) -> Image.Image:
    """Create a solid-colour image."""
    return Image.new(mode, size, color[: len(mode)])


def make_image_bytes(
    size: tuple[int, int] = (64, 48),
    color: tuple[int, ...] = GREEN,
    fmt: str = "PNG",
) -> bytes:
    """Encode a solid-colour image, as an upload would arrive."""
    mode = "RGB" if fmt.upper() == "JPEG" else "RGBA"
    buffer = io.BytesIO()
    make_image(size, color, mode).save(buffer, format=fmt)
    return buffer.getvalue()


def write_image(path: Path, size: tuple[int, int], color: tuple[int, ...]) -> Path:
    """Write a solid-colour PNG asset to `path`."""
    path.parent.mkdir(parents=True, exist_ok=True)
    make_image(size, color).save(path, format="PNG")
    return path


def make_settings(tmp_path: Path, **overrides) -> BadgeSettings:
    """
    Small badge settings anchored in `tmp_path`.

    No background asset is written; tests that need one call write_image()
    on settings.background_path.
    """
    values = {
        "size": 256,
        "inner_radius": 60,
        "center_x_offset": 0,
        "center_y_offset": 0,
        "clip_margin": 2,
        "font_path": None,
        "font_size": 24,
        "letter_spacing": 2,
        "bottom_radius": 100,
        "bottom_center_deg": 90,
        "background_path": tmp_path / "bg.png",
        "fx_path": None,
    }
    values.update(overrides)
    return BadgeSettings(**values)


def decode(data: bytes) -> Image.Image:
    """Decode encoded image bytes, fully loaded."""
    img = Image.open(io.BytesIO(data))
    img.load()
    return img
