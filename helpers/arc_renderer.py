"""
Pillow backend for arc-text placements.

Bridges helpers.arc_text (pure layout) and a raster image: measures glyphs
with a Pillow font, then paints each placement by rendering the character
on a small transparent tile, rotating it and compositing it at (x, y).
"""

from __future__ import annotations

import math
from collections.abc import Callable
from pathlib import Path

from PIL import Image, ImageDraw, ImageFont

from helpers.arc_text import ArcSpec, GlyphPlacement, layout_arc_text
from utils.logging import get_logger

logger = get_logger(__name__)

Font = ImageFont.FreeTypeFont | ImageFont.ImageFont
Fill = str | tuple[int, ...]

# Padding around the glyph bbox so antialiased edges survive rotation
_TILE_PADDING = 2


def load_font(path: str | Path | None, size: int) -> Font:
    """
    Load a TrueType font, falling back to Pillow's default face.

    Args:
        path: Path to a .ttf/.otf file. None skips straight to the fallback.
        size: Font size in pixels.

    Returns:
        A font usable with ImageDraw and getlength().
    """
    if path is not None:
        try:
            return ImageFont.truetype(str(path), size)
        except OSError as e:
            logger.warning(
                "Could not load font %s (%s); falling back to default font", path, e
            )
    return ImageFont.load_default(size=size)


def pillow_measure(font: Font) -> Callable[[str], float]:
    """Return a width function for layout_arc_text backed by `font`."""

    def measure(ch: str) -> float:
        return float(font.getlength(ch))

    return measure


def paint_glyph(
    image: Image.Image, placement: GlyphPlacement, font: Font, fill: Fill
) -> None:
    """
    Paint a single placed glyph onto an RGBA image.

    The glyph is drawn centred on a tile, rotated by the placement rotation
    and alpha-composited so its centre lands on (x, y). Glyphs without ink
    (spaces, zero-width marks) are skipped.
    """
    left, top, right, bottom = font.getbbox(placement.char, anchor="mm")
    if right <= left or bottom <= top:
        return

    half = math.ceil(max(abs(left), abs(top), abs(right), abs(bottom))) + _TILE_PADDING
    tile = Image.new("RGBA", (half * 2, half * 2), (0, 0, 0, 0))
    ImageDraw.Draw(tile).text((half, half), placement.char, font=font, fill=fill, anchor="mm")

    # Canvas angles are clockwise on a y-down raster; Image.rotate is counter-clockwise
    tile = tile.rotate(
        -math.degrees(placement.rotation),
        resample=Image.Resampling.BICUBIC,
        expand=True,
    )

    dest_x = round(placement.x - tile.width / 2)
    dest_y = round(placement.y - tile.height / 2)
    src_x = max(0, -dest_x)
    src_y = max(0, -dest_y)
    if src_x >= tile.width or src_y >= tile.height:
        return
    if dest_x >= image.width or dest_y >= image.height:
        return

    image.alpha_composite(
        tile, dest=(max(0, dest_x), max(0, dest_y)), source=(src_x, src_y)
    )


def draw_arc_text(
    image: Image.Image,
    text: str,
    arc: ArcSpec,
    font: Font,
    fill: Fill,
) -> list[GlyphPlacement]:
    """
    Lay out `text` along `arc` and paint it onto `image`.

    Args:
        image: Target image; must be RGBA.
        text: Text to draw.
        arc: Arc geometry and anchor policy.
        font: Pillow font used for both measuring and painting.
        fill: Glyph colour.

    Returns:
        The placements that were painted, in traversal order.

    Raises:
        InvalidGeometry: If the arc radius is not positive.
        ValueError: If `image` is not RGBA.
    """
    if image.mode != "RGBA":
        raise ValueError(f"draw_arc_text needs an RGBA image, got {image.mode}")

    placements = layout_arc_text(text, pillow_measure(font), arc)
    for placement in placements:
        paint_glyph(image, placement, font, fill)

    logger.debug(
        "Drew %d glyphs on arc r=%.1f centred at %.3f rad (%s)",
        len(placements),
        arc.radius,
        arc.center_angle,
        arc.anchor.value,
        extra={"glyph_count": len(placements)},
    )
    return placements
