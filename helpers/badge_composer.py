"""
Badge composition: background + circular photo + curved name text.

Layers, bottom to top:
    1. Background (solid asset, transparent, or vertical gradient)
    2. Photo, cover-fitted and clipped to the lens circle
    3. Optional ring around the lens
    4. Optional FX overlay
    5. Name, curved along the bottom of the badge
    6. Optional debug guide circles

Usage:
    result = compose_badge(image_bytes, "Night Owls", background="gradient")
    Path("badge.png").write_bytes(result.final_png)
"""

from __future__ import annotations

import asyncio
import io
import math
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, NamedTuple

from PIL import Image, ImageChops, ImageColor, ImageDraw, UnidentifiedImageError

from config.config_loader import ConfigLoader
from helpers.arc_renderer import draw_arc_text, load_font
from helpers.arc_text import Anchor, ArcSpec
from utils.errors import BadgeComposeError, ConfigError
from utils.logging import get_logger

logger = get_logger(__name__)

BACKGROUND_CHOICES = ("solid", "transparent", "gradient")

# Supersampling factor for the anti-aliased lens mask
_MASK_SUPERSAMPLE = 4


class ComposeResult(NamedTuple):
    """Encoded output of a badge composition."""

    final_png: bytes
    preview_jpg: bytes


def _section(config: dict[str, Any], key: str) -> dict[str, Any]:
    value = config.get(key)
    return value if isinstance(value, dict) else {}


@dataclass
class BadgeSettings:
    """Geometry, text and asset settings for a badge."""

    size: int = 2048

    # Lens geometry
    inner_radius: float = 417
    center_x_offset: float = 0
    center_y_offset: float = -5
    photo_nudge_x: float = 0
    photo_nudge_y: float = 0
    clip_margin: float = 2

    ring_enabled: bool = False
    ring_width: int = 24
    ring_color: str = "#ffffff"

    font_path: Path | None = None
    font_size: int = 136
    text_color: str = "#e6c76f"
    letter_spacing: float = 8
    bottom_radius: float = 784
    bottom_center_deg: float = 90

    background_path: Path = field(
        default_factory=lambda: ConfigLoader.resolve_path("assets/bg.png")
    )
    fx_path: Path | None = field(
        default_factory=lambda: ConfigLoader.resolve_path("assets/fx.png")
    )

    gradient_top: str = "#1b1f2a"
    gradient_bottom: str = "#3a4660"

    debug_guide: bool = False

    @classmethod
    def from_config(cls, config: dict[str, Any] | None) -> BadgeSettings:
        """
        Create settings from the renderer configuration dict.

        Reads from config['badge'] and its ring/text/assets/gradient
        subsections; anything missing keeps its default.

        Raises:
            ConfigError: If a value has the wrong type (e.g. size: "big").
        """
        if not config or not isinstance(config, dict):
            return cls()

        badge = _section(config, "badge")
        ring = _section(badge, "ring")
        text = _section(badge, "text")
        assets = _section(badge, "assets")
        gradient = _section(badge, "gradient")
        defaults = cls()

        try:
            return cls._from_sections(badge, ring, text, assets, gradient, defaults)
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Invalid badge configuration: {e}") from e

    @classmethod
    def _from_sections(
        cls,
        badge: dict[str, Any],
        ring: dict[str, Any],
        text: dict[str, Any],
        assets: dict[str, Any],
        gradient: dict[str, Any],
        defaults: BadgeSettings,
    ) -> BadgeSettings:
        font_path = text.get("font_path")
        fx_path = assets.get("fx", defaults.fx_path)

        return cls(
            size=int(badge.get("size", defaults.size)),
            inner_radius=float(badge.get("inner_radius", defaults.inner_radius)),
            center_x_offset=float(badge.get("center_x_offset", defaults.center_x_offset)),
            center_y_offset=float(badge.get("center_y_offset", defaults.center_y_offset)),
            photo_nudge_x=float(badge.get("photo_nudge_x", defaults.photo_nudge_x)),
            photo_nudge_y=float(badge.get("photo_nudge_y", defaults.photo_nudge_y)),
            clip_margin=float(badge.get("clip_margin", defaults.clip_margin)),
            ring_enabled=bool(ring.get("enabled", defaults.ring_enabled)),
            ring_width=int(ring.get("width", defaults.ring_width)),
            ring_color=str(ring.get("color", defaults.ring_color)),
            font_path=ConfigLoader.resolve_path(font_path) if font_path else None,
            font_size=int(text.get("font_size", defaults.font_size)),
            text_color=str(text.get("color", defaults.text_color)),
            letter_spacing=float(text.get("letter_spacing", defaults.letter_spacing)),
            bottom_radius=float(text.get("bottom_radius", defaults.bottom_radius)),
            bottom_center_deg=float(
                text.get("bottom_center_deg", defaults.bottom_center_deg)
            ),
            background_path=ConfigLoader.resolve_path(
                assets.get("background", defaults.background_path)
            ),
            fx_path=ConfigLoader.resolve_path(fx_path) if fx_path else None,
            gradient_top=str(gradient.get("top", defaults.gradient_top)),
            gradient_bottom=str(gradient.get("bottom", defaults.gradient_bottom)),
            debug_guide=bool(badge.get("debug_guide", defaults.debug_guide)),
        )

    @property
    def lens_center(self) -> tuple[float, float]:
        return (
            self.size / 2 + self.center_x_offset,
            self.size / 2 + self.center_y_offset,
        )

    @property
    def clip_radius(self) -> float:
        return max(1.0, self.inner_radius - self.clip_margin)


def _decode_image(data: bytes) -> Image.Image:
    try:
        img = Image.open(io.BytesIO(data))
        img.load()
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError) as e:
        raise BadgeComposeError(f"Could not read uploaded image: {e}") from e
    return img.convert("RGBA")


def _load_asset(path: Path, size: int) -> Image.Image:
    """Open an on-disk asset as an RGBA layer scaled to the badge canvas."""
    try:
        with Image.open(path) as asset:
            return asset.convert("RGBA").resize((size, size), Image.Resampling.LANCZOS)
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError) as e:
        raise BadgeComposeError(f"Could not read asset {path.name}: {e}") from e


def _vertical_gradient(size: int, top: str, bottom: str) -> Image.Image:
    top_rgb = ImageColor.getrgb(top)[:3]
    bottom_rgb = ImageColor.getrgb(bottom)[:3]
    column = Image.new("RGBA", (1, size))
    span = max(1, size - 1)
    for y in range(size):
        t = y / span
        column.putpixel(
            (0, y),
            tuple(round(a + (b - a) * t) for a, b in zip(top_rgb, bottom_rgb)) + (255,),
        )
    return column.resize((size, size), Image.Resampling.NEAREST)


def _paint_background(canvas: Image.Image, background: str, settings: BadgeSettings) -> None:
    if background == "transparent":
        return

    if background == "gradient":
        canvas.alpha_composite(
            _vertical_gradient(settings.size, settings.gradient_top, settings.gradient_bottom)
        )
        return

    if not settings.background_path.exists():
        raise BadgeComposeError(f"{settings.background_path.name} not found")
    canvas.alpha_composite(_load_asset(settings.background_path, settings.size))


def _lens_mask(size: int, cx: float, cy: float, radius: float) -> Image.Image:
    """Full-canvas L mask that is opaque inside the circle, with soft edges."""
    mask = Image.new("L", (size, size), 0)
    diameter = math.ceil(radius * 2)
    big = diameter * _MASK_SUPERSAMPLE
    circle = Image.new("L", (big, big), 0)
    ImageDraw.Draw(circle).ellipse((0, 0, big - 1, big - 1), fill=255)
    circle = circle.resize((diameter, diameter), Image.Resampling.LANCZOS)
    mask.paste(circle, (round(cx - diameter / 2), round(cy - diameter / 2)))
    return mask


def _paint_photo(canvas: Image.Image, photo: Image.Image, settings: BadgeSettings) -> None:
    base_cx, base_cy = settings.lens_center
    img_cx = base_cx + settings.photo_nudge_x
    img_cy = base_cy + settings.photo_nudge_y

    r_clip = settings.clip_radius
    d_clip = r_clip * 2
    # Cover fit: only the centred square of the source can show through
    # the lens, so resample just that square
    src_side = min(photo.width, photo.height)
    src_left = (photo.width - src_side) / 2
    src_top = (photo.height - src_side) / 2
    side = math.ceil(d_clip)
    resized = photo.resize(
        (side, side),
        Image.Resampling.LANCZOS,
        box=(src_left, src_top, src_left + src_side, src_top + src_side),
    )

    layer = Image.new("RGBA", canvas.size, (0, 0, 0, 0))
    layer.paste(resized, (round(img_cx - side / 2), round(img_cy - side / 2)))

    mask = _lens_mask(settings.size, img_cx, img_cy, r_clip)
    layer.putalpha(ImageChops.multiply(layer.getchannel("A"), mask))
    canvas.alpha_composite(layer)


def _paint_ring(canvas: Image.Image, settings: BadgeSettings) -> None:
    base_cx, base_cy = settings.lens_center
    cx = base_cx + settings.photo_nudge_x
    cy = base_cy + settings.photo_nudge_y
    # Pillow strokes inward from the bbox, so a bbox at inner_radius centres
    # the stroke on inner_radius - width / 2
    r = settings.inner_radius
    ImageDraw.Draw(canvas).ellipse(
        (cx - r, cy - r, cx + r, cy + r),
        outline=settings.ring_color,
        width=settings.ring_width,
    )


def _paint_fx(canvas: Image.Image, settings: BadgeSettings) -> None:
    if settings.fx_path is None or not settings.fx_path.exists():
        return
    canvas.alpha_composite(_load_asset(settings.fx_path, settings.size))


def _dashed_circle(
    draw: ImageDraw.ImageDraw,
    cx: float,
    cy: float,
    radius: float,
    dash: float,
    gap: float,
    color: str,
    width: int,
) -> None:
    bbox = (cx - radius, cy - radius, cx + radius, cy + radius)
    circumference = 2 * math.pi * radius
    position = 0.0
    while position < circumference:
        start = position / circumference * 360
        end = min(position + dash, circumference) / circumference * 360
        draw.arc(bbox, start, end, fill=color, width=width)
        position += dash + gap


def _paint_debug_guide(canvas: Image.Image, settings: BadgeSettings) -> None:
    cx, cy = settings.lens_center
    draw = ImageDraw.Draw(canvas)
    _dashed_circle(draw, cx, cy, settings.inner_radius, 14, 10, "#00ffff", 3)
    _dashed_circle(draw, cx, cy, settings.clip_radius, 6, 8, "#ff00ff", 2)


def _encode(canvas: Image.Image) -> ComposeResult:
    png_buffer = io.BytesIO()
    canvas.save(png_buffer, format="PNG")

    flattened = Image.new("RGB", canvas.size, (255, 255, 255))
    flattened.paste(canvas, mask=canvas.getchannel("A"))
    jpg_buffer = io.BytesIO()
    flattened.save(jpg_buffer, format="JPEG", quality=90)

    return ComposeResult(final_png=png_buffer.getvalue(), preview_jpg=jpg_buffer.getvalue())


def compose_badge(
    base_bytes: bytes,
    name: str | None,
    background: str = "solid",
    settings: BadgeSettings | None = None,
) -> ComposeResult:
    """
    Compose a badge from an uploaded photo and a name.

    Args:
        base_bytes: Encoded image (PNG/JPEG/WebP) for the lens.
        name: Text to curve along the bottom; blank names are skipped.
        background: One of "solid", "transparent" or "gradient".
        settings: Badge settings; defaults to the loaded configuration.

    Returns:
        ComposeResult with PNG bytes and a JPEG preview.

    Raises:
        BadgeComposeError: On missing image data, an unknown background,
            a missing background asset or undecodable image bytes.
        InvalidGeometry: If the configured text radius is not positive.
    """
    if not base_bytes:
        raise BadgeComposeError("No logo data received from upload")
    if background not in BACKGROUND_CHOICES:
        raise BadgeComposeError(
            f"Unknown background '{background}'; use one of {', '.join(BACKGROUND_CHOICES)}"
        )
    if settings is None:
        settings = BadgeSettings.from_config(ConfigLoader.load_config())

    canvas = Image.new("RGBA", (settings.size, settings.size), (0, 0, 0, 0))

    _paint_background(canvas, background, settings)
    photo = _decode_image(base_bytes)
    _paint_photo(canvas, photo, settings)

    if settings.ring_enabled and settings.ring_width > 0:
        _paint_ring(canvas, settings)

    _paint_fx(canvas, settings)

    glyph_count = 0
    if name and name.strip():
        font = load_font(settings.font_path, settings.font_size)
        arc = ArcSpec.from_degrees(
            settings.size / 2,
            settings.size / 2,
            settings.bottom_radius,
            center_deg=settings.bottom_center_deg,
            spacing=settings.letter_spacing,
            anchor=Anchor.BOTTOM,
        )
        glyph_count = len(
            draw_arc_text(canvas, name.strip().upper(), arc, font, settings.text_color)
        )

    if settings.debug_guide:
        _paint_debug_guide(canvas, settings)

    result = _encode(canvas)
    logger.info(
        "Composed badge (%d bytes PNG)",
        len(result.final_png),
        extra={
            "badge_name": (name or "").strip(),
            "background": background,
            "glyph_count": glyph_count,
        },
    )
    return result


async def compose_badge_async(
    base_bytes: bytes,
    name: str | None,
    background: str = "solid",
    settings: BadgeSettings | None = None,
) -> ComposeResult:
    """Run compose_badge in a worker thread so event loops stay responsive."""
    return await asyncio.to_thread(compose_badge, base_bytes, name, background, settings)
