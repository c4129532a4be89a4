"""
Arc-text layout engine.

Places the glyphs of a string along a circular arc so the run reads as
continuous, upright text centred on a given angle. The engine is pure: it
takes a per-character width function and an ArcSpec, and returns one
GlyphPlacement per character. Painting is left to a rendering backend
(see helpers.arc_renderer).

Angles follow canvas conventions: 0 rad points along +x and angles grow
toward +y, which on a y-down raster is clockwise. π/2 is the bottom of
the circle.

Usage:
    arc = ArcSpec(cx=1024, cy=1024, radius=784, center_angle=math.pi / 2, spacing=8)
    for placement in layout_arc_text("AGENCY", font.getlength, arc):
        paint(placement.char, placement.x, placement.y, placement.rotation)
"""

from __future__ import annotations

import math
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from enum import Enum
from typing import NamedTuple

from utils.errors import InvalidGeometry

MeasureFn = Callable[[str], float]


class Anchor(str, Enum):
    """Which side of the circle a run of text is read from."""

    BOTTOM = "bottom"  # under the circle, upright to an outside viewer
    TOP = "top"  # over the circle, glyph tops pointing outward


class AnchorPolicy(NamedTuple):
    """Traversal reversal and rotation offset for one anchor.

    The two fields are a pair: flipping one without the other renders the
    string mirrored or upside down.
    """

    reverse: bool
    rotation_offset: float


ANCHOR_POLICIES: dict[Anchor, AnchorPolicy] = {
    Anchor.BOTTOM: AnchorPolicy(reverse=True, rotation_offset=-math.pi / 2),
    Anchor.TOP: AnchorPolicy(reverse=False, rotation_offset=math.pi / 2),
}


class GlyphMetric(NamedTuple):
    """A character and its advance width in pixels for one font."""

    char: str
    width: float


@dataclass(frozen=True)
class ArcSpec:
    """Circle and run parameters for a single layout call."""

    cx: float
    cy: float
    radius: float
    center_angle: float = math.pi / 2
    spacing: float = 0.0
    anchor: Anchor = Anchor.BOTTOM

    def __post_init__(self) -> None:
        object.__setattr__(self, "anchor", _coerce_anchor(self.anchor))

    @classmethod
    def from_degrees(
        cls,
        cx: float,
        cy: float,
        radius: float,
        center_deg: float = 90.0,
        spacing: float = 0.0,
        anchor: Anchor | str = Anchor.BOTTOM,
    ) -> ArcSpec:
        """Build an ArcSpec with the centre angle given in degrees."""
        return cls(
            cx=cx,
            cy=cy,
            radius=radius,
            center_angle=math.radians(center_deg),
            spacing=spacing,
            anchor=anchor,  # type: ignore[arg-type]
        )

    @property
    def policy(self) -> AnchorPolicy:
        return ANCHOR_POLICIES[self.anchor]


@dataclass(frozen=True)
class GlyphPlacement:
    """Where and how to paint one glyph.

    `angle` is the glyph's centre on the arc; `rotation` is the angle to
    rotate the glyph by before painting it at (x, y).
    """

    char: str
    x: float
    y: float
    rotation: float
    angle: float
    width: float


def _coerce_anchor(value: Anchor | str) -> Anchor:
    try:
        anchor = Anchor(value)
    except ValueError:
        raise InvalidGeometry(
            f"Unknown anchor {value!r}; expected one of "
            f"{', '.join(a.value for a in Anchor)}"
        ) from None
    if anchor not in ANCHOR_POLICIES:
        raise InvalidGeometry(f"No layout policy registered for anchor {anchor.value!r}")
    return anchor


def measure_glyphs(text: str, measure: MeasureFn) -> list[GlyphMetric]:
    """Measure every character of `text`, in string order.

    Raises:
        ValueError: If `measure` returns a negative width.
    """
    metrics = []
    for ch in text:
        width = float(measure(ch))
        if width < 0 or math.isnan(width):
            raise ValueError(f"Glyph width for {ch!r} must be non-negative, got {width}")
        metrics.append(GlyphMetric(ch, width))
    return metrics


def arc_span(metrics: Sequence[GlyphMetric], radius: float, spacing: float = 0.0) -> float:
    """Total angular width in radians of a run of glyphs, spacing included."""
    if not radius > 0:
        raise InvalidGeometry(f"Arc radius must be positive, got {radius}")
    if not metrics:
        return 0.0
    total_width = sum(m.width for m in metrics) + spacing * (len(metrics) - 1)
    return total_width / radius


def layout_arc_text(text: str, measure: MeasureFn, arc: ArcSpec) -> list[GlyphPlacement]:
    """Lay `text` out along the arc described by `arc`.

    Args:
        text: String to place. Empty text yields an empty list.
        measure: Returns the advance width in pixels of a single character.
        arc: Circle, centre angle, letter spacing and anchor policy.

    Returns:
        One placement per character, in traversal order. For the bottom
        anchor traversal runs over the reversed string, so the first
        placement is the string's last character.

    Raises:
        InvalidGeometry: If `arc.radius` is not a positive number.
    """
    radius = arc.radius
    if not radius > 0:
        raise InvalidGeometry(f"Arc radius must be positive, got {radius}")
    if not text:
        return []

    policy = arc.policy
    metrics = measure_glyphs(text, measure)
    if policy.reverse:
        metrics.reverse()

    angle = arc.center_angle - arc_span(metrics, radius, arc.spacing) / 2
    last = len(metrics) - 1

    placements: list[GlyphPlacement] = []
    for i, (ch, width) in enumerate(metrics):
        half = (width / 2) / radius
        angle += half
        placements.append(
            GlyphPlacement(
                char=ch,
                x=arc.cx + radius * math.cos(angle),
                y=arc.cy + radius * math.sin(angle),
                rotation=angle + policy.rotation_offset,
                angle=angle,
                width=width,
            )
        )
        angle += half
        if i < last:
            angle += arc.spacing / radius

    return placements
