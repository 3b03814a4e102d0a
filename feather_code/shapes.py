"""Bar profiles and ornament templates for stylized barcodes.

A bar profile changes how the ends and edges of each bar are drawn:

- flat: plain rectangles
- tapered: bar ends narrow towards the tip, inside the decoration margin
- feathered: edges carry shallow barbs that intrude evenly into the
  neighbouring spaces
- quill: tapered ends plus feathered edges

Ornaments are optional motifs drawn above the bars, outside the scan
band. They are defined as normalized polygon vertices in [0, 1] space
and scaled to the requested box during rendering.
"""

from __future__ import annotations

import math
from dataclasses import dataclass


@dataclass(frozen=True)
class BarProfile:
    """How a single bar is outlined.

    Attributes:
        name: Profile name.
        taper: Inset of each side at the very tip, as a fraction of the bar
            width. Applied only inside the decoration margin.
        barbs: Whether the long edges carry feather barbs.
    """

    name: str
    taper: float
    barbs: bool


PROFILES: list[BarProfile] = [
    BarProfile(name="flat", taper=0.0, barbs=False),
    BarProfile(name="tapered", taper=0.25, barbs=False),
    BarProfile(name="feathered", taper=0.0, barbs=True),
    BarProfile(name="quill", taper=0.25, barbs=True),
]

PROFILE_INDEX: dict[str, BarProfile] = {p.name: p for p in PROFILES}

CORNERS = ("square", "rounded")


@dataclass(frozen=True)
class ShapeTemplate:
    """An ornament outline.

    Attributes:
        name: Human-readable shape name.
        vertices: List of (x, y) tuples in normalized [0, 1] space.
    """

    name: str
    vertices: list[tuple[float, float]]


def _feather_shape(steps: int = 16) -> list[tuple[float, float]]:
    """A horizontal feather: short shaft on the left, asymmetric vane."""
    shaft_end = 0.12
    upper = []
    lower = []
    for i in range(steps + 1):
        t = i / steps
        x = shaft_end + t * (1 - shaft_end)
        upper.append((x, 0.48 - 0.36 * math.sin(math.pi * t) ** 0.8))
        lower.append((x, 0.52 + 0.2 * math.sin(math.pi * t) ** 0.8))
    return [(0.0, 0.48), *upper, *reversed(lower), (0.0, 0.52)]


def _leaf_shape(steps: int = 12) -> list[tuple[float, float]]:
    """A symmetric leaf pointed at both ends."""
    upper = [(i / steps, 0.5 - 0.3 * math.sin(math.pi * i / steps)) for i in range(steps + 1)]
    lower = [(x, 1 - y) for x, y in upper[1:-1]]
    return [*upper, *reversed(lower)]


def _diamond_shape(
    radius: float = 0.42,
    center: tuple[float, float] = (0.5, 0.5),
) -> list[tuple[float, float]]:
    """Generate a diamond/rhombus shape."""
    cx, cy = center
    return [
        (cx, cy - radius),  # top
        (cx + radius, cy),  # right
        (cx, cy + radius),  # bottom
        (cx - radius, cy),  # left
    ]


ORNAMENTS: list[ShapeTemplate] = [
    ShapeTemplate(name="feather", vertices=_feather_shape()),
    ShapeTemplate(name="leaf", vertices=_leaf_shape()),
    ShapeTemplate(name="diamond", vertices=_diamond_shape()),
]

ORNAMENT_INDEX: dict[str, ShapeTemplate] = {s.name: s for s in ORNAMENTS}


def select_profile(profile_name: str) -> BarProfile:
    """Select a bar profile by name.

    Raises:
        ValueError: If profile_name is not recognized.
    """
    if profile_name not in PROFILE_INDEX:
        valid = ", ".join(PROFILE_INDEX.keys())
        raise ValueError(f"Unknown bar profile '{profile_name}'. Valid profiles: {valid}")
    return PROFILE_INDEX[profile_name]


def select_ornament(shape_name: str) -> ShapeTemplate:
    """Select an ornament template by name.

    Args:
        shape_name: Ornament name (feather, leaf, diamond).

    Returns:
        ShapeTemplate for the requested ornament.

    Raises:
        ValueError: If shape_name is not recognized.
    """
    if shape_name not in ORNAMENT_INDEX:
        valid = ", ".join(ORNAMENT_INDEX.keys())
        raise ValueError(f"Unknown ornament '{shape_name}'. Valid ornaments: {valid}")
    return ORNAMENT_INDEX[shape_name]
