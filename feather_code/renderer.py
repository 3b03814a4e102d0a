"""Stylized rendering of module sequences.

Maps a ModuleSequence to a VisualOutput: a canvas description made of
polygons that export code can turn into SVG or PNG.

Layout (top to bottom):
- optional ornament box above the bars
- bar region, made of a decoration margin, the scan band and a second
  decoration margin

Styling rules:
- Colours, tapering and rounded corners only touch the decoration margins
- Feather barbs run along the bar edges inside the scan band. The left
  and right barbs are half a period out of phase, so every space loses
  exactly ``feather_depth`` modules at every row and no edge moves further
  than that
- After drawing, every sampled row of the scan band is re-scanned and
  each bar/space boundary must lie within ``tolerance`` modules of its
  nominal position. Otherwise the style is rejected with
  StyleViolatesReadability; the sequence itself is untouched.
"""

from __future__ import annotations

import io
import math
from dataclasses import dataclass, field

import numpy as np
import structlog
from PIL import Image

from .errors import StyleViolatesReadability
from .model import BAR, ModuleSequence
from .shapes import CORNERS, BarProfile, select_ornament, select_profile

logger = structlog.get_logger(__name__)

DEFAULT_BAR_COLOR = "#1A202C"
DEFAULT_SPACE_COLOR = "#FFFFFF"

# Maximum boundary displacement, in modules
BOUNDARY_TOLERANCE = 0.10

# Rows of the scan band checked after drawing
SCAN_ROWS = 9


@dataclass(frozen=True)
class StyleConfig:
    """Cosmetic rendering options. Never affects the encoded data.

    Attributes:
        bar_color: Fill for bars.
        space_color: Background, spaces and quiet zones.
        bar_profile: Bar outline (flat, tapered, feathered, quill).
        corner: Corner treatment of bar ends (square, rounded).
        corner_radius: Radius of rounded corners, in modules.
        module_px: Width of one module in output units.
        bar_height: Height of the bar region in output units.
        decoration_margin: Height at each bar end reserved for caps and
            tapering, outside the scan band.
        feather_depth: Barb depth, in modules.
        feather_period: Vertical barb period in output units.
        ornament: Optional motif drawn above the bars.
        ornament_height: Height of the ornament box.
        ornament_color: Ornament fill; defaults to bar_color.
        tolerance: Maximum boundary displacement, in modules.
        min_contrast: Minimum luminance difference between space and bar.
    """

    bar_color: str = DEFAULT_BAR_COLOR
    space_color: str = DEFAULT_SPACE_COLOR
    bar_profile: str = "flat"
    corner: str = "square"
    corner_radius: float = 0.0
    module_px: float = 4.0
    bar_height: float = 160.0
    decoration_margin: float = 16.0
    feather_depth: float = 0.08
    feather_period: float = 12.0
    ornament: str | None = None
    ornament_height: float = 48.0
    ornament_color: str | None = None
    tolerance: float = BOUNDARY_TOLERANCE
    min_contrast: float = 0.5

    def __post_init__(self) -> None:
        select_profile(self.bar_profile)
        if self.ornament is not None:
            select_ornament(self.ornament)
        if self.corner not in CORNERS:
            raise ValueError(f"Unknown corner '{self.corner}'. Valid corners: {', '.join(CORNERS)}")
        if self.module_px <= 0 or self.bar_height <= 0 or self.feather_period <= 0:
            raise ValueError("module_px, bar_height and feather_period must be positive")
        if self.decoration_margin < 0 or self.corner_radius < 0 or self.feather_depth < 0:
            raise ValueError("decoration_margin, corner_radius and feather_depth must be >= 0")
        if self.ornament_height <= 0:
            raise ValueError(f"ornament_height must be positive, got {self.ornament_height}")
        if self.min_contrast < 0:
            raise ValueError(f"min_contrast must be >= 0, got {self.min_contrast}")
        if not 0 < self.tolerance < 0.5:
            raise ValueError(f"tolerance must be in (0, 0.5), got {self.tolerance}")


@dataclass(frozen=True)
class VisualOutput:
    """Abstract drawable description of a rendered barcode.

    Attributes:
        width, height: Canvas size in output units.
        module_px: Width of one module.
        scan_top, scan_bottom: Vertical extent of the scan band.
        background: Canvas fill (the space colour).
        polygons: Drawables, each a dict with keys:
            - vertices: List of (x, y) tuples
            - fill: Hex colour
            - role: "bar" or "ornament"
            - module_index: Index into the sequence widths (bars only)
    """

    width: float
    height: float
    module_px: float
    scan_top: float
    scan_bottom: float
    background: str
    polygons: list[dict] = field(default_factory=list)


def _hex_to_rgb(hex_color: str) -> tuple[int, int, int]:
    """Convert a hex color string to (r, g, b) tuple."""
    h = hex_color.lstrip("#")
    if len(h) != 6:
        raise ValueError(f"Expected a #RRGGBB colour, got '{hex_color}'")
    return (int(h[0:2], 16), int(h[2:4], 16), int(h[4:6], 16))


def _luminance(hex_color: str) -> float:
    """Relative luminance in [0, 1]."""
    r, g, b = _hex_to_rgb(hex_color)
    return (0.299 * r + 0.587 * g + 0.114 * b) / 255


def check_style(style: StyleConfig) -> None:
    """Reject styles that cannot keep module boundaries readable.

    Raises:
        StyleViolatesReadability: With the offending option as ``value``.
    """
    contrast = _luminance(style.space_color) - _luminance(style.bar_color)
    if contrast < style.min_contrast:
        raise StyleViolatesReadability(
            f"Bar/space contrast {contrast:.2f} is below {style.min_contrast} "
            f"(bars must be darker than spaces)",
            value="bar_color",
        )

    if 2 * style.decoration_margin >= style.bar_height:
        raise StyleViolatesReadability(
            "Decoration margins leave no scan band",
            value="decoration_margin",
        )

    if style.corner == "rounded":
        if style.corner_radius > 1.0:
            raise StyleViolatesReadability(
                f"Corner radius {style.corner_radius} modules exceeds the module width",
                value="corner_radius",
            )
        if style.corner_radius * style.module_px > style.decoration_margin:
            raise StyleViolatesReadability(
                "Rounded corners reach into the scan band",
                value="corner_radius",
            )

    profile = select_profile(style.bar_profile)
    if profile.barbs and style.feather_depth > style.tolerance:
        raise StyleViolatesReadability(
            f"Feather depth {style.feather_depth} modules exceeds tolerance {style.tolerance}",
            value="feather_depth",
        )


def _triangle(phase: float) -> float:
    """Triangle wave: 0 at integer phases, 1 at half-integer phases."""
    return 1 - abs(1 - 2 * (phase % 1))


def _bar_outline(
    x0: float,
    x1: float,
    top: float,
    bottom: float,
    profile: BarProfile,
    style: StyleConfig,
) -> list[tuple[float, float]]:
    """Outline of one bar: left edge top-down, then right edge bottom-up."""
    bar_width = x1 - x0
    margin = style.decoration_margin
    depth = style.feather_depth * style.module_px if profile.barbs else 0.0
    radius = style.corner_radius * style.module_px if style.corner == "rounded" else 0.0
    period = style.feather_period

    ys = {top, bottom, top + margin, bottom - margin}
    if depth:
        ys.update(float(y) for y in np.arange(top, bottom, period / 2))
    if radius:
        ys.update(float(y) for y in np.linspace(top, top + radius, 7))
        ys.update(float(y) for y in np.linspace(bottom - radius, bottom, 7))
    rows = sorted(y for y in ys if top <= y <= bottom)

    def inset(y: float) -> float:
        from_end = min(y - top, bottom - y)
        amount = 0.0
        if radius and from_end < radius:
            amount = radius - math.sqrt(radius**2 - (radius - from_end) ** 2)
        if profile.taper and margin and from_end < margin:
            amount = max(amount, profile.taper * bar_width * (1 - from_end / margin))
        return min(amount, bar_width / 2)

    def barb(y: float, offset: float) -> float:
        return depth * _triangle((y - top) / period + offset) if depth else 0.0

    left = [(x0 - barb(y, 0.0) + inset(y), y) for y in rows]
    right = [(x1 + barb(y, 0.5) - inset(y), y) for y in reversed(rows)]
    return left + right


def _ornament_polygon(style: StyleConfig, x0: float, x1: float) -> dict:
    """Scale the ornament template into the box above the bars."""
    template = select_ornament(style.ornament)
    box_h = style.ornament_height * 0.8
    box_w = min(x1 - x0, box_h * 3)
    left = x0 + (x1 - x0 - box_w) / 2
    top = style.ornament_height * 0.1
    vertices = [(left + x * box_w, top + y * box_h) for x, y in template.vertices]
    return {
        "vertices": vertices,
        "fill": style.ornament_color or style.bar_color,
        "role": "ornament",
        "module_index": None,
    }


def _row_intervals(polygons: list[dict], y: float) -> list[tuple[float, float]]:
    """Horizontal extents covered by ink on row y, merged and sorted."""
    spans: list[tuple[float, float]] = []
    for poly in polygons:
        vertices = poly["vertices"]
        xs = []
        for (px, py), (qx, qy) in zip(vertices, vertices[1:] + vertices[:1]):
            if (py <= y < qy) or (qy <= y < py):
                xs.append(px + (y - py) * (qx - px) / (qy - py))
        if len(xs) >= 2:
            spans.append((min(xs), max(xs)))

    merged: list[tuple[float, float]] = []
    for a, b in sorted(spans):
        if merged and a <= merged[-1][1]:
            merged[-1] = (merged[-1][0], max(merged[-1][1], b))
        else:
            merged.append((a, b))
    return merged


def scan_row(output: VisualOutput, y: float) -> list[float]:
    """Re-scan one row of a rendered output.

    Returns:
        Widths in modules, in the ModuleSequence external form
        (quiet zone, bar, space, ..., bar, quiet zone).
    """
    edges = [0.0]
    for a, b in _row_intervals(output.polygons, y):
        edges.extend((a, b))
    edges.append(output.width)
    return (np.diff(edges) / output.module_px).tolist()


def _verify_boundaries(output: VisualOutput, sequence: ModuleSequence, tolerance: float) -> None:
    """Compare re-scanned boundaries with the nominal ones on every sampled row."""
    nominal = np.cumsum(sequence.to_list())[:-1]
    rows = np.linspace(output.scan_top, output.scan_bottom, SCAN_ROWS + 2)[1:-1]

    for y in rows:
        measured = np.cumsum(scan_row(output, float(y)))[:-1]
        if len(measured) != len(nominal):
            raise StyleViolatesReadability(
                f"Re-scan at y={y:.1f} found {len(measured)} boundaries, expected {len(nominal)}",
                value=len(measured),
            )
        displacement = np.abs(measured - nominal)
        worst = int(np.argmax(displacement))
        if displacement[worst] > tolerance + 1e-9:
            raise StyleViolatesReadability(
                f"Boundary {worst} moved {displacement[worst]:.3f} modules at y={y:.1f} "
                f"(tolerance {tolerance})",
                position=worst,
                value=float(displacement[worst]),
            )


def render(sequence: ModuleSequence, style: StyleConfig | None = None) -> VisualOutput:
    """Render a module sequence with a style.

    Args:
        sequence: Encoded module sequence.
        style: Cosmetic options; defaults to StyleConfig().

    Returns:
        VisualOutput describing the drawing.

    Raises:
        StyleViolatesReadability: If the style would move, merge or split
            module boundaries beyond tolerance.
    """
    style = style or StyleConfig()
    check_style(style)
    profile = select_profile(style.bar_profile)
    m = style.module_px

    ornament_h = style.ornament_height if style.ornament else 0.0
    top = ornament_h
    bottom = ornament_h + style.bar_height

    polygons: list[dict] = []
    x = sequence.leading_quiet_zone * m
    symbol_left = x
    for index, (width, polarity) in enumerate(sequence.elements()):
        if polarity == BAR:
            polygons.append(
                {
                    "vertices": _bar_outline(x, x + width * m, top, bottom, profile, style),
                    "fill": style.bar_color,
                    "role": "bar",
                    "module_index": index,
                }
            )
        x += width * m

    if style.ornament:
        polygons.append(_ornament_polygon(style, symbol_left, x))

    output = VisualOutput(
        width=sequence.total_width * m,
        height=bottom,
        module_px=m,
        scan_top=top + style.decoration_margin,
        scan_bottom=bottom - style.decoration_margin,
        background=style.space_color,
        polygons=polygons,
    )
    _verify_boundaries(output, sequence, style.tolerance)

    logger.debug(
        "rendered",
        profile=profile.name,
        corner=style.corner,
        polygon_count=len(polygons),
        width=output.width,
        height=output.height,
    )
    return output


def render_svg(output: VisualOutput) -> str:
    """Serialize a VisualOutput as an SVG document string."""
    width = math.ceil(output.width)
    height = math.ceil(output.height)
    svg_parts: list[str] = [
        f'<svg xmlns="http://www.w3.org/2000/svg" '
        f'viewBox="0 0 {width} {height}" '
        f'width="{width}" height="{height}">',
        f'  <rect width="{width}" height="{height}" fill="{output.background}"/>',
    ]

    for poly in output.polygons:
        points_str = " ".join(f"{x:.2f},{y:.2f}" for x, y in poly["vertices"])
        svg_parts.append(
            f'  <polygon points="{points_str}" '
            f'fill="{poly["fill"]}" '
            f'stroke="none" '
            f'class="{poly["role"]}"/>'
        )

    svg_parts.append("</svg>")
    svg_content = "\n".join(svg_parts)

    logger.debug("svg_rendered", polygon_count=len(output.polygons), width=width, height=height)
    return svg_content


def render_png(output: VisualOutput) -> bytes:
    """Rasterize a VisualOutput to PNG via CairoSVG."""
    import cairosvg

    svg = render_svg(output)
    png_bytes = cairosvg.svg2png(
        bytestring=svg.encode("utf-8"),
        output_width=math.ceil(output.width),
        output_height=math.ceil(output.height),
    )

    logger.debug("png_rendered", bytes=len(png_bytes))
    return png_bytes


def rescan_png(png_bytes: bytes, output: VisualOutput, row: float | None = None) -> ModuleSequence:
    """Sample one pixel row of a rendered PNG back into module widths.

    Args:
        png_bytes: PNG produced by render_png().
        output: The VisualOutput the PNG was rendered from.
        row: Row to sample; defaults to the middle of the scan band.

    Returns:
        ModuleSequence with fractional widths, ready for decode().

    Raises:
        ValueError: If the row holds no bars.
    """
    img = Image.open(io.BytesIO(png_bytes)).convert("L")
    gray = np.asarray(img, dtype=float)
    scale = img.width / output.width

    y = row if row is not None else (output.scan_top + output.scan_bottom) / 2
    line = gray[min(int(y * scale), gray.shape[0] - 1)]

    # Midpoint between the darkest and lightest pixel on the row
    threshold = (float(line.min()) + float(line.max())) / 2
    dark = line < threshold
    if not dark.any():
        raise ValueError(f"No bars found on row {y}")

    changes = np.flatnonzero(np.diff(dark.astype(np.int8))) + 1
    bounds = np.concatenate(([0], changes, [len(line)]))
    widths = (np.diff(bounds) / (output.module_px * scale)).tolist()
    if dark[0]:
        widths.insert(0, 0.0)
    if dark[-1]:
        widths.append(0.0)

    logger.debug("png_rescanned", row=y, runs=len(widths), threshold=threshold)
    return ModuleSequence.from_list(widths)
