"""Tests for stylized rendering and re-scanning."""

import pytest

from feather_code.decoder import decode
from feather_code.encoder import encode
from feather_code.errors import StyleViolatesReadability
from feather_code.model import ModuleSequence
from feather_code.renderer import (
    StyleConfig,
    VisualOutput,
    check_style,
    render,
    render_png,
    render_svg,
    rescan_png,
    scan_row,
)

try:
    import cairosvg  # noqa: F401

    HAS_CAIRO = True
except (ImportError, OSError):
    HAS_CAIRO = False

needs_cairo = pytest.mark.skipif(not HAS_CAIRO, reason="Cairo library not available")


def _scan_band_rows(output: VisualOutput) -> list[float]:
    step = (output.scan_bottom - output.scan_top) / 10
    return [output.scan_top + step * i for i in range(1, 10)]


class TestRender:
    def test_default_style(self):
        seq = encode("PJJ123C")
        output = render(seq)
        assert isinstance(output, VisualOutput)
        assert output.width == seq.total_width * 4.0
        assert output.scan_top < output.scan_bottom

    def test_one_polygon_per_bar(self):
        seq = encode("PJJ123C")
        output = render(seq)
        bars = [p for p in output.polygons if p["role"] == "bar"]
        assert len(bars) == (len(seq.widths) + 1) // 2
        assert all(p["module_index"] % 2 == 0 for p in bars)

    def test_flat_rescan_matches_sequence(self):
        seq = encode("Hello World")
        output = render(seq)
        for y in _scan_band_rows(output):
            widths = scan_row(output, y)
            assert widths == pytest.approx(seq.to_list())

    def test_every_profile_decodes(self):
        seq = encode("Feather 42")
        for profile in ["flat", "tapered", "feathered", "quill"]:
            output = render(seq, StyleConfig(bar_profile=profile))
            for y in _scan_band_rows(output):
                assert decode(scan_row(output, y)) == "Feather 42", f"Failed for {profile}"

    def test_feather_barbs_stay_within_tolerance(self):
        seq = encode("PJJ123C")
        output = render(seq, StyleConfig(bar_profile="feathered", feather_depth=0.1))
        nominal = seq.to_list()
        for y in _scan_band_rows(output):
            measured = scan_row(output, y)
            edges_nominal = [sum(nominal[: i + 1]) for i in range(len(nominal) - 1)]
            edges_measured = [sum(measured[: i + 1]) for i in range(len(measured) - 1)]
            for a, b in zip(edges_nominal, edges_measured):
                assert abs(a - b) <= 0.1 + 1e-9

    def test_tapered_ends_stay_outside_scan_band(self):
        seq = encode("PJJ123C")
        output = render(seq, StyleConfig(bar_profile="tapered"))
        near_tip = scan_row(output, 1.0)
        assert near_tip[1] < seq.widths[0]
        assert scan_row(output, output.scan_top + 1) == pytest.approx(seq.to_list())

    def test_rounded_corners(self):
        seq = encode("PJJ123C")
        output = render(seq, StyleConfig(corner="rounded", corner_radius=0.5))
        bar = output.polygons[0]["vertices"]
        assert len(bar) > 8
        assert decode(scan_row(output, (output.scan_top + output.scan_bottom) / 2)) == "PJJ123C"

    def test_ornament_is_drawn_above_bars(self):
        seq = encode("PJJ123C")
        output = render(seq, StyleConfig(ornament="feather", ornament_height=40))
        ornaments = [p for p in output.polygons if p["role"] == "ornament"]
        assert len(ornaments) == 1
        assert max(y for _, y in ornaments[0]["vertices"]) <= 40
        assert output.height == 40 + 160
        assert decode(scan_row(output, output.scan_top + 5)) == "PJJ123C"

    def test_style_does_not_change_sequence(self):
        seq = encode("PJJ123C")
        before = seq.to_list()
        render(seq, StyleConfig(bar_profile="quill", corner="rounded", corner_radius=1.0))
        assert seq.to_list() == before


class TestStyleSafety:
    def test_low_contrast_rejected(self):
        with pytest.raises(StyleViolatesReadability) as exc_info:
            render(encode("A"), StyleConfig(bar_color="#DDDDDD", space_color="#FFFFFF"))
        assert exc_info.value.value == "bar_color"

    def test_inverted_colors_rejected(self):
        with pytest.raises(StyleViolatesReadability):
            check_style(StyleConfig(bar_color="#FFFFFF", space_color="#000000"))

    def test_deep_feathers_rejected(self):
        with pytest.raises(StyleViolatesReadability) as exc_info:
            render(encode("A"), StyleConfig(bar_profile="feathered", feather_depth=0.3))
        assert exc_info.value.value == "feather_depth"

    def test_feather_depth_ignored_without_barbs(self):
        check_style(StyleConfig(bar_profile="tapered", feather_depth=0.3))

    def test_large_corner_radius_rejected(self):
        with pytest.raises(StyleViolatesReadability):
            check_style(StyleConfig(corner="rounded", corner_radius=1.5))

    def test_corner_radius_beyond_margin_rejected(self):
        with pytest.raises(StyleViolatesReadability):
            check_style(
                StyleConfig(corner="rounded", corner_radius=1.0, module_px=8, decoration_margin=4)
            )

    def test_margins_must_leave_scan_band(self):
        with pytest.raises(StyleViolatesReadability):
            check_style(StyleConfig(bar_height=30, decoration_margin=15))

    def test_tighter_tolerance_rejects_default_feathers(self):
        with pytest.raises(StyleViolatesReadability):
            render(encode("A"), StyleConfig(bar_profile="quill", tolerance=0.05))

    def test_readability_errors_are_value_errors(self):
        with pytest.raises(ValueError):
            check_style(StyleConfig(bar_color="#EEEEEE"))


class TestStyleConfig:
    def test_unknown_profile(self):
        with pytest.raises(ValueError, match="Valid profiles"):
            StyleConfig(bar_profile="wavy")

    def test_unknown_corner(self):
        with pytest.raises(ValueError, match="Valid corners"):
            StyleConfig(corner="beveled")

    def test_unknown_ornament(self):
        with pytest.raises(ValueError, match="Valid ornaments"):
            StyleConfig(ornament="star")

    def test_tolerance_range(self):
        with pytest.raises(ValueError):
            StyleConfig(tolerance=0.5)
        with pytest.raises(ValueError):
            StyleConfig(tolerance=0)

    def test_negative_min_contrast_rejected(self):
        with pytest.raises(ValueError, match="min_contrast"):
            StyleConfig(bar_color="#FFFFFF", space_color="#000000", min_contrast=-1.0)

    def test_non_positive_ornament_height_rejected(self):
        with pytest.raises(ValueError, match="ornament_height"):
            StyleConfig(ornament="leaf", ornament_height=0)
        with pytest.raises(ValueError, match="ornament_height"):
            StyleConfig(ornament_height=-10)

    def test_non_positive_module_rejected(self):
        with pytest.raises(ValueError):
            StyleConfig(module_px=0)


class TestRenderSVG:
    def test_render_svg_produces_valid_svg(self):
        svg = render_svg(render(encode("PJJ123C")))
        assert svg.startswith("<svg")
        assert svg.endswith("</svg>")
        assert "xmlns" in svg

    def test_render_svg_uses_colors(self):
        style = StyleConfig(bar_color="#102030", space_color="#FAFAF0")
        svg = render_svg(render(encode("PJJ123C"), style))
        assert "#102030" in svg
        assert "#FAFAF0" in svg

    def test_render_svg_size(self):
        seq = encode("PJJ123C")
        svg = render_svg(render(seq, StyleConfig(module_px=2, bar_height=100)))
        assert f'width="{int(seq.total_width * 2)}"' in svg
        assert 'height="100"' in svg

    def test_render_svg_contains_bars(self):
        svg = render_svg(render(encode("PJJ123C")))
        assert svg.count('class="bar"') == 31


@needs_cairo
class TestRenderPNG:
    def test_render_png_produces_png(self):
        png_bytes = render_png(render(encode("PJJ123C")))
        assert png_bytes[:4] == b"\x89PNG"

    def test_png_rescan_decodes(self):
        output = render(encode("Hello World"))
        seq = rescan_png(render_png(output), output)
        assert isinstance(seq, ModuleSequence)
        assert decode(seq) == "Hello World"

    def test_png_rescan_with_ornament_and_tapering(self):
        style = StyleConfig(
            bar_profile="tapered",
            corner="rounded",
            corner_radius=1.0,
            ornament="leaf",
        )
        output = render(encode("PJJ123C"), style)
        assert decode(rescan_png(render_png(output), output)) == "PJJ123C"

    def test_blank_row_raises(self):
        output = render(encode("PJJ123C"), StyleConfig(ornament="diamond"))
        with pytest.raises(ValueError, match="No bars"):
            rescan_png(render_png(output), output, row=1.0)
