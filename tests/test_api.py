"""Tests for Feather Code FastAPI endpoints."""

import pytest
from fastapi.testclient import TestClient

from feather_code.main import app

try:
    import cairosvg  # noqa: F401

    HAS_CAIRO = True
except (ImportError, OSError):
    HAS_CAIRO = False

client = TestClient(app)


class TestHealthEndpoint:
    def test_health_returns_200(self):
        resp = client.get("/health")
        assert resp.status_code == 200
        data = resp.json()
        assert data["status"] == "healthy"
        assert data["service"] == "feather-code"

    def test_health_includes_version(self):
        resp = client.get("/health")
        data = resp.json()
        assert "version" in data


class TestEncodeEndpoint:
    def test_encode_returns_widths_and_symbols(self):
        resp = client.post("/encode", json={"text": "PJJ123C"})
        assert resp.status_code == 200
        data = resp.json()
        assert data["symbols"] == [103, 48, 42, 42, 17, 18, 19, 35, 54, 106]
        assert data["start_set"] == "A"
        assert data["module_count"] == 112
        assert data["widths"][0] == 10
        assert data["widths"][-1] == 10
        assert sum(data["widths"][1:-1]) == 112

    def test_encode_gs1(self):
        resp = client.post("/encode", json={"text": "42184020500", "gs1": True})
        assert resp.status_code == 200
        assert resp.json()["symbols"][:2] == [105, 102]

    def test_encode_unencodable_returns_422(self):
        resp = client.post("/encode", json={"text": "héllo"})
        assert resp.status_code == 422
        assert "not representable" in resp.json()["detail"]

    def test_encode_too_long_returns_422(self):
        resp = client.post("/encode", json={"text": "x" * 81})
        assert resp.status_code == 422

    def test_encode_small_quiet_zone_returns_422(self):
        resp = client.post("/encode", json={"text": "A", "quiet_zone": 2})
        assert resp.status_code == 422


class TestRenderEndpoints:
    def test_encode_svg_returns_svg(self):
        resp = client.post(
            "/encode/svg",
            json={"text": "Hello World", "bar_profile": "feathered", "ornament": "feather"},
        )
        assert resp.status_code == 200
        assert "image/svg+xml" in resp.headers["content-type"]
        assert "<svg" in resp.text
        assert 'class="ornament"' in resp.text

    def test_encode_svg_with_custom_colors(self):
        resp = client.post(
            "/encode/svg",
            json={"text": "PJJ123C", "bar_color": "#003300", "space_color": "#F0FFF0"},
        )
        assert resp.status_code == 200
        assert "#003300" in resp.text

    def test_unreadable_style_returns_422(self):
        resp = client.post(
            "/encode/svg",
            json={"text": "PJJ123C", "bar_profile": "quill", "feather_depth": 0.4},
        )
        assert resp.status_code == 422
        assert "Feather depth" in resp.json()["detail"]

    def test_unknown_profile_returns_422(self):
        resp = client.post("/encode/svg", json={"text": "PJJ123C", "bar_profile": "wavy"})
        assert resp.status_code == 422

    @pytest.mark.skipif(not HAS_CAIRO, reason="Cairo library not available")
    def test_encode_png_returns_image(self):
        resp = client.post("/encode/png", json={"text": "PJJ123C", "bar_profile": "tapered"})
        assert resp.status_code == 200
        assert resp.headers["content-type"] == "image/png"
        assert resp.content[:4] == b"\x89PNG"


class TestDecodeEndpoint:
    def test_decode_roundtrip(self):
        widths = client.post("/encode", json={"text": "Hello World"}).json()["widths"]
        resp = client.post("/decode", json={"widths": widths})
        assert resp.status_code == 200
        data = resp.json()
        assert data["text"] == "Hello World"
        assert data["error"] is None

    def test_decode_failure_is_reported_in_body(self):
        widths = client.post("/encode", json={"text": "Hello World"}).json()["widths"]
        widths[0] = 3
        resp = client.post("/decode", json={"widths": widths})
        assert resp.status_code == 200
        data = resp.json()
        assert data["text"] is None
        assert data["error_type"] == "MissingQuietZone"
        assert data["position"] == 0

    def test_decode_with_relaxed_quiet_zone(self):
        widths = client.post("/encode", json={"text": "PJJ123C"}).json()["widths"]
        widths[0] = 3
        resp = client.post("/decode", json={"widths": widths, "min_quiet_zone": 3})
        assert resp.json()["text"] == "PJJ123C"

    def test_decode_invalid_tolerance_returns_422(self):
        resp = client.post("/decode", json={"widths": [10, 10], "width_tolerance": 0.7})
        assert resp.status_code == 422
