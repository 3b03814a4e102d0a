"""Tests for bar profiles and ornament templates."""

import pytest

from feather_code.shapes import (
    ORNAMENT_INDEX,
    ORNAMENTS,
    PROFILE_INDEX,
    PROFILES,
    select_ornament,
    select_profile,
)


class TestProfiles:
    def test_profile_names(self):
        assert set(PROFILE_INDEX) == {"flat", "tapered", "feathered", "quill"}
        assert len(PROFILE_INDEX) == len(PROFILES)

    def test_select_known_profile(self):
        profile = select_profile("quill")
        assert profile.barbs
        assert profile.taper > 0

    def test_flat_has_no_decoration(self):
        profile = select_profile("flat")
        assert not profile.barbs
        assert profile.taper == 0

    def test_taper_never_exceeds_half_width(self):
        for profile in PROFILES:
            assert 0 <= profile.taper <= 0.5

    def test_select_unknown_raises(self):
        with pytest.raises(ValueError, match="Unknown bar profile"):
            select_profile("zigzag")


class TestOrnaments:
    def test_all_ornaments_have_vertices(self):
        for ornament in ORNAMENTS:
            assert len(ornament.vertices) >= 3

    def test_all_ornaments_in_index(self):
        assert len(ORNAMENT_INDEX) == len(ORNAMENTS)
        assert set(ORNAMENT_INDEX) == {"feather", "leaf", "diamond"}

    def test_all_vertices_in_unit_space(self):
        for ornament in ORNAMENTS:
            for x, y in ornament.vertices:
                assert 0.0 <= x <= 1.0, f"{ornament.name}: x={x} out of [0,1]"
                assert 0.0 <= y <= 1.0, f"{ornament.name}: y={y} out of [0,1]"

    def test_diamond_is_four_points(self):
        assert len(select_ornament("diamond").vertices) == 4

    def test_select_unknown_raises(self):
        with pytest.raises(ValueError, match="Unknown ornament"):
            select_ornament("star")
