"""Tests for the Code128 symbol table."""

import pytest

from feather_code.errors import UnencodableSymbol
from feather_code.symbols import (
    STOP,
    WIDTHS,
    CodeSet,
    char_for,
    in_set,
    other_set,
    require_value,
    value_for,
    value_for_widths,
    widths_for,
)


class TestWidths:
    def test_table_has_107_patterns(self):
        assert len(WIDTHS) == 107

    def test_symbols_have_six_widths_summing_to_11(self):
        for value in range(STOP):
            widths = widths_for(value)
            assert len(widths) == 6, f"value {value}"
            assert sum(widths) == 11, f"value {value}"

    def test_stop_has_seven_widths_summing_to_13(self):
        assert widths_for(STOP) == (2, 3, 3, 1, 1, 1, 2)
        assert sum(widths_for(STOP)) == 13

    def test_widths_are_between_1_and_4(self):
        for widths in WIDTHS:
            assert all(1 <= w <= 4 for w in widths)

    def test_patterns_are_unique(self):
        assert len(set(WIDTHS)) == len(WIDTHS)

    def test_known_patterns(self):
        assert widths_for(0) == (2, 1, 2, 2, 2, 2)
        assert widths_for(103) == (2, 1, 1, 4, 1, 2)
        assert widths_for(104) == (2, 1, 1, 2, 1, 4)
        assert widths_for(105) == (2, 1, 1, 2, 3, 2)

    def test_out_of_range_value_raises(self):
        with pytest.raises(ValueError, match="out of range"):
            widths_for(107)
        with pytest.raises(ValueError):
            widths_for(-1)

    def test_reverse_lookup(self):
        for value in range(STOP + 1):
            assert value_for_widths(widths_for(value)) == value

    def test_reverse_lookup_unknown_pattern(self):
        assert value_for_widths((1, 1, 1, 1, 1, 6)) is None


class TestCodeSets:
    def test_set_a_printable(self):
        assert value_for(CodeSet.A, " ") == 0
        assert value_for(CodeSet.A, "A") == 33
        assert value_for(CodeSet.A, "_") == 63

    def test_set_a_control_characters(self):
        assert value_for(CodeSet.A, "\x00") == 64
        assert value_for(CodeSet.A, "\x1f") == 95

    def test_set_a_has_no_lowercase(self):
        assert value_for(CodeSet.A, "a") is None
        assert not in_set(CodeSet.A, "a")

    def test_set_b(self):
        assert value_for(CodeSet.B, "a") == 65
        assert value_for(CodeSet.B, "\x7f") == 95
        assert value_for(CodeSet.B, "\x01") is None

    def test_set_c_digit_pairs(self):
        assert value_for(CodeSet.C, "00") == 0
        assert value_for(CodeSet.C, "42") == 42
        assert value_for(CodeSet.C, "99") == 99
        assert value_for(CodeSet.C, "4") is None

    def test_char_for_is_inverse(self):
        assert char_for(CodeSet.A, 65) == "\x01"
        assert char_for(CodeSet.B, 65) == "a"
        assert char_for(CodeSet.C, 7) == "07"
        assert char_for(CodeSet.B, 99) is None

    def test_require_value_raises_with_position(self):
        with pytest.raises(UnencodableSymbol) as exc_info:
            require_value(CodeSet.A, "z", position=3)
        assert exc_info.value.position == 3
        assert exc_info.value.value == "z"

    def test_other_set(self):
        assert other_set(CodeSet.A) is CodeSet.B
        assert other_set(CodeSet.B) is CodeSet.A
        with pytest.raises(ValueError):
            other_set(CodeSet.C)
