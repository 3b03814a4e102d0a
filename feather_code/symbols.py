"""Static Code128 symbol table.

Maps the 107 code values to their bar/space module widths and to their
meaning in each of the three code sets:

- A: ASCII 32-95 at values 0-63, control characters (ASCII 0-31) at 64-95
- B: printable ASCII 32-127 at values 0-95
- C: digit pairs "00"-"99" at values 0-99

Values 96-106 are instructions (function codes, shift, latches, start
and stop) whose meaning depends on the active set. The tables are built
once at import time and never mutated, so they can be read from any
number of threads without locking.
"""

from __future__ import annotations

from enum import Enum

from .errors import UnencodableSymbol


class CodeSet(str, Enum):
    """One of the three interchangeable Code128 character tables."""

    A = "A"
    B = "B"
    C = "C"


# Instruction values
FNC3 = 96
FNC2 = 97
SHIFT = 98
CODE_C = 99
CODE_B = 100  # FNC4 while in set B
CODE_A = 101  # FNC4 while in set A
FNC1 = 102
START_A = 103
START_B = 104
START_C = 105
STOP = 106

SYMBOL_MODULES = 11
STOP_MODULES = 13

START_VALUES: dict[CodeSet, int] = {
    CodeSet.A: START_A,
    CodeSet.B: START_B,
    CodeSet.C: START_C,
}

START_SETS: dict[int, CodeSet] = {v: k for k, v in START_VALUES.items()}

LATCH_VALUES: dict[CodeSet, int] = {
    CodeSet.A: CODE_A,
    CodeSet.B: CODE_B,
    CodeSet.C: CODE_C,
}

FUNCTION_VALUES: dict[int, int] = {1: FNC1, 2: FNC2, 3: FNC3}

# Bar/space widths for values 0-106 (bar first). Value 106 is the Stop
# pattern, the only one with seven elements.
_PATTERNS: tuple[str, ...] = (
    "212222", "222122", "222221", "121223", "121322", "131222", "122213", "122312",
    "132212", "221213", "221312", "231212", "112232", "122132", "122231", "113222",
    "123122", "123221", "223211", "221132", "221231", "213212", "223112", "312131",
    "311222", "321122", "321221", "312212", "322112", "322211", "212123", "212321",
    "232121", "111323", "131123", "131321", "112313", "132113", "132311", "211313",
    "231113", "231311", "112133", "112331", "132131", "113123", "113321", "133121",
    "313121", "211331", "231131", "213113", "213311", "213131", "311123", "311321",
    "331121", "312113", "312311", "332111", "314111", "221411", "431111", "111224",
    "111422", "121124", "121421", "141122", "141221", "112214", "112412", "122114",
    "122411", "142112", "142211", "241211", "221114", "413111", "241112", "134111",
    "111242", "121142", "121241", "114212", "124112", "124211", "411212", "421112",
    "421211", "212141", "214121", "412121", "111143", "111341", "131141", "114113",
    "114311", "411113", "411311", "113141", "114131", "311141", "411131", "211412",
    "211214", "211232", "2331112",
)

WIDTHS: tuple[tuple[int, ...], ...] = tuple(tuple(int(c) for c in p) for p in _PATTERNS)

_VALUE_BY_WIDTHS: dict[tuple[int, ...], int] = {w: i for i, w in enumerate(WIDTHS)}

_VALUES: dict[CodeSet, dict[str, int]] = {
    CodeSet.A: {
        **{chr(c): c - 32 for c in range(32, 96)},
        **{chr(c): c + 64 for c in range(0, 32)},
    },
    CodeSet.B: {chr(c): c - 32 for c in range(32, 128)},
    CodeSet.C: {f"{n:02d}": n for n in range(100)},
}

_CHARS: dict[CodeSet, dict[int, str]] = {
    code_set: {v: s for s, v in table.items()} for code_set, table in _VALUES.items()
}


def widths_for(value: int) -> tuple[int, ...]:
    """Return the module widths of a code value.

    Args:
        value: Code value 0-106.

    Returns:
        Six widths (bar, space, ...) summing to 11 modules, or seven
        widths summing to 13 modules for the Stop value.

    Raises:
        ValueError: If value is outside 0-106.
    """
    if not 0 <= value <= STOP:
        raise ValueError(f"Code value out of range: {value}")
    return WIDTHS[value]


def value_for(code_set: CodeSet, symbol: str) -> int | None:
    """Return the code value for a character (A/B) or digit pair (C).

    None when the symbol is outside the set's domain, e.g. lowercase
    letters in set A.
    """
    return _VALUES[code_set].get(symbol)


def char_for(code_set: CodeSet, value: int) -> str | None:
    """Return the character or digit pair a data value means in a set."""
    return _CHARS[code_set].get(value)


def value_for_widths(widths: tuple[int, ...]) -> int | None:
    """Reverse lookup of a 6-width symbol or the 7-width Stop pattern."""
    return _VALUE_BY_WIDTHS.get(tuple(widths))


def in_set(code_set: CodeSet, symbol: str) -> bool:
    """True if the character or digit pair is representable in a set."""
    return symbol in _VALUES[code_set]


def require_value(code_set: CodeSet, symbol: str, position: int | None = None) -> int:
    """Like value_for(), but raises when the symbol is not representable.

    Raises:
        UnencodableSymbol: If the symbol has no value in code_set.
    """
    value = value_for(code_set, symbol)
    if value is None:
        raise UnencodableSymbol(
            f"{symbol!r} is not representable in code set {code_set.value}",
            position=position,
            value=symbol,
        )
    return value


def other_set(code_set: CodeSet) -> CodeSet:
    """The set a Shift switches to (A <-> B). Set C has no shift."""
    if code_set is CodeSet.A:
        return CodeSet.B
    if code_set is CodeSet.B:
        return CodeSet.A
    raise ValueError("Code set C has no shift partner")
