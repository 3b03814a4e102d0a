"""Value objects shared by the optimizer, encoder, decoder and renderer.

The pipeline is text -> Plan -> EncodedMessage -> ModuleSequence. Each
object is immutable and created per call; nothing here is cached or
shared between calls.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Union

from .symbols import START_VALUES, STOP, STOP_MODULES, SYMBOL_MODULES, CodeSet

BAR = "bar"
SPACE = "space"


@dataclass(frozen=True)
class Data:
    """Emit one data symbol: a character (sets A/B) or digit pair (set C)."""

    chars: str


@dataclass(frozen=True)
class Shift:
    """Interpret only the next data symbol in the other of sets A/B."""


@dataclass(frozen=True)
class Latch:
    """Switch the active set until the next latch."""

    target: CodeSet


@dataclass(frozen=True)
class FunctionCode:
    """Emit FNC1-FNC4. Function codes carry no text."""

    number: int


Instruction = Union[Data, Shift, Latch, FunctionCode]


@dataclass(frozen=True)
class Plan:
    """Optimizer output: starting set plus one instruction per symbol.

    Attributes:
        start: Code set selected by the Start symbol.
        instructions: Ordered instructions, each producing one symbol.
    """

    start: CodeSet
    instructions: tuple[Instruction, ...] = ()

    @property
    def symbol_count(self) -> int:
        """Symbols including Start, excluding checksum and Stop."""
        return 1 + len(self.instructions)

    @property
    def latch_count(self) -> int:
        return sum(1 for i in self.instructions if isinstance(i, Latch))

    @property
    def shift_count(self) -> int:
        return sum(1 for i in self.instructions if isinstance(i, Shift))

    def data_sets(self) -> list[CodeSet]:
        """Code set used for each Data instruction, in order."""
        active = self.start
        shifted = False
        sets: list[CodeSet] = []
        for instruction in self.instructions:
            if isinstance(instruction, Latch):
                active = instruction.target
            elif isinstance(instruction, Shift):
                shifted = True
            elif isinstance(instruction, Data):
                if shifted:
                    sets.append(CodeSet.B if active is CodeSet.A else CodeSet.A)
                    shifted = False
                else:
                    sets.append(active)
        return sets


@dataclass(frozen=True)
class EncodedMessage:
    """Code values of one barcode, before flattening to module widths.

    Attributes:
        start: Initial code set.
        values: Data and instruction values between Start and checksum.
        sets: Code set each entry of ``values`` was interpreted in.
        checksum: Weighted modulo-103 check value.
    """

    start: CodeSet
    values: tuple[int, ...]
    sets: tuple[CodeSet, ...]
    checksum: int

    @property
    def start_value(self) -> int:
        return START_VALUES[self.start]

    @property
    def symbols(self) -> tuple[int, ...]:
        """Every value in scan order: Start, data, checksum, Stop."""
        return (self.start_value, *self.values, self.checksum, STOP)

    @property
    def module_count(self) -> int:
        """Encoded modules, excluding quiet zones."""
        return SYMBOL_MODULES * (len(self.values) + 2) + STOP_MODULES


@dataclass(frozen=True)
class ModuleSequence:
    """Bar/space widths of a barcode plus its quiet zones.

    ``widths`` covers the encoded symbols only and always starts and ends
    with a bar, so even indices are bars and odd indices are spaces. The
    quiet zones are blank (space) margins on either side.

    Widths are integers for encoder output; decoder input may carry
    fractional measured widths.
    """

    widths: tuple[float, ...]
    leading_quiet_zone: float = 10
    trailing_quiet_zone: float = 10

    @property
    def module_count(self) -> float:
        """Modules in the symbol region (quiet zones excluded)."""
        return sum(self.widths)

    @property
    def total_width(self) -> float:
        return self.leading_quiet_zone + self.module_count + self.trailing_quiet_zone

    def elements(self) -> list[tuple[float, str]]:
        """(width, polarity) pairs for the symbol region."""
        return [(w, BAR if i % 2 == 0 else SPACE) for i, w in enumerate(self.widths)]

    def to_list(self) -> list[float]:
        """External form: quiet zone, symbol widths, quiet zone.

        Index 0 and the last index are the (space) quiet zones; the
        symbol widths in between alternate bar, space, ..., bar.
        """
        return [self.leading_quiet_zone, *self.widths, self.trailing_quiet_zone]

    @classmethod
    def from_list(cls, widths: Sequence[float]) -> ModuleSequence:
        """Build from the external form produced by to_list().

        Raises:
            ValueError: If fewer than two entries are given.
        """
        if len(widths) < 2:
            raise ValueError(f"Need at least two quiet-zone entries, got {len(widths)}")
        return cls(
            widths=tuple(widths[1:-1]),
            leading_quiet_zone=widths[0],
            trailing_quiet_zone=widths[-1],
        )
