"""Code128 decoder for measured module sequences.

Decodes a sequence of bar/space widths back to text by:
1. Measuring the quiet zones (narrow specks next to them are noise and
   are absorbed into the margin)
2. Snapping every measured width to the nearest module width 1-4,
   rejecting widths further than the configured tolerance
3. Matching the first window against the three Start patterns
4. Partitioning the rest into 11-module symbols and one 13-module Stop
5. Verifying the weighted modulo-103 checksum, then the Stop pattern
6. Replaying code set state (latches, shifts) to rebuild the text

The decoder is independent of the optimizer: any standards-conforming
sequence decodes, not only the ones this package produces. Every
failure is fatal; no partial result is ever returned.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

import numpy as np
import structlog

from .encoder import QUIET_ZONE, compute_checksum
from .errors import (
    AmbiguousWidth,
    ChecksumMismatch,
    DecodeError,
    InvalidStartSymbol,
    InvalidStopSymbol,
    MalformedSequence,
    MissingQuietZone,
)
from .model import ModuleSequence
from .symbols import (
    CODE_A,
    CODE_B,
    CODE_C,
    SHIFT,
    START_A,
    START_SETS,
    STOP,
    STOP_MODULES,
    SYMBOL_MODULES,
    WIDTHS,
    CodeSet,
    char_for,
    other_set,
    value_for_widths,
)

logger = structlog.get_logger(__name__)

# Fraction of a module a measured width may deviate from an integer width
WIDTH_TOLERANCE = 0.15

SYMBOL_WIDTHS = 6
STOP_WIDTHS = 7


@dataclass(frozen=True)
class DecodeConfig:
    """Per-call decoder settings.

    Attributes:
        width_tolerance: Maximum deviation (in modules) between a measured
            width and the nearest valid width. Must be below 0.5.
        min_quiet_zone: Required margin on each side, in modules.
        module_width: Measurement units per module (1.0 when widths are
            already expressed in modules).
        min_bar_width: Runs next to a quiet zone narrower than this many
            modules are treated as noise, not symbols.
    """

    width_tolerance: float = WIDTH_TOLERANCE
    min_quiet_zone: float = QUIET_ZONE
    module_width: float = 1.0
    min_bar_width: float = 0.5

    def __post_init__(self) -> None:
        if not 0 < self.width_tolerance < 0.5:
            raise ValueError(f"width_tolerance must be in (0, 0.5), got {self.width_tolerance}")
        if self.module_width <= 0:
            raise ValueError(f"module_width must be positive, got {self.module_width}")
        if self.min_quiet_zone < 0:
            raise ValueError(f"min_quiet_zone must be non-negative, got {self.min_quiet_zone}")


def _strip_quiet_zones(widths: np.ndarray, config: DecodeConfig) -> tuple[np.ndarray, int]:
    """Split off both margins.

    Returns:
        (symbol-region widths, index of the first symbol width in the input)
    """
    if len(widths) < 2:
        raise MissingQuietZone(
            f"Sequence of {len(widths)} widths has no room for quiet zones",
            position=0,
            value=len(widths),
        )

    first = 1
    last = len(widths) - 2
    leading = float(widths[0])
    trailing = float(widths[-1])

    while first + 1 < last and widths[first] < config.min_bar_width:
        leading += float(widths[first] + widths[first + 1])
        first += 2
    while last - 1 > first and widths[last] < config.min_bar_width:
        trailing += float(widths[last] + widths[last - 1])
        last -= 2

    required = config.min_quiet_zone * (1 - config.width_tolerance)
    if leading < required:
        raise MissingQuietZone(
            f"Leading quiet zone is {leading:.2f} modules (need {config.min_quiet_zone})",
            position=0,
            value=leading,
        )
    if trailing < required:
        raise MissingQuietZone(
            f"Trailing quiet zone is {trailing:.2f} modules (need {config.min_quiet_zone})",
            position=len(widths) - 1,
            value=trailing,
        )

    return widths[first : last + 1], first


def _quantize(widths: np.ndarray, tolerance: float, offset: int) -> np.ndarray:
    """Snap measured widths to the nearest valid module width (1-4)."""
    nearest = np.clip(np.rint(widths), 1, 4)
    deviation = np.abs(widths - nearest)
    ambiguous = np.flatnonzero(deviation > tolerance)
    if ambiguous.size:
        index = int(ambiguous[0])
        raise AmbiguousWidth(
            f"Width {widths[index]:.3f} at index {offset + index} is more than "
            f"{tolerance} modules from any valid width",
            position=offset + index,
            value=float(widths[index]),
        )
    return nearest.astype(int)


def _read_windows(
    sequence: ModuleSequence | Sequence[float],
    config: DecodeConfig,
) -> tuple[list[int], list[int], bool, int]:
    """Turn measured widths into code values.

    Returns:
        (values Start..checksum, input index of each value, stop pattern
        matched, input index of the Stop window)
    """
    raw = sequence.to_list() if isinstance(sequence, ModuleSequence) else list(sequence)
    measured = np.asarray(raw, dtype=float) / config.module_width

    region, offset = _strip_quiet_zones(measured, config)
    if len(region) < SYMBOL_WIDTHS:
        raise MalformedSequence(
            f"Only {len(region)} widths between the quiet zones",
            position=offset,
            value=len(region),
        )

    modules = _quantize(region, config.width_tolerance, offset)

    start_widths = tuple(int(w) for w in modules[:SYMBOL_WIDTHS])
    start_value = value_for_widths(start_widths)
    if start_value not in START_SETS:
        raise InvalidStartSymbol(
            f"First symbol {start_widths} is not a Start pattern",
            position=offset,
            value=start_widths,
        )

    count = len(modules)
    if count < 2 * SYMBOL_WIDTHS + STOP_WIDTHS or (count - STOP_WIDTHS) % SYMBOL_WIDTHS:
        raise MalformedSequence(
            f"{count} widths do not partition into Start, checksum and Stop symbols",
            position=offset,
            value=count,
        )

    values: list[int] = []
    positions: list[int] = []
    for index in range(0, count - STOP_WIDTHS, SYMBOL_WIDTHS):
        window = tuple(int(w) for w in modules[index : index + SYMBOL_WIDTHS])
        if sum(window) != SYMBOL_MODULES:
            raise MalformedSequence(
                f"Symbol at index {offset + index} spans {sum(window)} modules, "
                f"expected {SYMBOL_MODULES}",
                position=offset + index,
                value=window,
            )
        value = value_for_widths(window)
        if value is None:
            raise MalformedSequence(
                f"Unknown symbol pattern {window} at index {offset + index}",
                position=offset + index,
                value=window,
            )
        values.append(value)
        positions.append(offset + index)

    stop_index = count - STOP_WIDTHS
    stop_window = tuple(int(w) for w in modules[stop_index:])
    if sum(stop_window) != STOP_MODULES:
        raise MalformedSequence(
            f"Final window spans {sum(stop_window)} modules, expected {STOP_MODULES}",
            position=offset + stop_index,
            value=stop_window,
        )

    return values, positions, stop_window == WIDTHS[STOP], offset + stop_index


def _replay(start: CodeSet, data: list[int], positions: list[int]) -> str:
    """Rebuild text from data values, tracking latches and shifts."""
    active = start
    shift_pending = False
    decoded: list[str] = []

    for value, position in zip(data, positions):
        if value >= START_A:
            raise MalformedSequence(
                f"Start or Stop value {value} inside data at index {position}",
                position=position,
                value=value,
            )

        if shift_pending:
            ch = char_for(other_set(active), value) if value < 96 else None
            if ch is None:
                raise MalformedSequence(
                    f"Shift at index {position} is not followed by a data symbol",
                    position=position,
                    value=value,
                )
            decoded.append(ch)
            shift_pending = False
            continue

        if active is CodeSet.C:
            if value < 100:
                decoded.append(char_for(CodeSet.C, value))
            elif value == CODE_B:
                active = CodeSet.B
            elif value == CODE_A:
                active = CodeSet.A
            # FNC1 carries no text
            continue

        if value < 96:
            decoded.append(char_for(active, value))
        elif value == SHIFT:
            shift_pending = True
        elif value == CODE_C:
            active = CodeSet.C
        elif value == CODE_B and active is CodeSet.A:
            active = CodeSet.B
        elif value == CODE_A and active is CodeSet.B:
            active = CodeSet.A
        # FNC1-FNC4 carry no text

    if shift_pending:
        raise MalformedSequence(
            "Data ends with a Shift",
            position=positions[-1] if positions else None,
            value=SHIFT,
        )

    return "".join(decoded)


def _check_and_replay(
    values: list[int],
    positions: list[int],
    stop_ok: bool,
    stop_position: int,
) -> str:
    """Verify checksum, then Stop, then translate the data values."""
    start_value, data, check = values[0], values[1:-1], values[-1]

    expected = compute_checksum(start_value, data)
    if check != expected:
        raise ChecksumMismatch(
            f"Check symbol is {check}, computed {expected}",
            position=positions[-1],
            value=check,
        )
    if not stop_ok:
        raise InvalidStopSymbol(
            f"Final symbol at index {stop_position} is not the Stop pattern",
            position=stop_position,
        )

    return _replay(START_SETS[start_value], data, positions[1:-1])


def decode(
    sequence: ModuleSequence | Sequence[float],
    config: DecodeConfig | None = None,
) -> str:
    """Decode a module sequence to text.

    Args:
        sequence: A ModuleSequence, or widths in the external form
            (quiet zone, bar, space, ..., bar, quiet zone). Widths may be
            fractional measurements.
        config: Decoder settings; defaults to DecodeConfig().

    Returns:
        The decoded text.

    Raises:
        MissingQuietZone, InvalidStartSymbol, MalformedSequence,
        ChecksumMismatch, InvalidStopSymbol, AmbiguousWidth: see errors.
    """
    config = config or DecodeConfig()
    try:
        values, positions, stop_ok, stop_position = _read_windows(sequence, config)
        text = _check_and_replay(values, positions, stop_ok, stop_position)
    except DecodeError as e:
        logger.warning("decode_failed", error=type(e).__name__, position=e.position)
        raise

    logger.debug("decoded", symbols=len(values) + 1, text_length=len(text))
    return text


def decode_symbols(values: Sequence[int]) -> str:
    """Decode a list of code values (Start ... checksum, Stop) to text.

    Positions in raised errors are indices into ``values``.

    Raises:
        MalformedSequence: If there are fewer than three values or a value
            is outside 0-106.
        InvalidStartSymbol, ChecksumMismatch, InvalidStopSymbol: see errors.
    """
    values = list(values)
    try:
        _check_values(values)
        body = values[:-1]
        text = _check_and_replay(
            body,
            list(range(len(body))),
            values[-1] == STOP,
            len(values) - 1,
        )
    except DecodeError as e:
        logger.warning("decode_failed", error=type(e).__name__, position=e.position)
        raise

    logger.debug("decoded", symbols=len(values), text_length=len(text))
    return text


def _check_values(values: list[int]) -> None:
    if len(values) < 3:
        raise MalformedSequence(
            f"Need at least Start, checksum and Stop, got {len(values)} values",
            position=0,
            value=len(values),
        )
    for position, value in enumerate(values):
        if not 0 <= value <= STOP:
            raise MalformedSequence(
                f"Value {value} at index {position} is not a code value",
                position=position,
                value=value,
            )
    if values[0] not in START_SETS:
        raise InvalidStartSymbol(
            f"First value {values[0]} is not a Start value",
            position=0,
            value=values[0],
        )
