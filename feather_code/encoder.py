"""Code128 encoder.

Converts text into a ModuleSequence:

1. Select code sets with the optimizer (rejects unencodable or oversized input)
2. Walk the plan, tracking the active set, and map each instruction to a
   code value through the symbol table
3. Prepend the Start value, append the weighted modulo-103 checksum
4. Flatten every value to its bar/space widths, append the Stop pattern
   and surround the result with quiet zones
"""

from __future__ import annotations

from dataclasses import dataclass

import structlog

from .model import Data, EncodedMessage, FunctionCode, Latch, ModuleSequence, Plan, Shift
from .optimizer import MAX_LENGTH, optimize
from .symbols import (
    CODE_A,
    CODE_B,
    FUNCTION_VALUES,
    LATCH_VALUES,
    SHIFT,
    START_VALUES,
    CodeSet,
    other_set,
    require_value,
    widths_for,
)

logger = structlog.get_logger(__name__)

# Quiet zone on each side, in modules
QUIET_ZONE = 10

CHECKSUM_MODULUS = 103


@dataclass(frozen=True)
class EncodeConfig:
    """Per-call encoder settings.

    Attributes:
        quiet_zone: Blank margin on each side, in modules (>= 10).
        max_length: Maximum accepted number of input characters.
        gs1: Emit FNC1 after the Start symbol (GS1-128 data).
    """

    quiet_zone: int = QUIET_ZONE
    max_length: int = MAX_LENGTH
    gs1: bool = False

    def __post_init__(self) -> None:
        if self.quiet_zone < QUIET_ZONE:
            raise ValueError(
                f"quiet_zone must be at least {QUIET_ZONE} modules, got {self.quiet_zone}"
            )
        if self.max_length < 0:
            raise ValueError(f"max_length must be non-negative, got {self.max_length}")


def compute_checksum(start_value: int, values: list[int] | tuple[int, ...]) -> int:
    """Weighted modulo-103 check value.

    The Start value has weight 1 and the n-th following value weight n.

    Args:
        start_value: Value of the Start symbol (103-105).
        values: Data and instruction values after Start.

    Returns:
        Check value 0-102.
    """
    total = start_value + sum(weight * value for weight, value in enumerate(values, start=1))
    return total % CHECKSUM_MODULUS


def build_message(plan: Plan) -> EncodedMessage:
    """Resolve a plan into code values and compute its checksum.

    Raises:
        ValueError: If the plan shifts or uses FNC4 in set C, or latches
            to the set that is already active.
        UnencodableSymbol: If a Data instruction is not representable in
            the set active at that point.
    """
    active = plan.start
    shifted = False
    values: list[int] = []
    sets: list[CodeSet] = []

    for instruction in plan.instructions:
        sets.append(active)
        if isinstance(instruction, Latch):
            if instruction.target is active:
                raise ValueError(f"Latch to already active set {active.value}")
            values.append(LATCH_VALUES[instruction.target])
            active = instruction.target
        elif isinstance(instruction, Shift):
            if active is CodeSet.C:
                raise ValueError("Shift is not available in code set C")
            values.append(SHIFT)
            shifted = True
        elif isinstance(instruction, FunctionCode):
            values.append(_function_value(instruction.number, active))
        elif isinstance(instruction, Data):
            code_set = other_set(active) if shifted else active
            sets[-1] = code_set
            values.append(require_value(code_set, instruction.chars, position=len(values)))
            shifted = False

    checksum = compute_checksum(START_VALUES[plan.start], values)

    logger.debug(
        "message_built",
        start=plan.start.value,
        values=len(values),
        checksum=checksum,
    )
    return EncodedMessage(
        start=plan.start,
        values=tuple(values),
        sets=tuple(sets),
        checksum=checksum,
    )


def _function_value(number: int, active: CodeSet) -> int:
    if number == 4:
        if active is CodeSet.A:
            return CODE_A
        if active is CodeSet.B:
            return CODE_B
        raise ValueError("FNC4 is not available in code set C")
    if number not in FUNCTION_VALUES:
        raise ValueError(f"Unknown function code FNC{number}")
    return FUNCTION_VALUES[number]


def flatten(message: EncodedMessage, quiet_zone: int = QUIET_ZONE) -> ModuleSequence:
    """Concatenate the width patterns of every symbol, Start through Stop."""
    widths: list[int] = []
    for value in message.symbols:
        widths.extend(widths_for(value))
    return ModuleSequence(
        widths=tuple(widths),
        leading_quiet_zone=quiet_zone,
        trailing_quiet_zone=quiet_zone,
    )


def encode_message(text: str, config: EncodeConfig | None = None) -> EncodedMessage:
    """Encode text into code values (no module widths yet).

    Raises:
        SequenceTooLong: If text exceeds config.max_length.
        UnencodableSymbol: If a character is outside sets A, B and C.
    """
    config = config or EncodeConfig()
    plan = optimize(text, max_length=config.max_length, gs1=config.gs1)
    return build_message(plan)


def encode(text: str, config: EncodeConfig | None = None) -> ModuleSequence:
    """Encode text into a complete module sequence with quiet zones.

    Args:
        text: ASCII text to encode.
        config: Encoder settings; defaults to EncodeConfig().

    Returns:
        ModuleSequence ready for rendering or decoding.

    Raises:
        SequenceTooLong: If text exceeds config.max_length.
        UnencodableSymbol: If a character is outside sets A, B and C.
    """
    config = config or EncodeConfig()
    message = encode_message(text, config)
    sequence = flatten(message, config.quiet_zone)

    logger.debug(
        "encoded",
        text_length=len(text),
        symbols=len(message.symbols),
        modules=message.module_count,
    )
    return sequence
