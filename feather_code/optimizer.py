"""Code set selection for Code128.

Chooses the Start set and the sequence of data, Shift and Latch
instructions that represent a string in the fewest symbols.

Algorithm: a backward dynamic program over string positions. ``best[i][s]``
is the cheapest way to encode ``text[i:]`` when set ``s`` is active at
position ``i``. Costs are tuples compared lexicographically:

1. symbol count (always minimal)
2. digits belonging to a run of 4+ digits that are not encoded in set C
   (so long digit runs go to C when it costs nothing extra)
3. such digits that are not the last digit of their run (an odd run
   leaves its final digit, not its first, to set A or B)
4. latch count (fewer latches wins a remaining tie)

A Shift is only considered for an isolated foreign character; two or
more consecutive foreign characters latch instead, which never costs
more symbols. Remaining ties resolve by a fixed option order so the
plan is deterministic.
"""

from __future__ import annotations

import math

import structlog

from .errors import SequenceTooLong, UnencodableSymbol
from .model import Data, FunctionCode, Instruction, Latch, Plan, Shift
from .symbols import CodeSet, in_set, other_set

logger = structlog.get_logger(__name__)

# Default maximum number of input characters
MAX_LENGTH = 80

# Digit runs at least this long should be carried by set C
MIN_C_RUN = 4

DIGITS = frozenset("0123456789")

Cost = tuple[float, float, float, float]

_ZERO: Cost = (0, 0, 0, 0)
_IMPOSSIBLE: Cost = (math.inf, math.inf, math.inf, math.inf)
_LATCH_STEP: Cost = (1, 0, 0, 1)

# Latch targets in tie-break order
_LATCH_ORDER = (CodeSet.C, CodeSet.B, CodeSet.A)


def _add(a: Cost, b: Cost) -> Cost:
    return tuple(x + y for x, y in zip(a, b))


def _long_digit_runs(text: str) -> list[tuple[int, int]]:
    """Per character: (in a run of MIN_C_RUN+ digits, in one but not its last digit)."""
    flags = [(0, 0)] * len(text)
    i = 0
    while i < len(text):
        if text[i] not in DIGITS:
            i += 1
            continue
        j = i
        while j < len(text) and text[j] in DIGITS:
            j += 1
        if j - i >= MIN_C_RUN:
            flags[i : j - 1] = [(1, 1)] * (j - 1 - i)
            flags[j - 1] = (1, 0)
        i = j
    return flags


def _options(
    text: str,
    i: int,
    code_set: CodeSet,
    long_run: list[tuple[int, int]],
) -> list[tuple[Cost, list[Instruction], int]]:
    """Ways to consume text at position i without latching.

    Returns:
        (step cost, instructions, next position) tuples in preference order.
    """
    options: list[tuple[Cost, list[Instruction], int]] = []
    ch = text[i]

    if code_set is CodeSet.C:
        pair = text[i : i + 2]
        if len(pair) == 2 and pair[0] in DIGITS and pair[1] in DIGITS:
            options.append(((1, 0, 0, 0), [Data(pair)], i + 2))
        return options

    in_run, before_last = long_run[i]
    if in_set(code_set, ch):
        options.append(((1, in_run, before_last, 0), [Data(ch)], i + 1))
    elif in_set(other_set(code_set), ch):
        isolated = i + 1 == len(text) or in_set(code_set, text[i + 1])
        if isolated:
            options.append(((2, in_run, before_last, 0), [Shift(), Data(ch)], i + 1))
    return options


def _check_input(text: str, max_length: int) -> None:
    if len(text) > max_length:
        raise SequenceTooLong(
            f"Input too long: {len(text)} characters (max {max_length})",
            position=max_length,
            value=len(text),
        )
    for position, ch in enumerate(text):
        if not (in_set(CodeSet.A, ch) or in_set(CodeSet.B, ch)):
            raise UnencodableSymbol(
                f"Character {ch!r} at position {position} is not representable in Code128",
                position=position,
                value=ch,
            )


def _start_preference(text: str) -> list[CodeSet]:
    """Start sets in tie-break order."""
    leading = len(text) - len(text.lstrip("0123456789"))
    b_only = any(not in_set(CodeSet.A, ch) for ch in text)
    order = [CodeSet.B, CodeSet.A] if b_only else [CodeSet.A, CodeSet.B]
    if leading >= MIN_C_RUN:
        return [CodeSet.C, *order]
    return [*order, CodeSet.C]


def _cost_table(text: str, long_run: list[tuple[int, int]]) -> list[dict[CodeSet, Cost]]:
    """Fill best[i][s] from the end of the string backwards."""
    n = len(text)
    best: list[dict[CodeSet, Cost]] = [{} for _ in range(n + 1)]
    best[n] = {s: _ZERO for s in CodeSet}

    for i in range(n - 1, -1, -1):
        stay: dict[CodeSet, Cost] = {}
        for s in CodeSet:
            stay[s] = min(
                (_add(step, best[nxt][s]) for step, _, nxt in _options(text, i, s, long_run)),
                default=_IMPOSSIBLE,
            )
        for s in CodeSet:
            latched = min(
                (_add(_LATCH_STEP, stay[t]) for t in _LATCH_ORDER if t is not s),
                default=_IMPOSSIBLE,
            )
            best[i][s] = min(stay[s], latched)

    return best


def _walk(
    text: str,
    start: CodeSet,
    best: list[dict[CodeSet, Cost]],
    long_run: list[tuple[int, int]],
) -> list[Instruction]:
    """Reconstruct the instruction list that achieves best[0][start]."""
    instructions: list[Instruction] = []
    i = 0
    active = start

    while i < len(text):
        target = best[i][active]
        chosen: tuple[list[Instruction], CodeSet, int] | None = None

        for step, emitted, nxt in _options(text, i, active, long_run):
            if _add(step, best[nxt][active]) == target:
                chosen = (emitted, active, nxt)
                break

        if chosen is None:
            for t in _LATCH_ORDER:
                if t is active:
                    continue
                for step, emitted, nxt in _options(text, i, t, long_run):
                    if _add(_LATCH_STEP, _add(step, best[nxt][t])) == target:
                        chosen = ([Latch(t), *emitted], t, nxt)
                        break
                if chosen is not None:
                    break

        if chosen is None:  # pragma: no cover - table and walk share _options
            raise RuntimeError(f"No plan step reproduces cost {target} at position {i}")

        emitted, active, i = chosen
        instructions.extend(emitted)

    return instructions


def optimize(text: str, max_length: int = MAX_LENGTH, gs1: bool = False) -> Plan:
    """Select a minimal-symbol plan for text.

    Args:
        text: ASCII input (characters 0-127).
        max_length: Maximum accepted number of characters.
        gs1: Emit FNC1 right after the Start symbol (GS1-128).

    Returns:
        Plan with the starting set and one instruction per symbol.

    Raises:
        SequenceTooLong: If text is longer than max_length.
        UnencodableSymbol: If a character is outside sets A, B and C.
    """
    _check_input(text, max_length)

    long_run = _long_digit_runs(text)
    best = _cost_table(text, long_run)

    # Start symbol costs the same for every set, so compare remaining cost
    start = min(_start_preference(text), key=lambda s: best[0][s])
    instructions = _walk(text, start, best, long_run)
    if gs1:
        instructions.insert(0, FunctionCode(1))

    plan = Plan(start=start, instructions=tuple(instructions))
    logger.debug(
        "plan_optimized",
        length=len(text),
        start=start.value,
        symbols=plan.symbol_count,
        latches=plan.latch_count,
        shifts=plan.shift_count,
    )
    return plan
