"""Typed failures for encoding, decoding and rendering.

Every error subclasses ``ValueError`` so callers that only care about
"bad input" can catch that, while callers that need to react to a
specific failure can catch the leaf class. Each error carries the
position in the input (character index, width index or symbol index)
and the offending value, so a failure can be diagnosed without
re-running the operation.
"""

from __future__ import annotations

from typing import Any


class FeatherCodeError(ValueError):
    """Base class for all feather_code failures.

    Attributes:
        position: Index into the input where the failure was detected.
        value: The offending character, width, symbol or style value.
    """

    def __init__(self, message: str, position: int | None = None, value: Any = None) -> None:
        super().__init__(message)
        self.position = position
        self.value = value


class EncodeError(FeatherCodeError):
    """Text could not be turned into a module sequence."""


class UnencodableSymbol(EncodeError):
    """A character has no representation in code sets A, B or C."""


class SequenceTooLong(EncodeError):
    """Input exceeds the configured maximum length."""


class DecodeError(FeatherCodeError):
    """A module sequence could not be decoded."""


class MissingQuietZone(DecodeError):
    """Leading or trailing margin is narrower than required."""


class InvalidStartSymbol(DecodeError):
    """The first symbol is not one of the three Start patterns."""


class MalformedSequence(DecodeError):
    """Widths do not partition into valid symbol windows."""


class ChecksumMismatch(DecodeError):
    """The check symbol does not match the weighted modulo-103 sum."""


class InvalidStopSymbol(DecodeError):
    """The final window is not the Stop pattern."""


class AmbiguousWidth(DecodeError):
    """A measured width is too far from every valid module width."""


class RenderError(FeatherCodeError):
    """A module sequence could not be rendered with the requested style."""


class StyleViolatesReadability(RenderError):
    """The requested style would move or merge module boundaries."""
