#!/usr/bin/env python3
"""Basic usage example for Feather Code.

Demonstrates encoding text into Code128 module widths, rendering it with
decorative styles and decoding it back.

Usage:
    python examples/basic_usage.py
"""

from feather_code.decoder import decode, decode_symbols
from feather_code.encoder import EncodeConfig, encode, encode_message
from feather_code.errors import StyleViolatesReadability
from feather_code.renderer import StyleConfig, render, render_svg, scan_row


def example_basic_roundtrip():
    """Encode text and decode the module widths back."""
    print("=" * 60)
    print("Example 1: Basic Encode/Decode Roundtrip")
    print("=" * 60)

    text = "PJJ123C"
    message = encode_message(text)
    sequence = encode(text)
    print(f"  Input text:  {text}")
    print(f"  Start set:   {message.start.value}")
    print(f"  Symbols:     {list(message.symbols)}")
    print(f"  Modules:     {sequence.module_count}")

    decoded = decode(sequence)
    print(f"  Decoded:     {decoded}")
    print(f"  Match:       {decoded == text}")
    print()


def example_code_sets():
    """Show how the optimizer mixes code sets."""
    print("=" * 60)
    print("Example 2: Code Set Selection")
    print("=" * 60)

    for text in ["Hello World", "1234567890", "AB1234cd", "ab\x01cd"]:
        message = encode_message(text)
        sets = "".join(s.value for s in message.sets)
        print(
            f"  {text!r:16s} start={message.start.value}  "
            f"sets={sets:10s}  symbols={len(message.symbols)}"
        )

    gs1 = encode_message("42184020500", EncodeConfig(gs1=True))
    print(f"  GS1 symbols:  {list(gs1.symbols)}")
    print(f"  Raw decode:   {decode_symbols(list(gs1.symbols))}")
    print()


def example_styles():
    """Render with every bar profile and verify the re-scan still decodes."""
    print("=" * 60)
    print("Example 3: Stylized Rendering")
    print("=" * 60)

    sequence = encode("Feather 42")
    for profile in ["flat", "tapered", "feathered", "quill"]:
        style = StyleConfig(
            bar_profile=profile,
            corner="rounded",
            corner_radius=0.5,
            ornament="feather",
        )
        output = render(sequence, style)
        svg = render_svg(output)
        middle = (output.scan_top + output.scan_bottom) / 2
        print(
            f"  Profile: {profile:10s}  SVG length: {len(svg):6d} chars  "
            f"re-scan: {decode(scan_row(output, middle))!r}"
        )

    try:
        render(sequence, StyleConfig(bar_profile="feathered", feather_depth=0.4))
    except StyleViolatesReadability as e:
        print(f"  Rejected:     {e}")
    print()


if __name__ == "__main__":
    example_basic_roundtrip()
    example_code_sets()
    example_styles()
    print("All examples completed successfully.")
