"""
Color string formatting for palette transport.
"""
import re
from typing import Iterable, List, Tuple

RGB = Tuple[int, int, int]

_RGB_RE = re.compile(r"^rgb\((\d{1,3}),(\d{1,3}),(\d{1,3})\)$")
_HEX_RE = re.compile(r"^#?([0-9A-Fa-f]{6})$")


def format_rgb(rgb: RGB) -> str:
    """Render an RGB triple as ``rgb(r,g,b)`` with no spaces."""
    r, g, b = rgb
    return f"rgb({int(r)},{int(g)},{int(b)})"


def format_hex(rgb: RGB) -> str:
    """Render an RGB triple as ``#RRGGBB``."""
    r, g, b = rgb
    return f"#{int(r):02X}{int(g):02X}{int(b):02X}"


def parse_rgb(color: str) -> RGB:
    """Parse an ``rgb(r,g,b)`` string back into a triple."""
    match = _RGB_RE.match(color.replace(" ", ""))
    if not match:
        raise ValueError(f"Invalid rgb() color: {color!r}")
    channels = tuple(int(c) for c in match.groups())
    if any(c > 255 for c in channels):
        raise ValueError(f"Channel out of range in {color!r}")
    return channels


def hex_to_rgb(hex_color: str) -> RGB:
    """Convert hex color string to RGB tuple."""
    match = _HEX_RE.match(hex_color)
    if not match:
        raise ValueError(f"Invalid hex color: {hex_color!r}")
    value = match.group(1)
    return tuple(int(value[i:i+2], 16) for i in (0, 2, 4))


FORMATTERS = {
    "rgb": format_rgb,
    "hex": format_hex,
}


def format_palette(entries: Iterable, color_format: str = "rgb") -> List[str]:
    """
    Render palette entries as color strings, preserving rank order.

    Args:
        entries: PaletteEntry objects (anything with an ``rgb`` attribute)
        color_format: ``rgb`` or ``hex``
    """
    try:
        formatter = FORMATTERS[color_format]
    except KeyError:
        raise ValueError(f"Unsupported color format: {color_format}")
    return [formatter(entry.rgb) for entry in entries]
