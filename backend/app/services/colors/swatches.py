"""
Swatch Rendering Module

Renders a palette as a horizontal strip of color chips for quick visual QA
of extraction results.
"""

import base64
import io
from typing import List, Optional, Tuple

import numpy as np
from loguru import logger
from PIL import Image

from app.services.colors.formatting import hex_to_rgb, parse_rgb


def color_to_rgb(color: str) -> Tuple[int, int, int]:
    """Accept either ``rgb(r,g,b)`` or ``#RRGGBB`` strings."""
    if color.startswith("rgb("):
        return parse_rgb(color)
    return hex_to_rgb(color)


def validate_swatch_params(colors: List[str], chip_size: int,
                           highlight_index: Optional[int] = None) -> None:
    """
    Validate swatch rendering parameters.

    Raises:
        ValueError: If parameters are invalid
    """
    if not colors:
        raise ValueError("Colors list cannot be empty")

    if not (8 <= chip_size <= 200):
        raise ValueError(f"chip_size must be between 8 and 200, got {chip_size}")

    if highlight_index is not None and not (0 <= highlight_index < len(colors)):
        raise ValueError(f"highlight_index {highlight_index} out of range [0, {len(colors)})")

    for color in colors:
        color_to_rgb(color)


def render_swatch_strip(colors: List[str],
                        chip_size: int = 40,
                        highlight_index: Optional[int] = None,
                        border_color: Tuple[int, int, int] = (0, 0, 0),
                        border_width: int = 2) -> str:
    """
    Render a horizontal strip of color swatches.

    Args:
        colors: Color strings in palette order
        chip_size: Size of each color chip in pixels
        highlight_index: Index of color to outline with a border
        border_color: RGB color for the highlight border
        border_width: Width of highlight border in pixels

    Returns:
        Base64-encoded PNG image string
    """
    validate_swatch_params(colors, chip_size, highlight_index)

    k = len(colors)
    logger.debug(f"Rendering swatch strip with {k} colors, chip_size={chip_size}")

    img = np.zeros((chip_size, chip_size * k, 3), dtype=np.uint8)

    for i, color in enumerate(colors):
        img[:, i * chip_size:(i + 1) * chip_size, :] = color_to_rgb(color)

    if highlight_index is not None:
        x_start = highlight_index * chip_size
        x_end = x_start + chip_size
        img[:border_width, x_start:x_end] = border_color
        img[-border_width:, x_start:x_end] = border_color
        img[:, x_start:x_start + border_width] = border_color
        img[:, x_end - border_width:x_end] = border_color

    buffer = io.BytesIO()
    Image.fromarray(img).save(buffer, format="PNG")
    b64_string = base64.b64encode(buffer.getvalue()).decode("ascii")
    logger.debug(f"Encoded swatch strip: {chip_size * k}×{chip_size} -> {len(b64_string)} chars")

    return b64_string
