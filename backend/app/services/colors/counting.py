"""
Color frequency counting.

Every distinct 24-bit color is its own key by default, so near-identical
shades are never merged. ``bucket_size`` is an opt-in quantization that
snaps each channel down to a multiple of the bucket before keying.
"""
from collections import Counter
from typing import Iterable, Tuple

from app.services.colors.formatting import format_rgb


def quantize_channel(value: int, bucket_size: int) -> int:
    return (value // bucket_size) * bucket_size


def color_key(rgb: Tuple[int, int, int], bucket_size: int = 1) -> str:
    """Counting key for a sample, ``rgb(r,g,b)``."""
    if bucket_size > 1:
        rgb = tuple(quantize_channel(c, bucket_size) for c in rgb)
    return format_rgb(rgb)


def count_colors(samples: Iterable[Tuple[int, int, int]], bucket_size: int = 1) -> Counter:
    """
    Aggregate samples into per-color occurrence counts.

    Args:
        samples: RGB triples, e.g. a SampleGrid
        bucket_size: Channel quantization step (1 = exact colors)

    Returns:
        Counter keyed by ``rgb(r,g,b)``; keys keep first-seen order.
        The counts always sum to the number of samples consumed.
    """
    if bucket_size < 1 or bucket_size > 256:
        raise ValueError(f"bucket_size must be in [1, 256], got {bucket_size}")

    counts = Counter()
    for rgb in samples:
        counts[color_key(rgb, bucket_size)] += 1
    return counts
