"""
Palette ranking: top-K colors by sample frequency.
"""
from dataclasses import dataclass
from typing import List, Mapping, Tuple

from app.services.colors.formatting import format_hex, format_rgb, parse_rgb


@dataclass(frozen=True)
class PaletteEntry:
    """One palette color with its sample count and rank (0 = most frequent)."""

    rgb: Tuple[int, int, int]
    count: int
    rank: int

    @property
    def css(self) -> str:
        return format_rgb(self.rgb)

    @property
    def hex(self) -> str:
        return format_hex(self.rgb)


def rank_colors(counts: Mapping[str, int], k: int = 10) -> List[PaletteEntry]:
    """
    Select the K most frequent colors.

    Ties keep first-seen order: ``sorted`` is stable, and stays stable
    with ``reverse=True``.

    Args:
        counts: Mapping of ``rgb(r,g,b)`` key to occurrence count
        k: Maximum palette size

    Returns:
        At most ``min(k, len(counts))`` entries, non-increasing by count
    """
    if k < 1:
        raise ValueError(f"k must be >= 1, got {k}")

    ordered = sorted(counts.items(), key=lambda item: item[1], reverse=True)[:k]
    return [
        PaletteEntry(rgb=parse_rgb(key), count=count, rank=rank)
        for rank, (key, count) in enumerate(ordered)
    ]
