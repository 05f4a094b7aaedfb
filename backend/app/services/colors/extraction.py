"""
Color extraction pipeline.

Implements load → resize → sample → count → rank for a single image. Each
call builds its own buffers and counters, so concurrent calls never share
state.
"""

import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol

from loguru import logger

from app.config import config
from app.services.colors.counting import count_colors
from app.services.colors.errors import ExtractionCancelled
from app.services.colors.formatting import format_palette
from app.services.colors.ranking import PaletteEntry, rank_colors
from app.services.colors.sampling import SampleGrid
from app.services.imaging import PixelBuffer, decode_image, fetch_image_bytes, resize_long_edge


class CancelSignal(Protocol):
    def is_set(self) -> bool: ...


@dataclass
class Palette:
    """Ranked palette plus the bookkeeping needed to audit it."""

    entries: List[PaletteEntry]
    sample_count: int
    distinct_colors: int
    width: int
    height: int
    timings_ms: Dict[str, float] = field(default_factory=dict)

    def colors(self, color_format: str = "rgb") -> List[str]:
        return format_palette(self.entries, color_format)


def check_cancelled(cancel: Optional[CancelSignal], stage: str) -> None:
    """Raise ExtractionCancelled if the signal has been set."""
    if cancel is not None and cancel.is_set():
        logger.info(f"Extraction cancelled before {stage}")
        raise ExtractionCancelled(f"Extraction cancelled before {stage}")


def extract_palette(buffer: PixelBuffer,
                    num_colors: Optional[int] = None,
                    stride: Optional[int] = None,
                    offset: Optional[int] = None,
                    max_edge: Optional[int] = None,
                    resample: Optional[str] = None,
                    bucket_size: Optional[int] = None,
                    cancel: Optional[CancelSignal] = None) -> Palette:
    """
    Extract the dominant palette from a decoded image.

    Args:
        buffer: Decoded RGBA image
        num_colors: Maximum palette size (default from config)
        stride: Sampling step in pixels (default from config)
        offset: Sampling origin on both axes (default from config)
        max_edge: Resize cap for the longer edge (default from config)
        resample: Resize method (default from config)
        bucket_size: Opt-in channel quantization, 1 = exact (default from config)
        cancel: Optional object with ``is_set()``, checked between stages

    Returns:
        Palette with entries ordered most to least frequent

    Raises:
        ExtractionCancelled: If ``cancel`` is set between stages
        ValueError: For invalid parameters
    """
    num_colors = config.NUM_COLORS if num_colors is None else num_colors
    stride = config.SAMPLE_STRIDE if stride is None else stride
    offset = config.SAMPLE_OFFSET if offset is None else offset
    bucket_size = config.BUCKET_SIZE if bucket_size is None else bucket_size

    timings: Dict[str, float] = {}

    check_cancelled(cancel, "resize")
    start = time.time()
    resized = resize_long_edge(buffer, max_edge=max_edge, resample=resample)
    timings["resize"] = (time.time() - start) * 1000

    check_cancelled(cancel, "sampling")
    start = time.time()
    samples = SampleGrid(resized, stride=stride, offset=offset)
    counts = count_colors(samples, bucket_size=bucket_size)
    timings["count"] = (time.time() - start) * 1000

    check_cancelled(cancel, "ranking")
    start = time.time()
    entries = rank_colors(counts, k=num_colors)
    timings["rank"] = (time.time() - start) * 1000

    sample_count = sum(counts.values())
    logger.debug(
        f"Palette extracted: {len(entries)} of {len(counts)} distinct colors "
        f"from {sample_count} samples on {resized.width}x{resized.height}"
    )

    return Palette(
        entries=entries,
        sample_count=sample_count,
        distinct_colors=len(counts),
        width=resized.width,
        height=resized.height,
        timings_ms=timings,
    )


def extract_palette_from_bytes(data: bytes,
                               cancel: Optional[CancelSignal] = None,
                               **params: Any) -> Palette:
    """Decode encoded image bytes and extract their palette."""
    check_cancelled(cancel, "decode")
    start = time.time()
    buffer = decode_image(data)
    decode_ms = (time.time() - start) * 1000

    palette = extract_palette(buffer, cancel=cancel, **params)
    palette.timings_ms = {"decode": decode_ms, **palette.timings_ms}
    return palette


def extract_palette_from_url(image_url: str,
                             cancel: Optional[CancelSignal] = None,
                             **params: Any) -> Palette:
    """Fetch, decode and extract a palette from an image URL."""
    check_cancelled(cancel, "fetch")
    start = time.time()
    data = fetch_image_bytes(image_url)
    fetch_ms = (time.time() - start) * 1000

    palette = extract_palette_from_bytes(data, cancel=cancel, **params)
    palette.timings_ms = {"fetch": fetch_ms, **palette.timings_ms}
    return palette


def extract_colors_from_url(image_url: str,
                            num_colors: Optional[int] = None,
                            color_format: str = "rgb",
                            cancel: Optional[CancelSignal] = None,
                            **params: Any) -> List[str]:
    """
    Library entrypoint: URL in, ordered color strings out.

    Raises:
        FetchError, DecodeError, ExtractionCancelled
    """
    palette = extract_palette_from_url(image_url, cancel=cancel, num_colors=num_colors, **params)
    return palette.colors(color_format)
