"""
Strided pixel sampling over a downscaled pixel buffer.

The grid starts at coordinate ``offset`` (1 by default, not 0) on both axes
and advances by ``stride`` until just before the width/height. Rows are the
outer loop, columns the inner loop.
"""
from typing import Iterator, Tuple

from app.services.imaging import PixelBuffer


def _axis_positions(size: int, stride: int, offset: int) -> range:
    return range(offset, size, stride)


def expected_sample_count(width: int, height: int, stride: int = 5, offset: int = 1) -> int:
    """Number of coordinates a SampleGrid visits for the given dimensions."""
    _validate(stride, offset)
    return len(_axis_positions(height, stride, offset)) * len(_axis_positions(width, stride, offset))


def _validate(stride: int, offset: int) -> None:
    if stride < 1:
        raise ValueError(f"stride must be >= 1, got {stride}")
    if offset < 0:
        raise ValueError(f"offset must be >= 0, got {offset}")


class SampleGrid:
    """Restartable, finite sequence of RGB samples taken on a fixed stride."""

    def __init__(self, buffer: PixelBuffer, stride: int = 5, offset: int = 1):
        _validate(stride, offset)
        self.buffer = buffer
        self.stride = stride
        self.offset = offset

    def coordinates(self) -> Iterator[Tuple[int, int]]:
        for y in _axis_positions(self.buffer.height, self.stride, self.offset):
            for x in _axis_positions(self.buffer.width, self.stride, self.offset):
                yield x, y

    def __iter__(self) -> Iterator[Tuple[int, int, int]]:
        pixels = self.buffer.pixels
        for x, y in self.coordinates():
            r, g, b = pixels[y, x, :3]
            yield int(r), int(g), int(b)

    def __len__(self) -> int:
        return expected_sample_count(self.buffer.width, self.buffer.height, self.stride, self.offset)

    def __repr__(self) -> str:
        return (f"SampleGrid({self.buffer.width}x{self.buffer.height}, "
                f"stride={self.stride}, offset={self.offset})")
