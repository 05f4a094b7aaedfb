"""
Palette Extractor Imaging Utilities
Handles image fetching, decoding and downscaling ahead of color sampling.
"""
import io
from dataclasses import dataclass
from typing import Optional

import numpy as np
import requests
from loguru import logger
from PIL import Image

from app.config import config
from app.services.colors.errors import DecodeError, FetchError


RESAMPLE_FILTERS = {
    "nearest": Image.Resampling.NEAREST,
    "bilinear": Image.Resampling.BILINEAR,
    "box": Image.Resampling.BOX,
    "lanczos": Image.Resampling.LANCZOS,
}

# Integer grayscale modes Pillow decodes 16-bit (and 32-bit) images into.
# A plain convert() clips these to 0..255 instead of rescaling.
WIDE_GRAY_MODES = {"I", "I;16", "I;16B", "I;16L", "I;16N"}


def _gray_to_8bit(image: Image.Image) -> Image.Image:
    """Rescale a 16-bit grayscale image to 8-bit "L" by dropping the low byte."""
    values = np.clip(np.asarray(image).astype(np.int64), 0, 65535)
    return Image.fromarray((values >> 8).astype(np.uint8))


@dataclass(frozen=True, eq=False)
class PixelBuffer:
    """Decoded raster image: row-major RGBA pixels of shape (height, width, 4)."""

    pixels: np.ndarray

    def __post_init__(self):
        if self.pixels.ndim != 3 or self.pixels.shape[2] != 4:
            raise ValueError(f"Expected (height, width, 4) pixels, got shape {self.pixels.shape}")
        if self.pixels.dtype != np.uint8:
            raise ValueError(f"Expected uint8 pixels, got {self.pixels.dtype}")
        if self.pixels.shape[0] < 1 or self.pixels.shape[1] < 1:
            raise ValueError(f"Image dimensions must be positive, got {self.width}x{self.height}")

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])

    @property
    def max_edge(self) -> int:
        return max(self.width, self.height)

    @classmethod
    def from_image(cls, image: Image.Image) -> "PixelBuffer":
        """Build a buffer from a Pillow image of any mode."""
        if image.mode in WIDE_GRAY_MODES:
            image = _gray_to_8bit(image)
        if image.mode != "RGBA":
            image = image.convert("RGBA")
        return cls(np.array(image, dtype=np.uint8))

    def to_image(self) -> Image.Image:
        return Image.fromarray(self.pixels)


FETCH_CHUNK_BYTES = 64 * 1024


def _too_large_message(max_bytes: int) -> str:
    if max_bytes % (1024 * 1024) == 0:
        limit = f"{max_bytes // (1024 * 1024)}MB"
    elif max_bytes % 1024 == 0:
        limit = f"{max_bytes // 1024}KB"
    else:
        limit = f"{max_bytes} bytes"
    return f"Image too large. Maximum size: {limit}"


def fetch_image_bytes(url: str, timeout: Optional[float] = None,
                      max_bytes: Optional[int] = None) -> bytes:
    """
    Fetch raw image bytes over HTTP.

    Args:
        url: Absolute URL of the image
        timeout: Request timeout in seconds (default from config)
        max_bytes: Maximum accepted payload size (default from config)

    Returns:
        Response body bytes

    Raises:
        FetchError: On timeouts, connection failures, non-2xx responses
            or oversized payloads
    """
    if timeout is None:
        timeout = config.FETCH_TIMEOUT
    if max_bytes is None:
        max_bytes = config.max_fetch_bytes()

    try:
        with requests.get(url, timeout=timeout, stream=True) as response:
            response.raise_for_status()

            declared = response.headers.get("Content-Length", "")
            if declared.isdigit() and int(declared) > max_bytes:
                raise FetchError(_too_large_message(max_bytes))

            chunks = []
            received = 0
            for chunk in response.iter_content(chunk_size=FETCH_CHUNK_BYTES):
                received += len(chunk)
                if received > max_bytes:
                    raise FetchError(_too_large_message(max_bytes))
                chunks.append(chunk)
    except requests.Timeout as e:
        logger.warning(f"Image fetch timed out after {timeout}s: {url}")
        raise FetchError("Failed to fetch the image") from e
    except requests.RequestException as e:
        logger.warning(f"Image fetch failed for {url}: {e}")
        raise FetchError("Failed to fetch the image") from e

    logger.debug(f"Fetched {received} bytes from {url}")
    return b"".join(chunks)


def decode_image(data: bytes) -> PixelBuffer:
    """
    Decode image bytes into an RGBA pixel buffer.

    Raises:
        DecodeError: For empty, corrupt or unsupported image data
    """
    if not data:
        raise DecodeError("Failed to decode image: empty payload")

    try:
        with Image.open(io.BytesIO(data)) as image:
            image.load()
            buffer = PixelBuffer.from_image(image)
    except Exception as e:
        raise DecodeError(f"Failed to decode image: {e}") from e

    logger.debug(f"Decoded image {buffer.width}x{buffer.height}")
    return buffer


def load_image(url: str, timeout: Optional[float] = None,
               max_bytes: Optional[int] = None) -> PixelBuffer:
    """Fetch an image by URL and decode it."""
    return decode_image(fetch_image_bytes(url, timeout=timeout, max_bytes=max_bytes))


def resize_long_edge(buffer: PixelBuffer, max_edge: int = None,
                     resample: str = None) -> PixelBuffer:
    """
    Resize image so the longest edge is at most max_edge pixels.

    Images already within the cap are returned unchanged; nothing is upscaled.

    Args:
        buffer: Input pixel buffer
        max_edge: Maximum edge size (default from config)
        resample: Resampling method name (default from config)

    Returns:
        Resized pixel buffer
    """
    if max_edge is None:
        max_edge = config.MAX_EDGE
    if resample is None:
        resample = config.RESAMPLE

    if max_edge < 1:
        raise ValueError(f"max_edge must be positive, got {max_edge}")
    if resample not in RESAMPLE_FILTERS:
        raise ValueError(f"Unsupported resample method: {resample}")

    width, height = buffer.width, buffer.height
    current_max = max(width, height)

    if current_max <= max_edge:
        return buffer

    # Calculate new dimensions
    scale = max_edge / current_max
    new_width = min(max_edge, max(1, round(width * scale)))
    new_height = min(max_edge, max(1, round(height * scale)))

    resized = buffer.to_image().resize((new_width, new_height), resample=RESAMPLE_FILTERS[resample])
    logger.debug(f"Resized {width}x{height} -> {new_width}x{new_height} ({resample})")

    return PixelBuffer.from_image(resized)
