"""
Test configuration and fixtures for palette extraction tests.
"""
import io
from unittest.mock import MagicMock

import numpy as np
import pytest
from fastapi.testclient import TestClient
from PIL import Image

# Import the main app
from main import app
from app.services.imaging import PixelBuffer


def make_buffer(rgb_array: np.ndarray) -> PixelBuffer:
    """Wrap an (H, W, 3) uint8 RGB array as an opaque RGBA PixelBuffer."""
    height, width = rgb_array.shape[:2]
    alpha = np.full((height, width, 1), 255, dtype=np.uint8)
    return PixelBuffer(np.concatenate([rgb_array.astype(np.uint8), alpha], axis=2))


def solid_rgb(width: int, height: int, color) -> np.ndarray:
    img = np.zeros((height, width, 3), dtype=np.uint8)
    img[:, :] = color
    return img


def encode_png(rgb_array: np.ndarray) -> bytes:
    """Encode an RGB array as PNG bytes."""
    out = io.BytesIO()
    Image.fromarray(rgb_array.astype(np.uint8)).save(out, format="PNG")
    return out.getvalue()


def decreasing_frequency_row(n_colors: int = 50, top_count: int = 60) -> np.ndarray:
    """
    Single-row image where color i appears (top_count - i) times.

    Colors are distinct, so an exhaustive sampling yields strictly
    decreasing frequencies in color index order.
    """
    columns = []
    for i in range(n_colors):
        color = (i * 5, 255 - i * 5, (i * 37) % 256)
        columns.extend([color] * (top_count - i))
    return np.array([columns], dtype=np.uint8)


def mock_http_response(content: bytes = b"", headers=None, piece_size: int = 4096) -> MagicMock:
    """
    Stand-in for a streamed ``requests`` response.

    Usable as a context manager. ``iter_content`` yields ``content`` in
    ``piece_size`` chunks whatever chunk size the caller asks for.
    """
    def iter_content(chunk_size=1, decode_unicode=False):
        for start in range(0, len(content), piece_size):
            yield content[start:start + piece_size]

    response = MagicMock()
    response.__enter__.return_value = response
    response.__exit__.return_value = False
    response.headers = dict(headers or {})
    response.raise_for_status.return_value = None
    response.iter_content.side_effect = iter_content
    return response


@pytest.fixture
def test_client():
    """Create test client for the FastAPI app."""
    return TestClient(app)


@pytest.fixture
def red_png() -> bytes:
    """100x100 solid red PNG."""
    return encode_png(solid_rgb(100, 100, (255, 0, 0)))


@pytest.fixture(autouse=True)
def reset_metrics():
    """Reset metrics before each test."""
    from app.utils.metrics import reset_metrics
    reset_metrics()
