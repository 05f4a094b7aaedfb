"""
Palette Extractor Configuration
Manages environment variables and defaults for the extraction service.
"""
import os
from typing import Literal

from dotenv import load_dotenv

# Load environment variables
load_dotenv()


class Config:
    """Configuration class for the palette extraction service."""

    # Resize and sampling
    MAX_EDGE: int = int(os.environ.get("PALETTE_MAX_EDGE", "50"))
    SAMPLE_STRIDE: int = int(os.environ.get("PALETTE_SAMPLE_STRIDE", "5"))
    SAMPLE_OFFSET: int = int(os.environ.get("PALETTE_SAMPLE_OFFSET", "1"))
    RESAMPLE: Literal["nearest", "bilinear", "box", "lanczos"] = os.environ.get("PALETTE_RESAMPLE", "nearest")

    # Palette size
    NUM_COLORS: int = int(os.environ.get("PALETTE_NUM_COLORS", "10"))
    MAX_NUM_COLORS: int = int(os.environ.get("PALETTE_MAX_NUM_COLORS", "64"))

    # Opt-in quantization (1 = exact colors)
    BUCKET_SIZE: int = int(os.environ.get("PALETTE_BUCKET_SIZE", "1"))

    # Image fetch
    FETCH_TIMEOUT: float = float(os.environ.get("PALETTE_FETCH_TIMEOUT", "10"))
    MAX_FILE_MB: int = int(os.environ.get("PALETTE_MAX_FILE_MB", "10"))

    # Logging
    LOG_LEVEL: str = os.environ.get("PALETTE_LOG_LEVEL", "INFO")
    LOG_JSON: bool = os.environ.get("PALETTE_LOG_JSON", "false").lower() == "true"

    # Metrics: number of recent extractions kept for timing statistics
    METRICS_WINDOW: int = int(os.environ.get("PALETTE_METRICS_WINDOW", "1000"))

    # CORS settings
    ALLOWED_ORIGINS: str = os.environ.get("PALETTE_ALLOWED_ORIGINS", "*")

    # Service identity
    SERVICE_NAME: str = "palette-extractor"
    VERSION: str = "1.0.0"

    SUPPORTED_RESAMPLE = ["nearest", "bilinear", "box", "lanczos"]
    SUPPORTED_COLOR_FORMATS = ["rgb", "hex"]

    @classmethod
    def validate_num_colors(cls, num_colors: int) -> bool:
        """Validate requested palette size."""
        return isinstance(num_colors, int) and not isinstance(num_colors, bool) and 1 <= num_colors <= cls.MAX_NUM_COLORS

    @classmethod
    def validate_resample(cls, resample: str) -> bool:
        """Validate resize method."""
        return resample in cls.SUPPORTED_RESAMPLE

    @classmethod
    def validate_color_format(cls, color_format: str) -> bool:
        """Validate output color format."""
        return color_format in cls.SUPPORTED_COLOR_FORMATS

    @classmethod
    def validate_settings(cls) -> None:
        """
        Check the environment-derived pipeline settings.

        Raises:
            ValueError: Naming the first setting that is out of range
        """
        if not cls.validate_resample(cls.RESAMPLE):
            raise ValueError(
                f"PALETTE_RESAMPLE must be one of {cls.SUPPORTED_RESAMPLE}, got {cls.RESAMPLE!r}"
            )
        if cls.MAX_EDGE < 1:
            raise ValueError(f"PALETTE_MAX_EDGE must be at least 1, got {cls.MAX_EDGE}")
        if cls.SAMPLE_STRIDE < 1:
            raise ValueError(f"PALETTE_SAMPLE_STRIDE must be at least 1, got {cls.SAMPLE_STRIDE}")
        if cls.SAMPLE_OFFSET < 0:
            raise ValueError(f"PALETTE_SAMPLE_OFFSET must not be negative, got {cls.SAMPLE_OFFSET}")
        if not 1 <= cls.BUCKET_SIZE <= 256:
            raise ValueError(f"PALETTE_BUCKET_SIZE must be between 1 and 256, got {cls.BUCKET_SIZE}")
        if not 1 <= cls.NUM_COLORS <= cls.MAX_NUM_COLORS:
            raise ValueError(
                f"PALETTE_NUM_COLORS must be between 1 and {cls.MAX_NUM_COLORS}, got {cls.NUM_COLORS}"
            )
        if cls.METRICS_WINDOW < 1:
            raise ValueError(f"PALETTE_METRICS_WINDOW must be at least 1, got {cls.METRICS_WINDOW}")

    @classmethod
    def max_fetch_bytes(cls) -> int:
        return cls.MAX_FILE_MB * 1024 * 1024

    @classmethod
    def allowed_origins(cls) -> list:
        return [origin.strip() for origin in cls.ALLOWED_ORIGINS.split(",") if origin.strip()]


# Global config instance
config = Config()
