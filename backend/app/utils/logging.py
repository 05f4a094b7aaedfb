"""
Palette Extractor Logging
Loguru sink setup and per-request bound loggers.
"""
import sys
from typing import Optional

from loguru import logger

from app.config import config

LOG_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level} | {extra[request_id]} | {message}"


def configure_logging(level: Optional[str] = None, serialize: Optional[bool] = None) -> int:
    """
    Route loguru output to stdout.

    Replaces any existing sinks, so calling it again only changes the level
    or output format. Records logged outside a request carry ``request_id="-"``.

    Args:
        level: Minimum level (default from config)
        serialize: Emit one JSON object per line (default from config)

    Returns:
        Id of the stdout sink
    """
    logger.remove()
    logger.configure(extra={"request_id": "-"})
    return logger.add(
        sys.stdout,
        format=LOG_FORMAT,
        level=level or config.LOG_LEVEL,
        serialize=config.LOG_JSON if serialize is None else serialize,
    )


def request_logger(request_id: str):
    """Logger whose records are tagged with ``request_id``."""
    return logger.bind(request_id=request_id)
