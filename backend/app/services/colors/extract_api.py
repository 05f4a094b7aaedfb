"""
Color Extraction Request Handler

Orchestrates one extraction request from validation through the pipeline to
the response body. Kept free of any web framework so the same function backs
the HTTP route, a serverless binding or a direct library call.
"""

import time
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from app.config import config
from app.services.colors.errors import InvalidRequestError, PaletteError
from app.services.colors.extraction import (
    CancelSignal, extract_palette_from_bytes, extract_palette_from_url
)
from app.services.colors.swatches import render_swatch_strip
from app.utils.ids import generate_request_id
from app.utils.logging import request_logger
from app.utils.metrics import ExtractionRecord, get_metrics

MISSING_URL_MESSAGE = "Image URL not provided."


@dataclass
class PaletteRequest:
    """A single extraction request."""

    image_url: Optional[str] = None
    image_bytes: Optional[bytes] = None
    num_colors: Optional[int] = None
    color_format: str = "rgb"
    include_swatch: bool = False
    cancel: Optional[CancelSignal] = None

    def validate(self) -> None:
        """
        Validate request fields.

        Raises:
            InvalidRequestError: On missing image source or bad parameters
        """
        if self.image_bytes is None:
            if not isinstance(self.image_url, str) or not self.image_url.strip():
                raise InvalidRequestError(MISSING_URL_MESSAGE)

        if self.num_colors is not None and not config.validate_num_colors(self.num_colors):
            raise InvalidRequestError(
                f"num_colors must be an integer between 1 and {config.MAX_NUM_COLORS}."
            )

        if not config.validate_color_format(self.color_format):
            raise InvalidRequestError(
                f"color_format must be one of: {', '.join(config.SUPPORTED_COLOR_FORMATS)}."
            )


@dataclass
class PaletteResponse:
    """HTTP-agnostic response: status code plus JSON-serializable body."""

    status_code: int
    body: Dict[str, Any] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.status_code == 200


def handle_extract(request: PaletteRequest) -> PaletteResponse:
    """
    Run one extraction request end to end.

    Every failure, whatever its kind, becomes ``400 {"error": message}``.
    Kinds are distinguished only in logs and metrics. No partial palette is
    ever returned.

    Args:
        request: Parsed extraction request

    Returns:
        PaletteResponse with ``{"colors": [...]}`` or ``{"error": ...}``
    """
    request_id = generate_request_id("pal")
    start_time = time.time()
    log = request_logger(request_id)

    log.info(f"Starting color extraction for {request.image_url}")

    try:
        request.validate()

        if request.image_bytes is not None:
            palette = extract_palette_from_bytes(
                request.image_bytes, num_colors=request.num_colors, cancel=request.cancel
            )
        else:
            palette = extract_palette_from_url(
                request.image_url.strip(), num_colors=request.num_colors, cancel=request.cancel
            )

        colors = palette.colors(request.color_format)
        body: Dict[str, Any] = {"colors": colors}

        if request.include_swatch and colors:
            body["swatch_png_b64"] = render_swatch_strip(colors)

    except PaletteError as e:
        return _failure(request_id, start_time, e.kind, e.message)
    except Exception as e:
        return _failure(request_id, start_time, "internal", str(e) or e.__class__.__name__)

    elapsed_ms = (time.time() - start_time) * 1000
    get_metrics().record(ExtractionRecord(
        request_id=request_id,
        stage_timings_ms={**palette.timings_ms, "total": elapsed_ms},
        palette_size=len(colors),
    ))
    log.info(
        f"Color extraction complete: {len(colors)} colors from {palette.sample_count} samples "
        f"({palette.distinct_colors} distinct) in {elapsed_ms:.1f}ms"
    )

    return PaletteResponse(status_code=200, body=body)


def _failure(request_id: str, start_time: float, kind: str, message: str) -> PaletteResponse:
    elapsed_ms = (time.time() - start_time) * 1000
    get_metrics().record(ExtractionRecord(request_id=request_id, error_kind=kind))
    log = request_logger(request_id)
    if kind == "internal":
        log.error(f"Color extraction failed unexpectedly after {elapsed_ms:.1f}ms: {message}")
    else:
        log.warning(f"Color extraction failed ({kind}) after {elapsed_ms:.1f}ms: {message}")
    return PaletteResponse(status_code=400, body={"error": message})


def reject(error: PaletteError) -> PaletteResponse:
    """Standard failure response for requests rejected before reaching the handler."""
    return _failure(generate_request_id("pal"), time.time(), error.kind, error.message)
